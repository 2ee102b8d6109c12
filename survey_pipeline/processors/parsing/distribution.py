"""
distribution.py - Response distributions from stacked bar charts.

A stacked bar only prints its non-zero segments, so a bar with N labels
could belong to any N of the six response categories. The mean already
parsed from the tables for the same question anchors the choice: every
ordered placement of the N percentages is scored by how close its implied
mean comes to the printed one.
"""

import logging
import re
from itertools import combinations
from typing import Dict, List, Optional, Sequence

from survey_pipeline.models import ResponseDistribution
from survey_pipeline.utilities.text_cleaning import (
    clean_question_text,
    parse_pct,
    starts_with_ellipsis,
)

logger = logging.getLogger(__name__)

# Category slots, left to right on the bar
CATEGORY_FIELDS = (
    "pct_strongly_disagree",
    "pct_disagree",
    "pct_neither",
    "pct_agree",
    "pct_strongly_agree",
    "pct_dont_know",
)
DONT_KNOW_SLOT = 5

# Scoring weights for mean-guided assignment
DONT_KNOW_TOLERANCE = 20
DONT_KNOW_WEIGHT = 0.03
GAP_WEIGHT = 0.2

# Percentage sums below this are assumed to include a "don't know" segment
INCOMPLETE_SUM = 90
COMPLETE_SUM = 95

_SECTION_MARKER = re.compile(r"^Resultat per fr.ga$", re.IGNORECASE)
_SECTION_STOP = (
    re.compile(r"K.nsuppdelad", re.IGNORECASE),
    re.compile(r"Viktigaste\s+fr", re.IGNORECASE),
    re.compile(r"H.gst andel", re.IGNORECASE),
)
_PCT = re.compile(r"\d+%")
_PCT_AND_REST = re.compile(r"\d+%.*")
_WHITESPACE = re.compile(r"\s+")

# Lines collected per question: the label line plus wrapped lines
QUESTION_WINDOW = 3


def _implied_mean(pcts: Sequence[float], assignment: Sequence[int]) -> Optional[float]:
    weighted = 0.0
    total = 0.0
    for pct, slot in zip(pcts, assignment):
        if slot < DONT_KNOW_SLOT:
            weighted += pct * (slot + 1)
            total += pct
    if total <= 0:
        return None
    return weighted / total


def _score(pcts: Sequence[float], assignment: Sequence[int], mean: float) -> Optional[float]:
    implied = _implied_mean(pcts, assignment)
    if implied is None:
        return None

    dont_know = sum(pct for pct, slot in zip(pcts, assignment) if slot == DONT_KNOW_SLOT)
    likert = sorted(slot for slot in assignment if slot < DONT_KNOW_SLOT)
    gaps = sum(b - a - 1 for a, b in zip(likert, likert[1:]))

    return (
        abs(implied - mean)
        + max(0.0, dont_know - DONT_KNOW_TOLERANCE) * DONT_KNOW_WEIGHT
        + gaps * GAP_WEIGHT
    )


def _assign_without_mean(pcts: Sequence[float]) -> List[Optional[float]]:
    slots: List[Optional[float]] = [None] * len(CATEGORY_FIELDS)
    count = len(pcts)
    total = sum(pcts)

    if total < INCOMPLETE_SUM and count >= 2:
        start = DONT_KNOW_SLOT - (count - 1)
        for i, pct in enumerate(pcts[:-1]):
            slots[max(0, start + i)] = pct
        slots[DONT_KNOW_SLOT] = pcts[-1]
        return slots

    if total < COMPLETE_SUM:
        logger.debug("Distribution sums to %s%%, treating as complete", total)
    start = DONT_KNOW_SLOT - count
    for i, pct in enumerate(pcts):
        slots[max(0, start + i)] = pct
    return slots


def assign_categories(pcts: Sequence[float], mean: Optional[float]) -> List[Optional[float]]:
    """
    Place a bar's percentages into the six ordered response categories.

    Args:
        pcts: Percentages in left-to-right bar order
        mean: The question's mean on the 1-5 scale, or None when unknown

    Returns:
        Six slots: strongly disagree .. strongly agree, then don't know.
        Relative order of ``pcts`` is always preserved.
    """
    count = len(pcts)
    if count == 0:
        return [None] * len(CATEGORY_FIELDS)
    if count >= len(CATEGORY_FIELDS):
        return list(pcts[: len(CATEGORY_FIELDS)])
    if mean is None:
        return _assign_without_mean(pcts)

    best = None
    best_score = float("inf")
    for assignment in combinations(range(len(CATEGORY_FIELDS)), count):
        score = _score(pcts, assignment, mean)
        if score is not None and score < best_score:
            best_score = score
            best = assignment

    slots: List[Optional[float]] = [None] * len(CATEGORY_FIELDS)
    if best is not None:
        for pct, slot in zip(pcts, best):
            slots[slot] = pct
    return slots


def is_legend_line(line: str) -> bool:
    """Match the bar legend, also when letters are spaced out ("In st ä m m er")."""
    squashed = _WHITESPACE.sub("", line).lower()
    return (
        ("instämmer" in squashed or "instammer" in squashed)
        and ("vetinte" in squashed or "vetej" in squashed)
        and "varken" in squashed
    )


def _is_section_start(trimmed: str) -> bool:
    if (
        "Detta diagram visar resultatet f" in trimmed
        and "r fr" in trimmed
        and "gorna" in trimmed
    ):
        return True
    return bool(_SECTION_MARKER.match(trimmed))


def _ends_section(line: str) -> bool:
    trimmed = line.strip()
    return is_legend_line(line) or any(p.search(trimmed) for p in _SECTION_STOP)


def _text_before_pct(trimmed: str) -> str:
    return _PCT_AND_REST.sub("", trimmed).strip()


def _is_question_line(trimmed: str) -> bool:
    if starts_with_ellipsis(trimmed):
        return True
    return len(_text_before_pct(trimmed)) >= 15 and bool(_PCT.search(trimmed))


def lookup_mean(question_text: str, means_map: Dict[str, float]) -> Optional[float]:
    """Find the table mean for a chart question; table texts are often truncated."""
    if question_text in means_map:
        return means_map[question_text]
    for key, value in means_map.items():
        if question_text.startswith(key) or key.startswith(question_text):
            return value
    return None


def parse_response_distributions(
    layout_text: str, means_map: Optional[Dict[str, float]] = None
) -> List[ResponseDistribution]:
    """
    Extract one distribution per chart question, deduplicated by text.

    Args:
        layout_text: Full-document layout text
        means_map: Cleaned question text -> facility mean from the tables

    Returns:
        List of ResponseDistribution in document order
    """
    means_map = means_map or {}
    lines = layout_text.split("\n")
    results: List[ResponseDistribution] = []
    seen = set()
    in_section = False
    skip_to = -1

    for i, line in enumerate(lines):
        if i <= skip_to:
            continue
        trimmed = line.strip()

        if _is_section_start(trimmed):
            in_section = True
            continue
        if not in_section:
            continue
        if _ends_section(line):
            in_section = False
            continue
        if not _is_question_line(trimmed):
            continue

        text_parts: List[str] = []
        pcts: List[float] = []
        last = i
        for j in range(i, min(i + QUESTION_WINDOW, len(lines))):
            current = lines[j].strip()
            if j > i and (not current or _is_question_line(current) or _ends_section(lines[j])):
                break
            for token in _PCT.findall(current):
                value = parse_pct(token)
                if value is not None:
                    pcts.append(value)
            text_part = _PCT.sub("", current).strip()
            if len(text_part) > 3:
                text_parts.append(text_part)
            last = j
        skip_to = last

        question_text = clean_question_text(" ".join(text_parts))
        if len(pcts) < 2 or len(question_text) <= 10 or question_text in seen:
            continue
        seen.add(question_text)

        slots = assign_categories(pcts, lookup_mean(question_text, means_map))
        results.append(ResponseDistribution(question_text=question_text, **dict(zip(CATEGORY_FIELDS, slots))))

    logger.debug("Parsed %d response distributions", len(results))
    return results
