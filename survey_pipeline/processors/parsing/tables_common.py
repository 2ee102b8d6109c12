"""Helpers shared by the era-specific mean-table parsers."""

import re
from enum import Enum
from typing import List, Tuple

from survey_pipeline.utilities.text_cleaning import clean_question_text

YEAR_PATTERN = re.compile(r"\b(20\d{2})\b")
UPPERCASE_START = re.compile(r"[A-ZÅÄÖ]")
LOWERCASE_START = re.compile(r"[a-zåäö]")
_DIGIT = re.compile(r"\d")

# Question texts at or below this length are treated as noise
MIN_QUESTION_LENGTH = 5


class ScanState(Enum):
    """Where a table scan currently is."""

    OUTSIDE = "outside"
    INSIDE = "inside"
    DONE = "done"


def join_pending(pending: str, text: str) -> str:
    """Prefix buffered wrapped-line text to the text found on a data row.

    A data row whose own text is at most three characters only carries
    leftovers, so the buffered text alone is the question.
    """
    if not pending:
        return text
    if len(text) > 3:
        return f"{pending} {text}"
    return pending


def is_continuation_line(trimmed: str, max_length: int) -> bool:
    """A short, digit-free, lowercase line holding the wrapped tail of a question."""
    return (
        3 <= len(trimmed) < max_length
        and not _DIGIT.search(trimmed)
        and bool(LOWERCASE_START.match(trimmed))
    )


def absorb_continuations(
    lines: List[str],
    index: int,
    question_text: str,
    max_lines: int,
    max_length: int,
) -> Tuple[str, int]:
    """
    Append wrapped question words printed below a data row.

    Args:
        lines: All layout lines
        index: Index of the data row just parsed
        question_text: Cleaned question text of that row
        max_lines: How many continuation lines may be consumed
        max_length: Continuation lines must be shorter than this

    Returns:
        Tuple of (question_text, index of the last consumed line)
    """
    last = index
    consumed = 0
    look = index + 1
    while look < len(lines) and consumed < max_lines:
        candidate = lines[look].strip()
        if not candidate:
            look += 1
            continue
        if not is_continuation_line(candidate, max_length):
            break
        question_text = clean_question_text(f"{question_text} {candidate}")
        consumed += 1
        last = look
        look += 1
    return question_text, last


def find_years(lines: List[str], start: int, min_count: int, span: int = 2) -> List[int]:
    """Return the first group of 20xx year tokens on ``lines[start..start+span]``."""
    end = min(start + span, len(lines) - 1)
    for j in range(start, end + 1):
        years = YEAR_PATTERN.findall(lines[j])
        if len(years) >= min_count:
            return [int(year) for year in years]
    return []


def map_years(values: list, years: List[int], offset: int = 0) -> dict:
    """Pair ``values[offset:]`` with ``years`` in order, skipping missing positions."""
    historical = {}
    for j, year in enumerate(years):
        position = offset + j
        if 0 <= position < len(values):
            historical[str(year)] = values[position]
    return historical
