"""
charts_gender.py - Share of positive answers split by the child's gender.

Two sources are supported: the layout text, where every question prints
three single-percentage lines (total, girls, boys), and positioned text
items for documents whose layout text lacks the chart.
"""

import logging
import re
from typing import List, NamedTuple, Optional, Tuple

from survey_pipeline.models import GenderSplitRow, TextItem
from survey_pipeline.utilities.geometry import group_by_rows, merge_horizontal
from survey_pipeline.utilities.text_cleaning import clean_question_text, parse_pct

logger = logging.getLogger(__name__)

_SECTION_START = re.compile(r"^K.nsuppdelad andel positiva$", re.IGNORECASE)
_POSITIVE_SHARE = re.compile(r"andelen positiva", re.IGNORECASE)
_CHILD_GENDER = re.compile(r"barnets k.n", re.IGNORECASE)
_SECTION_END = (
    re.compile(r"Fr.geomr.de per enhet", re.IGNORECASE),
    re.compile(r"Medelv.rde per enhet", re.IGNORECASE),
)
_COLUMN_HEADER = re.compile(r"Total\s+Flicka\s+Pojke", re.IGNORECASE)
_COLUMN_HEADER_PART = re.compile(r"Total\s+Flicka", re.IGNORECASE)
_RESPONSE_RATE = re.compile(r"Svarsfrekvens", re.IGNORECASE)
_PCT = re.compile(r"\d+%")
_BARE_NUMBER = re.compile(r"^\d+%?$")

MIN_TEXT_LENGTH = 10
# Spans closer than this are one word, e.g. "4" and "5%"
SPAN_JOIN_GAP = 1


class _PctLine(NamedTuple):
    text: str
    pct: float
    index: int


def _is_section_start(trimmed: str) -> bool:
    if _POSITIVE_SHARE.search(trimmed) and _CHILD_GENDER.search(trimmed):
        return True
    return bool(_SECTION_START.match(trimmed))


def _collect_pct_lines(lines: List[str]) -> List[_PctLine]:
    collected: List[_PctLine] = []
    in_section = False
    for i, line in enumerate(lines):
        trimmed = line.strip()
        if _is_section_start(trimmed):
            in_section = True
            continue
        if not in_section:
            continue
        if any(pattern.search(trimmed) for pattern in _SECTION_END):
            break

        tokens = _PCT.findall(trimmed)
        if len(tokens) != 1:
            continue
        if _COLUMN_HEADER.search(trimmed) or _RESPONSE_RATE.search(trimmed):
            continue
        value = parse_pct(tokens[0])
        if value is None:
            continue
        collected.append(_PctLine(text=_PCT.sub("", trimmed).strip(), pct=value, index=i))
    return collected


def _is_text_between(line: str) -> bool:
    return (
        len(line) > 3
        and not _PCT.search(line)
        and not _RESPONSE_RATE.search(line)
        and not _COLUMN_HEADER_PART.search(line)
        and not _POSITIVE_SHARE.search(line)
    )


def parse_gender_splits_from_layout(layout_text: str) -> List[GenderSplitRow]:
    """Group the section's single-percentage lines into (total, female, male) triplets."""
    lines = layout_text.split("\n")
    pct_lines = _collect_pct_lines(lines)
    results: List[GenderSplitRow] = []
    seen = set()

    for start in range(0, len(pct_lines) - 2, 3):
        total, female, male = pct_lines[start : start + 3]

        parts = [total.text] if len(total.text) > 3 else []
        previous = total.index
        for entry in (female, male):
            for between in lines[previous + 1 : entry.index]:
                between = between.strip()
                if _is_text_between(between):
                    parts.append(between)
            if len(entry.text) > 3:
                parts.append(entry.text)
            previous = entry.index

        question_text = clean_question_text(" ".join(parts))
        if len(question_text) < MIN_TEXT_LENGTH or question_text in seen:
            continue
        seen.add(question_text)
        results.append(
            GenderSplitRow(
                question_text=question_text,
                pct_total=total.pct,
                pct_female=female.pct,
                pct_male=male.pct,
            )
        )

    logger.debug("Parsed %d gender split rows from layout text", len(results))
    return results


def parse_gender_splits_from_items(
    items: List[TextItem], start_page: int, end_page: int
) -> List[GenderSplitRow]:
    """Read gender splits from positioned text on the given page range."""
    page_items = [item for item in items if start_page <= item.page <= end_page]
    results: List[GenderSplitRow] = []

    for row in group_by_rows(page_items, tolerance=1):
        row = merge_horizontal(row, gap=SPAN_JOIN_GAP)
        question_items = [
            item for item in row if not _BARE_NUMBER.match(item.text) and len(item.text) > 10
        ]
        pct_items = [item for item in row if _PCT.search(item.text)]
        if not question_items or len(pct_items) < 2:
            continue

        pcts: List[Optional[float]] = [parse_pct(item.text) for item in pct_items]
        pcts += [None] * (3 - len(pcts))
        results.append(
            GenderSplitRow(
                question_text=clean_question_text(" ".join(item.text for item in question_items)),
                pct_total=pcts[0],
                pct_female=pcts[1],
                pct_male=pcts[2],
            )
        )
    return results


def find_gender_chart_pages(items: List[TextItem]) -> Optional[Tuple[int, int]]:
    """
    Locate the gender chart in positioned text.

    Returns:
        (first page, last page) from the page carrying the chart header to
        the page of the next unit-table header (or the last page), or None
        when no header is found
    """
    start_page = None
    for row in group_by_rows(items, tolerance=1):
        row_text = " ".join(item.text for item in row).strip()
        if start_page is None:
            if _is_section_start(row_text):
                start_page = row[0].page
            continue
        if any(pattern.search(row_text) for pattern in _SECTION_END):
            return start_page, row[0].page
    if start_page is None:
        return None
    return start_page, max(item.page for item in items)


def parse_gender_splits(
    layout_text: str,
    items: Optional[List[TextItem]] = None,
    page_range: Optional[Tuple[int, int]] = None,
) -> List[GenderSplitRow]:
    """
    Layout-text parse first; positioned items are used only when it finds
    nothing, and only on the pages of a located gender chart.
    """
    results = parse_gender_splits_from_layout(layout_text)
    if results or not items:
        return results

    page_range = page_range or find_gender_chart_pages(items)
    if page_range is None:
        return []
    logger.debug("No gender splits in layout text, trying positioned items on pages %s", page_range)
    return parse_gender_splits_from_items(items, *page_range)
