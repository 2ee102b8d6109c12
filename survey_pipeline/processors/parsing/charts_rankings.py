"""
charts_rankings.py - The "most important questions" ranking and the
per-unit mean table.
"""

import logging
import re
from typing import List, NamedTuple

from survey_pipeline.models import ImportantQuestion, UnitMean
from survey_pipeline.processors.parsing.areas import canonical_area_for_short_name
from survey_pipeline.utilities.text_cleaning import clean_question_text, parse_decimal

logger = logging.getLogger(__name__)

MAX_IMPORTANT_QUESTIONS = 5

_TOC_ENTRY = re.compile(r"\s+\d{1,3}\s*$")
_NUMBERED_ENTRY = re.compile(r"^(\d+)[.\s]+(.+?)\s{2,}(\d+)\s*%")
_PCT = re.compile(r"\d+%")
_PCT_VALUE = re.compile(r"(\d+)\s*%")
_PCT_TOKEN = re.compile(r"\d+\s*%")
_WHITESPACE = re.compile(r"\s+")
_AXIS_MIN_PCTS = 5

# Unit table column labels in printed order
UNIT_COLUMNS = ("Trygghet", "Utveckling", "Inflytande", "Relation", "Helhet", "Övergripande")
_UNIT_SECTION = (
    re.compile(r"Fr.geomr.de per enhet", re.IGNORECASE),
    re.compile(r"Medelv.rde per enhet", re.IGNORECASE),
)
_UNIT_SECTION_END = (
    re.compile(r"Viktigaste", re.IGNORECASE),
    re.compile(r"K.nsuppdelad", re.IGNORECASE),
    re.compile(r"Detta diagram", re.IGNORECASE),
    re.compile(r"Resultat per fr", re.IGNORECASE),
    re.compile(r"Svarsfrekvens", re.IGNORECASE),
)
_DOTTED_DECIMAL = re.compile(r"\d+\.\d+")
_LEGACY_ROW = re.compile(r"^\s*(.+?)\s{2,}[\d,]")
_LEGACY_NUMBER = re.compile(r"[\d,]+\.\d+|[\d,]+,\d+")


def _is_ranking_header(line: str) -> bool:
    lower = line.lower()
    return "viktigaste" in lower or "mest betydelse" in lower


def _is_axis(trimmed: str) -> bool:
    return len(_PCT.findall(trimmed)) >= _AXIS_MIN_PCTS


def _unnumbered_entries(lines: List[str]) -> List[ImportantQuestion]:
    """Blank-line separated label groups, each carrying one percentage."""
    groups: List[List[str]] = []
    current: List[str] = []
    for line in lines:
        trimmed = line.strip()
        if _is_axis(trimmed):
            break
        if trimmed:
            current.append(trimmed)
        elif current:
            groups.append(current)
            current = []
    if current:
        groups.append(current)

    entries: List[ImportantQuestion] = []
    for group in groups:
        full_text = " ".join(group)
        pct = _PCT_VALUE.search(full_text)
        if not pct:
            continue
        text = _WHITESPACE.sub(" ", _PCT_TOKEN.sub("", full_text)).strip()
        if len(text) < 15:
            continue
        entries.append(
            ImportantQuestion(
                rank=len(entries) + 1,
                question_text=clean_question_text(text),
                pct=int(pct.group(1)),
            )
        )
        if len(entries) >= MAX_IMPORTANT_QUESTIONS:
            break
    return entries


def parse_important_questions(layout_text: str) -> List[ImportantQuestion]:
    """
    Parse the ranked list of questions respondents found most important.

    Older reports print numbered lines ("1. mitt barn trivs   23%"); newer
    ones print unnumbered bar labels above a percentage axis.
    """
    lines = layout_text.split("\n")
    results: List[ImportantQuestion] = []
    in_section = False

    for i, line in enumerate(lines):
        if _is_ranking_header(line):
            if _TOC_ENTRY.search(line.strip()):
                continue
            in_section = True
            continue
        if not in_section:
            continue

        trimmed = line.strip()
        numbered = _NUMBERED_ENTRY.match(trimmed)
        if numbered:
            results.append(
                ImportantQuestion(
                    rank=int(numbered.group(1)),
                    question_text=clean_question_text(numbered.group(2)),
                    pct=int(numbered.group(3)),
                )
            )
            if len(results) >= MAX_IMPORTANT_QUESTIONS:
                break
            continue

        if results and not trimmed:
            break
        if _is_axis(trimmed):
            break
        if not results:
            results = _unnumbered_entries(lines[i:])
            break

    return results


class _Column(NamedTuple):
    name: str
    start: int


def _legacy_header_columns(line: str) -> List[_Column]:
    lower = line.lower()
    columns = [
        _Column(name=name, start=lower.index(name.lower()))
        for name in UNIT_COLUMNS
        if name.lower() in lower
    ]
    return sorted(columns, key=lambda column: column.start)


def _unit_mean(unit_name: str, short_name: str, value) -> List[UnitMean]:
    area = canonical_area_for_short_name(short_name)
    if area is None or value is None:
        return []
    return [UnitMean(unit_name=unit_name, area_name=area, mean_value=value)]


def parse_unit_means(layout_text: str) -> List[UnitMean]:
    """
    Parse the per-unit table of area means.

    Columns without a canonical area are dropped.
    """
    lines = layout_text.split("\n")
    results: List[UnitMean] = []
    in_fixed_section = False
    section_rows = 0
    header_index = -1
    columns: List[_Column] = []

    for i, line in enumerate(lines):
        trimmed = line.strip()

        if any(p.search(trimmed) for p in _UNIT_SECTION) and not _TOC_ENTRY.search(trimmed):
            in_fixed_section = True
            section_rows = 0
            header_index = -1
            continue

        if in_fixed_section:
            if not trimmed:
                if section_rows:
                    in_fixed_section = False
                continue
            if any(p.search(trimmed) for p in _UNIT_SECTION_END):
                in_fixed_section = False
                continue
            numbers = _DOTTED_DECIMAL.findall(line)
            if len(numbers) < len(UNIT_COLUMNS):
                continue
            unit_name = line[: line.index(numbers[0])].strip()
            if not unit_name:
                continue
            section_rows += 1
            for short_name, number in zip(UNIT_COLUMNS, numbers):
                results.extend(_unit_mean(unit_name, short_name, parse_decimal(number)))
            continue

        header_columns = _legacy_header_columns(line)
        if len(header_columns) >= 3:
            header_index = i
            columns = header_columns
            continue

        if header_index < 0 or i <= header_index:
            continue
        if not trimmed:
            if i - header_index > 2:
                break
            continue

        row = _LEGACY_ROW.match(line)
        if not row:
            continue
        unit_name = row.group(1).strip()
        numbers = _LEGACY_NUMBER.findall(line)
        for column, number in zip(columns, numbers):
            results.extend(_unit_mean(unit_name, column.name, parse_decimal(number)))

    logger.debug("Parsed %d unit means", len(results))
    return results
