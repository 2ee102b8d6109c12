"""
tables_5point.py - Mean table parser for the 5-point Likert era (2023+).

Rows print a question followed by the region (GR), city, district and
facility means and one column per historical year. Two column orders exist:
geography first ("GR  Göteborg  SDN  Enhet  2022  2023") and geography last
("Enhet  2022  2023  SDN  Göteborg  GR"). A dash marks an empty cell.
"""

import logging
import re
from enum import Enum
from typing import List, Optional, Tuple

from survey_pipeline.models import MeanTable, QuestionMean
from survey_pipeline.processors.parsing.areas import AREA_HEADINGS_5POINT, map_area_name
from survey_pipeline.processors.parsing.tables_common import (
    MIN_QUESTION_LENGTH,
    UPPERCASE_START,
    ScanState,
    absorb_continuations,
    find_years,
    join_pending,
    map_years,
)
from survey_pipeline.utilities.text_cleaning import (
    clean_question_text,
    parse_decimal,
    starts_with_ellipsis,
)

logger = logging.getLogger(__name__)

_VALUE_OR_DASH = re.compile(r"(\d[.,]\d{2})\b|-(?=\s{2,}|\s*$)")
_PAGE_HEADER = re.compile(r"\|.*[Ss]varsfrekvens")
_SECTION_END = re.compile(r"Könsuppdelad\s+andel|Frågeområde\s+per\s+enhet")
_REGION_TOKEN = re.compile(r"\bGR\b")
_CITY_TOKEN = re.compile(r"G.teborg")
_COLUMN_SPLIT = re.compile(r"\s{2,}")
_NON_QUESTION = re.compile(
    r"^(?:Resultat|Jämförelse|Årsjämförelse|Könsuppdelad|Frågeområde)", re.IGNORECASE
)

# Wrapped question tails below a row
_CONTINUATION_LINES = 2
_CONTINUATION_MAX_LENGTH = 60


class ColumnLayout(str, Enum):
    GEO_FIRST = "gr-first"
    GEO_LAST = "gr-last"


def is_table_header(line: str) -> bool:
    """A column header names the region and the city as separate columns."""
    if not (_REGION_TOKEN.search(line) and _CITY_TOKEN.search(line)):
        return False
    words = [word.strip() for word in _COLUMN_SPLIT.split(line.strip())]
    return len(words) >= 2 and "GR" in words


def detect_column_layout(header_line: str) -> ColumnLayout:
    region_at = header_line.find("GR")
    city_at = max(header_line.find("Göteborg"), header_line.find("Goteborg"))
    if region_at >= 0 and city_at >= 0 and region_at > city_at:
        return ColumnLayout.GEO_LAST
    return ColumnLayout.GEO_FIRST


def extract_values(line: str) -> Tuple[List[Optional[float]], int]:
    """Return the row's cells in order (dash -> None) and where the first one starts."""
    values: List[Optional[float]] = []
    first_index = -1
    for match in _VALUE_OR_DASH.finditer(line):
        if first_index < 0:
            first_index = match.start()
        values.append(parse_decimal(match.group(1)) if match.group(1) else None)
    return values, first_index


def assign_columns(
    values: List[Optional[float]], layout: ColumnLayout, years: List[int]
) -> dict:
    """Map row cells onto geography columns and historical years."""
    num_hist = len(years)

    if layout == ColumnLayout.GEO_FIRST:
        padded = values + [None] * max(0, 4 - len(values))
        return {
            "mean_region": padded[0],
            "mean_city": padded[1],
            "mean_district": padded[2],
            "mean_facility": padded[3],
            "historical_means": map_years(values, years, len(values) - num_hist),
        }

    count = len(values)
    before_geo = values[: max(0, count - 3)]
    columns = {
        "mean_region": values[-1] if count >= 1 else None,
        "mean_city": values[-2] if count >= 2 else None,
        "mean_district": values[-3] if count >= 3 else None,
    }
    if len(before_geo) > num_hist:
        columns["mean_facility"] = before_geo[-1]
        columns["historical_means"] = map_years(before_geo[:-1], years)
    else:
        columns["mean_facility"] = before_geo[0] if before_geo else None
        columns["historical_means"] = map_years(before_geo, years)
    return columns


def _area_heading(trimmed: str) -> Optional[str]:
    for heading in AREA_HEADINGS_5POINT:
        if trimmed == heading or trimmed.startswith(heading + " "):
            return heading
    return None


def _prescan_years(lines: List[str]) -> List[int]:
    for i, line in enumerate(lines):
        if "GR" in line and ("Göteborg" in line or "Goteborg" in line):
            years = find_years(lines, i, min_count=2)
            if years:
                return years
    return []


def parse_mean_rows(layout_text: str) -> MeanTable:
    """Extract question means from a 5-point report's layout text."""
    lines = layout_text.split("\n")
    rows: List[QuestionMean] = []
    years = _prescan_years(lines)

    state = ScanState.OUTSIDE
    layout = ColumnLayout.GEO_FIRST
    area = ""
    pending = ""
    skip_to = -1

    for i, line in enumerate(lines):
        if i <= skip_to:
            continue
        trimmed = line.strip()

        if rows and _SECTION_END.search(trimmed):
            state = ScanState.DONE
        if state == ScanState.DONE:
            break

        if _PAGE_HEADER.search(trimmed):
            state = ScanState.OUTSIDE
            pending = ""
            continue

        heading = _area_heading(trimmed)
        if heading:
            area = map_area_name(heading)
            state = ScanState.OUTSIDE
            pending = ""

        if is_table_header(line):
            state = ScanState.INSIDE
            pending = ""
            layout = detect_column_layout(line)
            header_years = find_years(lines, i, min_count=1)
            if header_years:
                years = header_years
            continue

        if state == ScanState.INSIDE and trimmed.startswith("Årsjämförelsen"):
            state = ScanState.OUTSIDE
            pending = ""
            continue

        if state != ScanState.INSIDE or not trimmed:
            continue

        values, first_index = extract_values(line)
        numeric = sum(1 for value in values if value is not None)

        if numeric >= 3 and first_index >= 0:
            text = join_pending(pending, line[:first_index].strip())
            text = clean_question_text(text)
            if len(text) > MIN_QUESTION_LENGTH:
                text, skip_to = absorb_continuations(
                    lines, i, text, _CONTINUATION_LINES, _CONTINUATION_MAX_LENGTH
                )
                rows.append(
                    QuestionMean(
                        question_text=text,
                        question_area=area,
                        **assign_columns(values, layout, years),
                    )
                )
            pending = ""
        elif starts_with_ellipsis(trimmed):
            pending = trimmed
        elif (
            numeric == 0
            and len(trimmed) > 10
            and UPPERCASE_START.match(trimmed)
            and not any(trimmed.startswith(h) for h in AREA_HEADINGS_5POINT)
            and not _NON_QUESTION.match(trimmed)
        ):
            pending = trimmed
        elif pending and numeric == 0:
            pending = f"{pending} {trimmed}"

    logger.debug("5-point table: %d rows, years %s", len(rows), years)
    return MeanTable(rows=rows, historical_years=years)
