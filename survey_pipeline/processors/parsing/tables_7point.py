"""
tables_7point.py - Mean table parser for the 7-point era (2018-2022).

The results section starts after "Resultat per fråga" and a scale header
("Otillräcklig ... Utmärkt"). Rows print the question, a percentage
distribution and then the facility's historical means followed by the
district, city and (in some years) region means.
"""

import logging
import re
from enum import Enum
from typing import List, NamedTuple, Optional

from survey_pipeline.models import MeanTable, QuestionMean
from survey_pipeline.processors.parsing.areas import AREA_HEADINGS_7POINT, map_area_name
from survey_pipeline.processors.parsing.tables_common import (
    MIN_QUESTION_LENGTH,
    UPPERCASE_START,
    YEAR_PATTERN,
    absorb_continuations,
    join_pending,
    map_years,
)
from survey_pipeline.utilities.text_cleaning import clean_question_text, parse_decimal

logger = logging.getLogger(__name__)

_RESULTS_MARKER = re.compile(r"Resultat\s+per\s+fråga", re.IGNORECASE)
_SCALE_HEADER = re.compile(r"Otillräcklig.*Utmärkt|Utmärkt.*Otillräcklig")
_PAGE_FOOTER = re.compile(r"Rapporten\s+gäller|Varje\s+färgat\s+fält|möjliga.*allts")
_CITY_TOKEN = re.compile(r"G.teborg")
_REGION_COLUMN = (
    re.compile(r"\bGR\s*$"),
    re.compile(r"regionen\s*$", re.IGNORECASE),
    re.compile(r"G.teborgs\s*$", re.IGNORECASE),
)
_SCALE_DIGITS = re.compile(r"^\d\s+\d\s+\d\s+\d")
_YEAR_ROW = re.compile(r"^\d{4}\s+\d{4}")
_GEO_HEADER = re.compile(r"G.teborg|\bGR\b", re.IGNORECASE)
_DONT_KNOW = re.compile(r"Vet\s+ej")
_SECTION_HEADERS = re.compile(
    r"^(?:Beskrivning|Regiongemensam|Om\s+undersökning|Metod$|Redovisning|Här\s+visas)",
    re.IGNORECASE,
)
_PCT = re.compile(r"\d+\s*%")
_MEAN = re.compile(r"(\d[.,]\d{1,2})\b(?![\d%])")
_COLUMN_SPLIT = re.compile(r"\s{3,}")

_CONTINUATION_LINES = 1
_CONTINUATION_MAX_LENGTH = 40


class Section(Enum):
    PREAMBLE = "preamble"
    RESULTS = "results"
    DATA = "data"


class ColumnHeader(NamedTuple):
    years: List[int]
    has_region: bool


def find_column_header(lines: List[str]) -> Optional[ColumnHeader]:
    """Locate the year/geography header printed after the results marker."""
    seen_marker = False
    for i, line in enumerate(lines):
        if _RESULTS_MARKER.search(line):
            seen_marker = True
            continue
        if not seen_marker or not _CITY_TOKEN.search(line):
            continue

        years: List[int] = []
        has_region = False
        for candidate in lines[i : i + 5]:
            found = YEAR_PATTERN.findall(candidate)
            if found and not years:
                years = [int(year) for year in found]
            stripped = candidate.strip()
            if any(pattern.search(stripped) for pattern in _REGION_COLUMN):
                has_region = True
        return ColumnHeader(years=years, has_region=has_region)
    return None


def assign_columns(values: List[float], years: List[int], has_region: bool) -> dict:
    """Split row means into historical facility means and geography means."""
    num_years = len(years)

    if has_region:
        historical = values[:num_years]
        geo = values[num_years:]
        return {
            "mean_facility": historical[0] if historical else None,
            "mean_region": geo[-1] if len(geo) >= 1 else None,
            "mean_city": geo[-2] if len(geo) >= 2 else None,
            "mean_district": geo[-3] if len(geo) >= 3 else None,
            "historical_means": map_years(historical, years),
        }

    num_geo = max(3, len(values) - num_years)
    geo_start = max(0, len(values) - num_geo)
    historical = values[:geo_start]
    geo = values[geo_start:]
    return {
        "mean_city": geo[-1] if len(geo) >= 1 else None,
        "mean_district": geo[-2] if len(geo) >= 2 else None,
        "mean_facility": geo[-3] if len(geo) >= 3 else None,
        "historical_means": map_years(historical, years),
    }


def is_column_header_line(trimmed: str) -> bool:
    """Short column captions separated by wide gaps, not question text."""
    segments = _COLUMN_SPLIT.split(trimmed)
    return len(segments) >= 2 and all(len(segment) < 25 for segment in segments)


def _extract_means(line: str):
    without_pct = _PCT.sub("   ", line)
    values: List[float] = []
    first_index = -1
    for match in _MEAN.finditer(without_pct):
        value = parse_decimal(match.group(1))
        if value is not None and 1.0 <= value <= 7.0:
            if first_index < 0:
                first_index = match.start()
            values.append(value)
    return values, first_index


def parse_mean_rows(layout_text: str) -> MeanTable:
    """Extract question means from a 7-point report's layout text."""
    lines = layout_text.split("\n")
    header = find_column_header(lines)
    if header is None:
        logger.debug("7-point table: no column header found")
        return MeanTable()

    rows: List[QuestionMean] = []
    section = Section.PREAMBLE
    area = ""
    pending = ""
    skip_to = -1

    for i, line in enumerate(lines):
        if i <= skip_to:
            continue
        trimmed = line.strip()
        if not trimmed:
            continue

        if _RESULTS_MARKER.search(trimmed):
            if section == Section.PREAMBLE:
                section = Section.RESULTS
            continue

        if _PAGE_FOOTER.search(trimmed):
            if section == Section.DATA:
                section = Section.RESULTS
            pending = ""
            continue

        if section != Section.PREAMBLE and _SCALE_HEADER.search(trimmed):
            section = Section.DATA
            pending = ""
            continue

        if _SCALE_DIGITS.match(trimmed) or _YEAR_ROW.match(trimmed):
            continue

        if YEAR_PATTERN.search(trimmed) and _GEO_HEADER.search(trimmed):
            pending = ""
            continue

        if section == Section.DATA and _DONT_KNOW.search(trimmed):
            pending = ""
            continue

        upper = trimmed.upper()
        heading = next(
            (h for h in AREA_HEADINGS_7POINT if upper == h or upper.startswith(h + " ")), None
        )
        if heading:
            area = map_area_name(heading)
            pending = ""
            continue

        if _SECTION_HEADERS.match(trimmed):
            continue

        if section != Section.DATA:
            continue

        values, first_index = _extract_means(line)

        if len(values) >= 3 and first_index >= 0:
            pct_match = _PCT.search(line)
            cut = pct_match.start() if pct_match else first_index
            text = clean_question_text(join_pending(pending, line[:cut].strip()))
            if len(text) > MIN_QUESTION_LENGTH:
                text, skip_to = absorb_continuations(
                    lines, i, text, _CONTINUATION_LINES, _CONTINUATION_MAX_LENGTH
                )
                rows.append(
                    QuestionMean(
                        question_text=text,
                        question_area=area,
                        **assign_columns(values, header.years, header.has_region),
                    )
                )
            pending = ""
        elif not values and len(trimmed) > 10 and not _SCALE_HEADER.search(trimmed):
            if is_column_header_line(trimmed):
                continue
            if UPPERCASE_START.match(trimmed) or pending:
                pending = f"{pending} {trimmed}" if pending else trimmed

    logger.debug("7-point table: %d rows, years %s", len(rows), header.years)
    return MeanTable(rows=rows, historical_years=header.years)
