"""
tables_ecers.py - Mean table parser for the ECERS era (2011-2015).

Each row is a numbered question, its percentage bars and one mean at the end
of the line. District reports print two means ("SDN  Göteborg"): the
district's and the city's.
"""

import logging
import re
from typing import List

from survey_pipeline.models import MeanTable, QuestionMean
from survey_pipeline.processors.parsing.areas import AREA_HEADINGS_ECERS, map_area_name
from survey_pipeline.processors.parsing.tables_common import (
    MIN_QUESTION_LENGTH,
    UPPERCASE_START,
    ScanState,
    absorb_continuations,
    join_pending,
)
from survey_pipeline.utilities.text_cleaning import clean_question_text, parse_decimal

logger = logging.getLogger(__name__)

_DUAL_HEADER = (
    re.compile(r"Medelvärde\s*\n?\s*(SDN|Enhet)\s+(Göteborg|G.teborg)"),
    re.compile(r"SDN\s+Göteborg"),
)
_DATA_START = re.compile(r"Medelvärde", re.IGNORECASE)
_SKIP_LINES = (
    re.compile(
        r"^(?:FÖRSKOLEENKÄT|Bakgrund|Antal\s+svarande|Fristående|Medelvärde|Otillräck"
        r"|\d\.\s*(?:Otillräck|God|Minimal|Utmärkt))",
        re.IGNORECASE,
    ),
    re.compile(r"^(?:SDN\s+Göteborg|Kommunal\s+verksamhet|Ranking|Frågeställning)", re.IGNORECASE),
    re.compile(r"^\d+\.\s*(?:Otillräcklig|God|Minimal|Utmärkt)"),
)
_PAGE_HEADER = re.compile(r",\s*n\s*=\s*\d+")
_SINGLE_MEAN = re.compile(r"(\d[.,]\d)\s*$")
_DUAL_MEAN = re.compile(r"(\d[.,]\d)\s+(\d[.,]\d)\s*$")
_NUMBERED_QUESTION = re.compile(r"^\d+\.\s+[A-ZÅÄÖ]")
_QUESTION_NUMBER = re.compile(r"^\d+\.\s*")
_NOT_QUESTION = re.compile(r"^(?:FÖRSKOLE|Bakgrund|Antal|Fristående|Medelvärde|Otillräck)", re.IGNORECASE)
_TEXT_BEFORE_BARS = re.compile(r"^(.+?)\s{3,}\d")
_PCT = re.compile(r"\d+\s*%")
_SCALE_TICKS = re.compile(r"\b\d{1,3}\b")
_SPACES = re.compile(r"\s{2,}")

_CONTINUATION_LINES = 1
_CONTINUATION_MAX_LENGTH = 40


def has_dual_columns(layout_text: str) -> bool:
    return any(pattern.search(layout_text) for pattern in _DUAL_HEADER)


def _in_scale(value) -> bool:
    return value is not None and 1.0 <= value <= 7.0


def match_means(trimmed: str, dual: bool):
    """
    Find the mean(s) printed at the end of a row.

    Returns:
        Tuple of (column values dict, start index of the match) or None
    """
    if dual:
        match = _DUAL_MEAN.search(trimmed)
        if match:
            district = parse_decimal(match.group(1))
            city = parse_decimal(match.group(2))
            if _in_scale(district) and _in_scale(city):
                return {
                    "mean_district": district,
                    "mean_city": city,
                    "mean_facility": district,
                }, match.start()

    match = _SINGLE_MEAN.search(trimmed)
    if match:
        value = parse_decimal(match.group(1))
        if _in_scale(value):
            return {"mean_facility": value}, match.start()
    return None


def _row_text(prefix: str) -> str:
    text = _QUESTION_NUMBER.sub("", prefix.strip())
    text = _PCT.sub("", text).strip()
    text = _SCALE_TICKS.sub("", text).strip()
    return _SPACES.sub(" ", text).strip()


def parse_mean_rows(layout_text: str) -> MeanTable:
    """Extract question means from an ECERS report's layout text."""
    lines = layout_text.split("\n")
    dual = has_dual_columns(layout_text)
    rows: List[QuestionMean] = []
    state = ScanState.OUTSIDE
    area = ""
    pending = ""
    skip_to = -1

    for i, line in enumerate(lines):
        if i <= skip_to:
            continue
        trimmed = line.strip()
        if not trimmed:
            continue

        if state == ScanState.OUTSIDE:
            if _DATA_START.search(trimmed):
                state = ScanState.INSIDE
            continue

        if trimmed in AREA_HEADINGS_ECERS:
            area = map_area_name(trimmed)
            pending = ""
            continue

        if any(pattern.match(trimmed) for pattern in _SKIP_LINES):
            continue
        if _PAGE_HEADER.search(trimmed) and len(trimmed) < 80:
            pending = ""
            continue

        found = match_means(trimmed, dual)
        if found:
            columns, start = found
            text = join_pending(pending, _row_text(trimmed[:start]))
            text = clean_question_text(_QUESTION_NUMBER.sub("", text))
            if len(text) > MIN_QUESTION_LENGTH:
                text, skip_to = absorb_continuations(
                    lines, i, text, _CONTINUATION_LINES, _CONTINUATION_MAX_LENGTH
                )
                rows.append(QuestionMean(question_text=text, question_area=area, **columns))
            pending = ""
            continue

        numbered = bool(_NUMBERED_QUESTION.match(trimmed))
        if not (numbered or UPPERCASE_START.match(trimmed)):
            continue
        if len(trimmed) <= 10 or _NOT_QUESTION.match(trimmed):
            continue

        gap = _TEXT_BEFORE_BARS.match(trimmed)
        text_part = gap.group(1).strip() if gap else trimmed
        if len(text_part) <= 5:
            continue
        if numbered or not pending:
            pending = text_part
        else:
            pending = f"{pending} {text_part}"

    logger.debug("ECERS table: %d rows (dual columns: %s)", len(rows), dual)
    return MeanTable(rows=rows)
