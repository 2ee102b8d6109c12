"""
tables_nki.py - Parser for the composite satisfaction index era (2011-2014).

These reports carry several entity sections (district, then each facility).
Only the first section is read: its "NKI, HELHET" total and quality factor
indices (0-100) followed by the per-question means on a 1-10 scale.

    NKI, HELHET                72        73   69   76
    TRIVSEL                    83        85   83   86
    Antal svarande, n = 688 (svarsandel 24%)

    KVALITETSFAKTOR  ...  Medelvärde  Ingen åsikt  Ej svar
    HELHET                 72
    Hur nöjd är du med...   63  28  9   7,7   0   1
"""

import logging
import re
from enum import Enum
from typing import List, Optional

from survey_pipeline.models import MeanTable, QuestionMean
from survey_pipeline.processors.parsing.areas import NKI_FACTOR_AREAS, OVERALL
from survey_pipeline.processors.parsing.scales import COMPOSITE_INDEX_PREFIX
from survey_pipeline.processors.parsing.tables_common import MIN_QUESTION_LENGTH, join_pending
from survey_pipeline.utilities.text_cleaning import clean_question_text, parse_decimal

logger = logging.getLogger(__name__)

TOTAL_INDEX_QUESTION = f"{COMPOSITE_INDEX_PREFIX}Helhetsbedömning"

_SECTION_START = re.compile(r"^NKI,?\s+HELHET", re.IGNORECASE)
_TOTAL_VALUES = re.compile(r"NKI,?\s+HELHET\s+(\d+)(?:\s+(\d+))?", re.IGNORECASE)
_FACTOR_ROW = re.compile(r"^([A-ZÅÄÖ][A-ZÅÄÖ/ ]+?)\s{2,}(\d+)\s+(\d+)")
_OVERVIEW_END = re.compile(r"^(?:MEDELINDEX|Antal\s+svarande)", re.IGNORECASE)
_QUESTION_TABLE = re.compile(r"^KVALITETSFAKTOR", re.IGNORECASE)
_FACTOR_HEADER_TAIL = re.compile(r"^\s+\d+\s*$")
_QUESTION_ROW = re.compile(r"(\d[.,]\d)\s+(\d+)\s+(\d+)\s*$")
_PCT_COLUMNS = re.compile(r"\s{3,}(\d{1,2}\s{2,})")
_TRAILING_PCTS = re.compile(r"(\s+\d{1,2})+\s*$")
_NOT_QUESTION = re.compile(
    r"^(?:KVALITETSFAKTOR|Delfr.ga|I tabellen|\d+\s+ScandInfo|Referens)", re.IGNORECASE
)
_NUMBER_COLUMNS = re.compile(r"^\d{1,3}\s{2,}\d{1,3}\s{2,}")


class Section(Enum):
    PREAMBLE = "preamble"
    INDEX_OVERVIEW = "index_overview"
    QUESTIONS = "questions"


def factor_heading(trimmed: str) -> Optional[str]:
    """Return the quality factor named by a "Trivsel  83" heading line."""
    upper = trimmed.upper()
    for factor in NKI_FACTOR_AREAS:
        if upper.startswith(factor) and _FACTOR_HEADER_TAIL.match(trimmed[len(factor):]):
            return factor
    return None


def _index_row(name: str, area: str, value: int, reference: Optional[int]) -> QuestionMean:
    return QuestionMean(
        question_text=name,
        question_area=area,
        mean_facility=value,
        mean_city=reference,
    )


def _question_text(line: str, mean_token: str) -> str:
    pct_start = _PCT_COLUMNS.search(line)
    if pct_start:
        return line[: pct_start.start()].strip()
    text = line[: line.rfind(mean_token)].strip()
    return _TRAILING_PCTS.sub("", text).strip()


def parse_mean_rows(layout_text: str) -> MeanTable:
    """Extract index rows and question means from the first entity section."""
    lines = layout_text.split("\n")
    rows: List[QuestionMean] = []
    section = Section.PREAMBLE
    sections_seen = 0
    in_question_table = False
    area = ""
    pending = ""

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            continue

        if _SECTION_START.match(trimmed):
            sections_seen += 1
            if sections_seen > 1:
                break
            section = Section.INDEX_OVERVIEW
            total = _TOTAL_VALUES.search(trimmed)
            if total:
                reference = int(total.group(2)) if total.group(2) else None
                rows.append(_index_row(TOTAL_INDEX_QUESTION, OVERALL, int(total.group(1)), reference))
            continue

        if section == Section.INDEX_OVERVIEW:
            factor_row = _FACTOR_ROW.match(trimmed)
            if factor_row:
                name = factor_row.group(1).strip()
                value = int(factor_row.group(2))
                if 0 <= value <= 100 and name in NKI_FACTOR_AREAS:
                    label = f"{COMPOSITE_INDEX_PREFIX}{name[0]}{name[1:].lower()}"
                    rows.append(
                        _index_row(label, NKI_FACTOR_AREAS[name], value, int(factor_row.group(3)))
                    )
                continue
            if _OVERVIEW_END.match(trimmed):
                section = Section.QUESTIONS
            continue

        if section != Section.QUESTIONS:
            continue

        if _QUESTION_TABLE.match(trimmed):
            in_question_table = True
            continue

        factor = factor_heading(trimmed)
        if factor:
            area = NKI_FACTOR_AREAS[factor]
            pending = ""
            continue

        if not in_question_table:
            continue

        question_row = _QUESTION_ROW.search(trimmed)
        if question_row:
            mean = parse_decimal(question_row.group(1))
            if mean is not None and 1.0 <= mean <= 10.0:
                text = join_pending(pending, _question_text(line, question_row.group(1)))
                text = clean_question_text(text)
                pending = ""
                if len(text) > MIN_QUESTION_LENGTH:
                    rows.append(QuestionMean(question_text=text, question_area=area, mean_facility=mean))
        elif (
            len(trimmed) > 10
            and not _NOT_QUESTION.match(trimmed)
            and not _NUMBER_COLUMNS.match(trimmed)
        ):
            pending = f"{pending} {trimmed}" if pending else trimmed

    logger.debug("NKI table: %d rows", len(rows))
    return MeanTable(rows=rows)
