"""
xls_parser.py - Spreadsheet reports (2007-2009).

A workbook holds one ``T<id>`` sheet per district, school group and unit
(``TD<id>`` sheets carry chart data and are ignored). The id encodes the
hierarchy:

    ...0000   district total
    ...XX00   school group
    ...XXNN   unit

Only leaf sheets are parsed: units, and school groups without any unit
below them. Two survey layouts exist, one for the children's survey
(1-3 scale) and one for the parents' survey (1-10 scale plus composite
indices).
"""

import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from survey_pipeline.errors import ExtractionError
from survey_pipeline.models import (
    ParsedReport,
    QuestionMean,
    ReportFormat,
    ResponseDistribution,
    UnitLevel,
    XlsMeanRow,
    XlsResponseRow,
    XlsUnitData,
)
from survey_pipeline.processors.parsing.scales import COMPOSITE_INDEX_PREFIX
from survey_pipeline.utilities.text_cleaning import clean_question_text, parse_decimal

logger = logging.getLogger(__name__)

Grid = List[List[Any]]

CONTENTS_SHEET = "Innehåll"
NO_UNITS_NOTE = "No unit data (too few respondents)"

# Children's survey layout
FIRST_DATA_ROW = 9
MIN_SHEET_ROWS = 10
# Parents' survey layout
NO_RESULT_ROWS = (8, 7)

_CHILD_QUESTION_LABEL = re.compile(r"^Fr\s+\d+$", re.IGNORECASE)
_PARENT_FACTOR_LABEL = re.compile(r"^Fr\s+\d+:", re.IGNORECASE)
_PARENT_DETAIL_START = re.compile(r"^Fr\s+\d+:[a-zA-Z0-9]$", re.IGNORECASE)
_PARENT_DETAIL_LABEL = re.compile(r"^Fr\s+\d+:[a-zA-Z0-9]", re.IGNORECASE)
_PARENT_YES_NO = re.compile(r"^Fr\s+10:6$", re.IGNORECASE)
_MEAN_ROW = re.compile(r"^MEDEL", re.IGNORECASE)
_COUNT_ROW = re.compile(r"^ANTAL", re.IGNORECASE)
_NO_RESULT_MARKER = "INGET RESULTAT"
_PARENT_PREFIXES = (
    re.compile(r"^Fråga utanför modellen\s*", re.IGNORECASE),
    re.compile(r"^Hur nöjd är du med[….]*\s*", re.IGNORECASE),
    re.compile(r"^-\s+"),
)


def _cell(grid: Grid, row: int, col: int) -> Any:
    if row >= len(grid) or col >= len(grid[row]):
        return None
    return grid[row][col]


def _cell_text(grid: Grid, row: int, col: int) -> str:
    value = _cell(grid, row, col)
    if value is None:
        return ""
    return str(value).replace("\n", " ").strip()


def _cell_number(grid: Grid, row: int, col: int) -> Optional[float]:
    value = _cell(grid, row, col)
    if value is None or value == "":
        return None
    return parse_decimal(value)


def _respondents(grid: Grid) -> Optional[int]:
    value = _cell_number(grid, 1, 2)
    return int(value) if value is not None else None


def sheet_number(sheet_name: str) -> str:
    return sheet_name[1:] if sheet_name.startswith("T") else sheet_name


def is_data_sheet(sheet_name: str) -> bool:
    return (
        sheet_name.startswith("T")
        and not sheet_name.startswith("TD")
        and sheet_name != CONTENTS_SHEET
    )


def classify_sheet(sheet_name: str) -> UnitLevel:
    number = sheet_number(sheet_name)
    if number.endswith("0000"):
        return UnitLevel.DISTRICT
    if number.endswith("00"):
        return UnitLevel.SCHOOL_GROUP
    return UnitLevel.UNIT


def resolve_leaf_sheet_ids(sheet_names: List[str]) -> Set[str]:
    """
    Pick the finest-granularity sheets of a workbook.

    Args:
        sheet_names: All sheet names in the workbook

    Returns:
        Numeric ids of unit sheets and of school groups with no unit below them
    """
    ids = [sheet_number(name) for name in sheet_names if is_data_sheet(name)]
    leaves = set()
    for sheet_id in ids:
        level = classify_sheet(sheet_id)
        if level == UnitLevel.DISTRICT:
            continue
        if level == UnitLevel.UNIT:
            leaves.add(sheet_id)
            continue
        prefix = sheet_id[:-2]
        has_units = any(
            other != sheet_id and other.startswith(prefix) and not other.endswith("00")
            for other in ids
        )
        if not has_units:
            leaves.add(sheet_id)
    return leaves


def parse_children_sheet(grid: Grid, sheet_name: str) -> Optional[XlsUnitData]:
    """Parse the children's survey layout: alternating index/question row pairs."""
    if len(grid) < MIN_SHEET_ROWS:
        return None
    unit_name = _cell_text(grid, 0, 6)
    if not unit_name:
        return None

    means: List[XlsMeanRow] = []
    responses: List[XlsResponseRow] = []
    for index_row in range(FIRST_DATA_ROW, len(grid) - 1, 2):
        question_row = index_row + 1
        if not _CHILD_QUESTION_LABEL.match(_cell_text(grid, question_row, 0)):
            break
        raw_text = _cell_text(grid, question_row, 1)
        if not raw_text:
            break
        question_text = clean_question_text(raw_text)

        means.append(
            XlsMeanRow(
                question_text=question_text,
                mean_value=_cell_number(grid, question_row, 2),
                mean_all_units=_cell_number(grid, question_row, 4),
                index_value=_cell_number(grid, index_row, 2),
                index_all_units=_cell_number(grid, index_row, 4),
            )
        )
        responses.append(
            XlsResponseRow(
                question_text=question_text,
                pct_low=_cell_number(grid, question_row, 8),
                pct_medium=_cell_number(grid, question_row, 9),
                pct_high=_cell_number(grid, question_row, 10),
                pct_no_answer=_cell_number(grid, question_row, 12),
            )
        )

    if not means:
        return None
    return XlsUnitData(
        sheet_id=sheet_name,
        unit_name=unit_name,
        district_name=_cell_text(grid, 2, 0),
        respondents=_respondents(grid),
        level=classify_sheet(sheet_name),
        means=means,
        responses=responses,
    )


def _strip_parent_prefixes(text: str) -> str:
    for prefix in _PARENT_PREFIXES:
        text = prefix.sub("", text)
    return text


def parse_parents_sheet(grid: Grid, sheet_name: str) -> Optional[XlsUnitData]:
    """
    Parse the parents' survey layout.

    Factor summary rows ("Fr 13:a-13:c", upper-case factor name) become
    composite-index rows; detail rows ("Fr 4:1") carry 1-10 means and a
    low/medium/high/no-opinion distribution.
    """
    if len(grid) < MIN_SHEET_ROWS:
        return None
    unit_name = _cell_text(grid, 0, 6) or _cell_text(grid, 0, 7)
    if not unit_name:
        return None

    if any(_NO_RESULT_MARKER in _cell_text(grid, row, 1) for row in NO_RESULT_ROWS):
        logger.debug("Sheet %s has too few respondents", sheet_name)
        return None

    summary_start = next(
        (
            row
            for row in range(7, min(len(grid), 15))
            if _PARENT_FACTOR_LABEL.match(_cell_text(grid, row, 0))
        ),
        -1,
    )
    if summary_start < 0:
        return None

    means: List[XlsMeanRow] = []
    responses: List[XlsResponseRow] = []

    for row in range(summary_start, min(len(grid), summary_start + 20)):
        label = _cell_text(grid, row, 0)
        name = _cell_text(grid, row, 1)
        if _MEAN_ROW.match(name) or (not label and not name):
            break
        if not _PARENT_FACTOR_LABEL.match(label):
            continue
        factor = name.split(",")[0].strip()
        means.append(
            XlsMeanRow(
                question_text=f"{COMPOSITE_INDEX_PREFIX}{factor}",
                mean_value=_cell_number(grid, row, 2),
                mean_all_units=_cell_number(grid, row, 4),
            )
        )

    search_from = summary_start + len(means)
    detail_start = next(
        (
            row
            for row in range(search_from, min(len(grid), search_from + 15))
            if _PARENT_DETAIL_START.match(_cell_text(grid, row, 0))
        ),
        -1,
    )

    if detail_start > 0:
        for row in range(detail_start, len(grid)):
            label = _cell_text(grid, row, 0)
            raw_text = _cell_text(grid, row, 1)
            if _COUNT_ROW.match(label) or _COUNT_ROW.match(raw_text):
                break
            if not _PARENT_DETAIL_LABEL.match(label) or _PARENT_YES_NO.match(label):
                continue
            if not raw_text:
                continue

            question_text = clean_question_text(_strip_parent_prefixes(raw_text))
            means.append(
                XlsMeanRow(
                    question_text=question_text,
                    mean_value=_cell_number(grid, row, 2),
                    mean_all_units=_cell_number(grid, row, 4),
                )
            )
            response = XlsResponseRow(
                question_text=question_text,
                pct_low=_cell_number(grid, row, 8),
                pct_medium=_cell_number(grid, row, 9),
                pct_high=_cell_number(grid, row, 10),
                pct_no_answer=_cell_number(grid, row, 12),
            )
            if any(v is not None for v in (response.pct_low, response.pct_medium, response.pct_high)):
                responses.append(response)

    if not means:
        return None
    return XlsUnitData(
        sheet_id=sheet_name,
        unit_name=unit_name,
        district_name=_cell_text(grid, 2, 0),
        respondents=_respondents(grid),
        level=classify_sheet(sheet_name),
        means=means,
        responses=responses,
    )


SHEET_PARSERS: Dict[str, Callable[[Grid, str], Optional[XlsUnitData]]] = {
    "children": parse_children_sheet,
    "parents": parse_parents_sheet,
}


def parse_workbook_grids(sheets: Dict[str, Grid], report_category: str = "children") -> List[XlsUnitData]:
    """
    Parse every leaf sheet of an already-read workbook.

    Args:
        sheets: Sheet name -> rows of cell values, in workbook order
        report_category: "children" or "parents"

    Returns:
        One XlsUnitData per leaf sheet with data, in workbook order
    """
    parse_sheet = SHEET_PARSERS.get(report_category)
    if parse_sheet is None:
        raise ValueError(f"Unknown report category: {report_category}")

    leaves = resolve_leaf_sheet_ids(list(sheets))
    units = []
    for name, grid in sheets.items():
        if not is_data_sheet(name) or sheet_number(name) not in leaves:
            continue
        unit = parse_sheet(grid, name)
        if unit is not None:
            units.append(unit)
    logger.info("Parsed %d of %d leaf sheets", len(units), len(leaves))
    return units


def resolve_workbook_path(path: Union[str, Path]) -> Path:
    """Legacy ``.xls`` files are read from a converted ``.xlsx`` beside them."""
    path = Path(path)
    if path.suffix.lower() == ".xls":
        converted = path.with_name(path.name + "x")
        if converted.exists():
            return converted
    return path


def read_workbook(path: Union[str, Path]) -> Dict[str, Grid]:
    """Read all sheets as 0-indexed grids of cell values."""
    resolved = resolve_workbook_path(path)
    try:
        wb = openpyxl.load_workbook(str(resolved), read_only=True, data_only=True)
    except (InvalidFileException, OSError, KeyError) as e:
        raise ExtractionError(f"Cannot read workbook {resolved}: {e}") from e

    try:
        return {
            name: [list(row) for row in wb[name].iter_rows(values_only=True)]
            for name in wb.sheetnames
        }
    finally:
        wb.close()


def parse_spreadsheet(path: Union[str, Path], report_category: str = "children") -> List[XlsUnitData]:
    return parse_workbook_grids(read_workbook(path), report_category)


def unit_to_report(unit: XlsUnitData, area_name: str = "") -> ParsedReport:
    """Convert one leaf unit into the normalized report record."""
    means = [
        QuestionMean(
            question_text=row.question_text,
            mean_facility=row.mean_value,
            mean_district=row.mean_all_units,
        )
        for row in unit.means
        if row.mean_value is not None or row.mean_all_units is not None
    ]
    distributions = [
        ResponseDistribution(
            question_text=row.question_text,
            pct_strongly_disagree=row.pct_low,
            pct_neither=row.pct_medium,
            pct_strongly_agree=row.pct_high,
            pct_dont_know=row.pct_no_answer,
        )
        for row in unit.responses
    ]
    return ParsedReport(
        source_format=ReportFormat.SPREADSHEET,
        facility_name=unit.unit_name,
        area_name=area_name,
        respondents=unit.respondents,
        means=means,
        distributions=distributions,
        sheet_id=unit.sheet_id,
        unit_name=unit.unit_name,
        district_name=unit.district_name,
        level=unit.level,
    )
