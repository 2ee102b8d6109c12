import openpyxl
import pytest

from survey_pipeline.errors import ExtractionError
from survey_pipeline.models import ReportFormat, UnitLevel
from survey_pipeline.processors.parsing import xls_parser


def _row(**cells):
    row = [None] * 13
    for key, value in cells.items():
        row[int(key[1:])] = value
    return row


def children_grid(unit_name="Förskolan Solen"):
    grid = [_row() for _ in range(9)]
    grid[0] = _row(c6=unit_name)
    grid[1] = _row(c2=25)
    grid[2] = _row(c0="Norra distriktet")
    grid += [
        _row(c2=80, c4=75),
        _row(c0="Fr 1", c1="Jag trivs på\nförskolan", c2=2.6, c4=2.5, c8=5, c9=20, c10=75, c12=0),
        _row(c2=70, c4=72),
        _row(c0="Fr 2", c1="Jag har kompisar", c2="2,4", c4=2.3, c8=10, c9=30, c10=60),
        _row(),
        _row(c0="Summa"),
    ]
    return grid


def parents_grid(unit_name="Förskolan Månen"):
    grid = [_row() for _ in range(9)]
    grid[0] = _row(c7=unit_name)
    grid[1] = _row(c2=40)
    grid[2] = _row(c0="Södra distriktet")
    grid += [
        _row(c0="Fr 13:a-13:c", c1="TRYGGHET, index", c2=72, c4=70),
        _row(c0="Fr 14:a-14:b", c1="DELAKTIGHET", c2=65, c4=66),
        _row(),
        _row(
            c0="Fr 4:1",
            c1="Hur nöjd är du med... - personalens bemötande",
            c2=8.2,
            c4=8.0,
            c8=5,
            c9=15,
            c10=80,
            c12=0,
        ),
        _row(c0="Fr 10:6", c1="Ja eller nej"),
        _row(c0="Fr 4:2", c1="Fråga utanför modellen Maten", c2=7.5, c4=7.9),
        _row(c0="ANTAL SVAR"),
        _row(c0="Fr 4:3", c1="Efter antal", c2=9.0),
    ]
    return grid


def test_classify_sheet_levels():
    assert xls_parser.classify_sheet("T100000") == UnitLevel.DISTRICT
    assert xls_parser.classify_sheet("T100100") == UnitLevel.SCHOOL_GROUP
    assert xls_parser.classify_sheet("T100101") == UnitLevel.UNIT


def test_resolve_leaf_sheet_ids_skips_groups_with_units():
    names = ["Innehåll", "T100000", "T100100", "T100101", "TD100101", "T100200"]
    assert xls_parser.resolve_leaf_sheet_ids(names) == {"100101", "100200"}


def test_parse_children_sheet():
    unit = xls_parser.parse_children_sheet(children_grid(), "T100101")

    assert unit.unit_name == "Förskolan Solen"
    assert unit.district_name == "Norra distriktet"
    assert unit.respondents == 25
    assert unit.level == UnitLevel.UNIT
    assert [m.question_text for m in unit.means] == [
        "jag trivs på förskolan",
        "jag har kompisar",
    ]
    first = unit.means[0]
    assert (first.mean_value, first.mean_all_units) == (2.6, 2.5)
    assert (first.index_value, first.index_all_units) == (80, 75)
    assert unit.means[1].mean_value == 2.4
    assert unit.responses[0].pct_high == 75
    assert unit.responses[1].pct_no_answer is None


def test_parse_children_sheet_requires_rows_and_name():
    assert xls_parser.parse_children_sheet(children_grid()[:5], "T100101") is None
    assert xls_parser.parse_children_sheet(children_grid(unit_name=None), "T100101") is None


def test_parse_parents_sheet():
    unit = xls_parser.parse_parents_sheet(parents_grid(), "T100200")

    assert unit.unit_name == "Förskolan Månen"
    assert unit.level == UnitLevel.SCHOOL_GROUP
    assert [m.question_text for m in unit.means] == [
        "NKI TRYGGHET",
        "NKI DELAKTIGHET",
        "personalens bemötande",
        "maten",
    ]
    assert unit.means[0].mean_value == 72
    # Rows without a distribution only contribute a mean
    assert [r.question_text for r in unit.responses] == ["personalens bemötande"]
    assert unit.responses[0].pct_medium == 15


@pytest.mark.parametrize("marker_row", [8, 7])
def test_parse_parents_sheet_with_too_few_respondents(marker_row):
    grid = parents_grid()
    grid[marker_row] = _row(c1="INGET RESULTAT - för få svar")
    assert xls_parser.parse_parents_sheet(grid, "T100200") is None


def test_parse_workbook_grids_only_parses_leaves():
    sheets = {
        "Innehåll": [["Innehållsförteckning"]],
        "T100000": children_grid("Hela distriktet"),
        "T100100": children_grid("Grupp A"),
        "T100101": children_grid("Solen"),
        "TD100101": [[1, 2, 3]],
        "T100200": children_grid("Grupp B"),
    }
    units = xls_parser.parse_workbook_grids(sheets, "children")
    assert [u.unit_name for u in units] == ["Solen", "Grupp B"]


def test_parse_workbook_grids_rejects_unknown_category():
    with pytest.raises(ValueError):
        xls_parser.parse_workbook_grids({}, "staff")


def test_unit_to_report_maps_fields():
    unit = xls_parser.parse_children_sheet(children_grid(), "T100101")
    report = xls_parser.unit_to_report(unit, area_name="Norr")

    assert report.source_format == ReportFormat.SPREADSHEET
    assert report.facility_name == report.unit_name == "Förskolan Solen"
    assert report.area_name == "Norr"
    assert report.sheet_id == "T100101"
    assert report.means[0].mean_facility == 2.6
    assert report.means[0].mean_district == 2.5
    dist = report.distributions[0]
    assert (dist.pct_strongly_disagree, dist.pct_neither, dist.pct_strongly_agree) == (5, 20, 75)
    assert dist.pct_dont_know == 0


def test_resolve_workbook_path_prefers_converted_copy(tmp_path):
    legacy = tmp_path / "rapport.xls"
    legacy.write_bytes(b"")
    assert xls_parser.resolve_workbook_path(legacy) == legacy

    converted = tmp_path / "rapport.xlsx"
    converted.write_bytes(b"")
    assert xls_parser.resolve_workbook_path(legacy) == converted


def test_read_workbook_missing_file(tmp_path):
    with pytest.raises(ExtractionError):
        xls_parser.read_workbook(tmp_path / "saknas.xlsx")


def test_parse_spreadsheet_from_file(tmp_path):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "T100101"
    for row in children_grid():
        ws.append(row)
    path = tmp_path / "enkat.xlsx"
    wb.save(path)

    units = xls_parser.parse_spreadsheet(path, "children")

    assert len(units) == 1
    assert units[0].means[0].question_text == "jag trivs på förskolan"
    assert units[0].respondents == 25


def test_unit_to_report_skips_rows_without_means():
    grid = children_grid()
    grid[10] = _row(c0="Fr 1", c1="Jag trivs på förskolan", c8=5, c9=20, c10=75)
    unit = xls_parser.parse_children_sheet(grid, "T100101")

    report = xls_parser.unit_to_report(unit)

    assert [m.question_text for m in report.means] == ["jag har kompisar"]
    assert all(
        m.mean_facility is not None or m.mean_district is not None for m in report.means
    )
    assert report.distributions[0].question_text == "jag trivs på förskolan"
