import pytest

from survey_pipeline.models import ReportFormat
from survey_pipeline.processors.parsing.format_detect import detect_format, is_spreadsheet


@pytest.mark.parametrize("filename", ["report.xls", "REPORT.XLSX", "dir/x.xlsx"])
def test_spreadsheet_extension_wins(filename):
    assert detect_format("NKI, HELHET 72", filename) == ReportFormat.SPREADSHEET


def test_is_spreadsheet():
    assert is_spreadsheet("a.xls")
    assert not is_spreadsheet("a.pdf")
    assert not is_spreadsheet(None)


def test_composite_index_markers():
    assert detect_format("NKI, HELHET   72  70") == ReportFormat.NKI
    assert detect_format("nki helhet") == ReportFormat.NKI
    assert detect_format("KVALITETSFAKTOR    Skalsteg") == ReportFormat.NKI


def test_composite_index_checked_before_seven_point():
    assert detect_format("Otillräcklig\nNKI, HELHET 72") == ReportFormat.NKI


def test_seven_point_family_split():
    assert detect_format("Otillräcklig ... Utmärkt\nResultat per fråga") == ReportFormat.SEVEN_POINT
    assert detect_format("en sjugradig skala") == ReportFormat.ECERS
    assert detect_format("Otillräcklig     Utmärkt") == ReportFormat.ECERS


def test_default_is_five_point():
    assert detect_format("Resultat per fråga\nNormer och värden") == ReportFormat.FIVE_POINT
    assert detect_format("") == ReportFormat.FIVE_POINT


def test_detection_is_deterministic():
    text = "Förskoleenkät\nsjugradig\nResultat per fråga"
    assert detect_format(text) == detect_format(text)
