import os
from pathlib import Path

import pytest

import survey_pipeline.processors.parsing.report_parser as report_parser
from survey_pipeline.errors import ExtractionError
from survey_pipeline.models import ReportFormat, TextItem, UnitLevel, XlsMeanRow, XlsUnitData
from survey_pipeline.processors.parsing.extraction import ExtractedPdf
from survey_pipeline.utilities.report_io import load_outcome

HEADER = "                              GR      Göteborg      District      School      2024      2023"

REPORT_TEXT = "\n".join(
    [
        "Barnets kön",
        "Flicka      48%",
        "Pojke       52%",
        "",
        "Resultat per fråga",
        "Normer och värden",
        HEADER,
        "Jag känner mig trygg      4,10      4,20      4,30      4,52      4,40      4,35",
    ]
)


def _unit(name="Solen"):
    return XlsUnitData(
        sheet_id="T100101",
        unit_name=name,
        level=UnitLevel.UNIT,
        means=[XlsMeanRow(question_text="jag trivs", mean_value=2.5)],
    )


def _pdf(tmp_path, name="rapport.pdf"):
    path = tmp_path / name
    path.write_bytes(b"%PDF-1.4")
    return path


def _fake_extract(text, pages=2):
    return lambda _path: ExtractedPdf(layout_text=text, items=[], page_count=pages)


def test_build_pdf_report_merges_tables_and_charts():
    report = report_parser.build_pdf_report(REPORT_TEXT, [], facility_name="Solen")

    assert report.source_format == ReportFormat.FIVE_POINT
    assert report.scale == "1-5"
    assert report.facility_name == "Solen"
    assert [m.question_text for m in report.means] == ["jag känner mig trygg"]
    assert report.means[0].mean_facility == 4.52
    assert report.means[0].facility_pct == pytest.approx(88.0)
    assert report.historical_years == [2024, 2023]
    assert report.demographics.child_gender == {"Flicka": 48, "Pojke": 52}


def test_build_pdf_report_ignores_bar_rows_without_gender_chart():
    items = [
        TextItem(text="3. Förskolan har bra lokaler", x=10, y=100),
        TextItem(text="10%", x=300, y=100),
        TextItem(text="30%", x=350, y=100),
        TextItem(text="60%", x=400, y=100),
    ]
    report = report_parser.build_pdf_report(REPORT_TEXT, items)

    assert report.gender_splits == []


def test_build_pdf_report_is_repeatable():
    assert report_parser.build_pdf_report(REPORT_TEXT) == report_parser.build_pdf_report(
        REPORT_TEXT
    )


def test_process_document_without_filepath():
    parser = report_parser.ReportParseProcessor()
    result = parser.process_document({"id": "doc-1"})

    assert result["success"] is False
    assert result["error"] == "No filepath"
    assert result["outcome"].error == "No filepath"
    assert result["stage"] == {"stage": "parse", "success": False, "error": "No filepath"}


def test_process_document_missing_file(tmp_path):
    result = report_parser.ReportParseProcessor().process_document(
        {"id": "doc-2", "filepath": str(tmp_path / "saknas.pdf")}
    )
    assert result["success"] is False
    assert result["error"].startswith("File not found")


def test_process_document_unsupported_extension(tmp_path):
    path = tmp_path / "rapport.docx"
    path.write_bytes(b"doc")

    result = report_parser.ReportParseProcessor().process_document(
        {"id": "doc-3", "filepath": str(path)}
    )

    assert result["success"] is False
    assert result["error"] == "Unsupported file type: .docx"


def test_process_pdf_writes_outcome(monkeypatch, tmp_path):
    monkeypatch.setattr(report_parser, "extract_pdf", _fake_extract(REPORT_TEXT))
    output_dir = tmp_path / "out"
    parser = report_parser.ReportParseProcessor(output_dir=str(output_dir))

    result = parser.process_document(
        {"id": "2024/rapport.pdf", "filepath": str(_pdf(tmp_path)), "area_name": "Norr"}
    )

    assert result["success"] is True
    assert result["error"] is None
    outcome = result["outcome"]
    assert outcome.source_format == ReportFormat.FIVE_POINT
    assert outcome.reports[0].area_name == "Norr"
    stage = result["stage"]
    assert stage["source_format"] == "5point"
    assert stage["report_count"] == 1
    assert "note" not in stage
    assert Path(stage["output_path"]).name == "2024_rapport.pdf.json"
    assert load_outcome(stage["output_path"]) == outcome


def test_process_pdf_without_text_is_noted(monkeypatch, tmp_path):
    monkeypatch.setattr(report_parser, "extract_pdf", _fake_extract("  \n\f"))

    result = report_parser.ReportParseProcessor().process_document(
        {"id": "scan", "filepath": str(_pdf(tmp_path))}
    )

    assert result["success"] is True
    assert result["outcome"].reports == []
    assert result["outcome"].note == report_parser.NO_TEXT_NOTE


def test_process_pdf_extraction_error(monkeypatch, tmp_path):
    def _raise(_path):
        raise ExtractionError("pdftotext failed")

    monkeypatch.setattr(report_parser, "extract_pdf", _raise)

    result = report_parser.ReportParseProcessor().process_document(
        {"id": "bad", "filepath": str(_pdf(tmp_path))}
    )

    assert result["success"] is False
    assert result["error"] == "pdftotext failed"


def test_process_pdf_unexpected_error(monkeypatch, tmp_path):
    def _raise(_path):
        raise RuntimeError("boom")

    monkeypatch.setattr(report_parser, "extract_pdf", _raise)

    result = report_parser.ReportParseProcessor().process_document(
        {"id": "bad", "filepath": str(_pdf(tmp_path))}
    )

    assert result["error"] == "RuntimeError: boom"


def test_process_spreadsheet_sets_scale_per_category(monkeypatch, tmp_path):
    calls = []

    def _parse(path, category):
        calls.append(category)
        return [_unit("Solen"), _unit("Månen")]

    monkeypatch.setattr(report_parser, "parse_spreadsheet", _parse)
    path = _pdf(tmp_path, "enkat.xls")

    result = report_parser.ReportParseProcessor().process_document(
        {"id": "enkat.xls", "filepath": str(path), "report_category": "parents"}
    )

    assert calls == ["parents"]
    outcome = result["outcome"]
    assert outcome.source_format == ReportFormat.SPREADSHEET
    assert [r.facility_name for r in outcome.reports] == ["Solen", "Månen"]
    assert all(r.scale == "1-10" for r in outcome.reports)
    assert outcome.reports[0].means[0].facility_pct == pytest.approx(16.67)


def test_process_spreadsheet_without_units(monkeypatch, tmp_path):
    monkeypatch.setattr(report_parser, "parse_spreadsheet", lambda *_: [])

    result = report_parser.ReportParseProcessor().process_document(
        {"id": "enkat.xlsx", "filepath": str(_pdf(tmp_path, "enkat.xlsx"))}
    )

    assert result["success"] is True
    assert result["outcome"].note == report_parser.NO_UNITS_NOTE
    assert result["stage"]["report_count"] == 0


def test_process_spreadsheet_unknown_category(tmp_path):
    result = report_parser.ReportParseProcessor().process_document(
        {
            "id": "enkat.xls",
            "filepath": str(_pdf(tmp_path, "enkat.xls")),
            "report_category": "staff",
        }
    )
    assert result["success"] is False
    assert result["error"] == "Unknown report category: staff"


def test_relative_paths_resolve_under_data_mount(monkeypatch, tmp_path):
    monkeypatch.setattr(report_parser.config, "DATA_MOUNT_PATH", str(tmp_path))
    parser = report_parser.ReportParseProcessor()

    resolved = parser._resolve_data_filepath("2024/nonexistent-report.pdf")

    assert resolved == os.path.join(str(tmp_path), "2024/nonexistent-report.pdf")
    assert parser._resolve_data_filepath("/abs/report.pdf") == "/abs/report.pdf"


def test_setup_creates_output_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(report_parser.shutil, "which", lambda _name: None)
    output_dir = tmp_path / "parsed"

    with report_parser.ReportParseProcessor(output_dir=str(output_dir)) as parser:
        assert parser._initialized
    assert output_dir.is_dir()
