from survey_pipeline.models import (
    ParsedReport,
    ParseOutcome,
    QuestionMean,
    ReportFormat,
)
from survey_pipeline.utilities import report_io


def _outcome(mean=4.516666):
    report = ParsedReport(
        source_format=ReportFormat.FIVE_POINT,
        facility_name="Förskolan Solen",
        scale="1-5",
        means=[
            QuestionMean(
                question_text="jag trivs",
                mean_facility=mean,
                historical_means={"2023": 4.123, "2022": None},
            )
        ],
    )
    return ParseOutcome(
        document_id="2024/Förskolan Solen.pdf",
        source_format=ReportFormat.FIVE_POINT,
        reports=[report],
    )


def test_outcome_to_dict_rounds_floats():
    data = report_io.outcome_to_dict(_outcome())
    mean = data["reports"][0]["means"][0]

    assert mean["mean_facility"] == 4.52
    assert mean["historical_means"] == {"2023": 4.12, "2022": None}
    assert data["source_format"] == "5point"


def test_dumps_outcome_is_deterministic():
    first = report_io.dumps_outcome(_outcome())
    second = report_io.dumps_outcome(_outcome())

    assert first == second
    assert "Förskolan Solen" in first
    assert first.index('"document_id"') < first.index('"reports"')


def test_output_filename():
    assert report_io.output_filename("2024/Förskolan Solen.pdf") == "2024_forskolan_solen.pdf.json"
    assert report_io.output_filename("a//b  c") == "a_b_c.json"
    assert report_io.output_filename("../x") == "x.json"
    assert report_io.output_filename("") == "untitled.json"


def test_write_and_load_outcome(tmp_path):
    outcome = _outcome()
    path = report_io.write_outcome(outcome, tmp_path / "out")

    assert path.name == "2024_forskolan_solen.pdf.json"
    assert path.read_text(encoding="utf-8").endswith("\n")

    loaded = report_io.load_outcome(path)
    assert loaded.document_id == outcome.document_id
    assert loaded.reports[0].means[0].mean_facility == 4.52
    assert loaded.reports[0].source_format == ReportFormat.FIVE_POINT


def test_load_report_from_dict():
    data = report_io.report_to_dict(_outcome().reports[0])
    assert report_io.load_report(data).facility_name == "Förskolan Solen"
