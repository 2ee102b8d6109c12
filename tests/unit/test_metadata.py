from survey_pipeline.processors.parsing.metadata import (
    parse_metadata,
    parse_respondents,
    parse_response_rate,
)


def test_parse_metadata_five_point_header():
    text = "Rapport för:\n   Förskolan Solen\n\nSvarsfrekvens 80%\n32 vårdnadshavare av 40 har svarat"
    metadata = parse_metadata(text)

    assert metadata.facility_name == "Förskolan Solen"
    assert metadata.response_rate == 80
    assert metadata.respondents == 32
    assert metadata.total_invited == 40


def test_response_rate_wordings():
    assert parse_response_rate("svarsfrekvensen om 75 %") == 75
    assert parse_response_rate("det var alltså 62,7% som svarade") == 63
    assert parse_response_rate("(svarsandel 24%)") == 24
    assert parse_response_rate("inget här") is None


def test_respondents_across_line_break():
    assert parse_respondents("12 vårdnadshavare\nav 30") == (12, 30, None)


def test_respondents_with_share_sets_rate():
    assert parse_respondents("Antal svarande, n = 688 (svarsandel 24%)") == (688, None, 24.0)
    metadata = parse_metadata("Antal svarande, n = 688 (svarsandel 24%)")
    assert metadata.respondents == 688
    assert metadata.response_rate == 24


def test_plain_respondent_count():
    assert parse_respondents("Förskolan Solen, n=15") == (15, None, None)


def test_empty_text():
    metadata = parse_metadata("")
    assert metadata.facility_name == ""
    assert metadata.response_rate is None
    assert metadata.respondents is None
