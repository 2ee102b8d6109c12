from survey_pipeline.utilities import text_cleaning
from survey_pipeline.utilities.text_cleaning import (
    clean_question_text,
    normalize_layout_text,
    parse_decimal,
    parse_pct,
    starts_with_ellipsis,
)


def test_parse_decimal_accepts_comma_separator():
    assert parse_decimal("4,52") == 4.52
    assert parse_decimal("4.52") == 4.52


def test_parse_decimal_uses_leading_number_only():
    assert parse_decimal("7,7 p") == 7.7
    assert parse_decimal("  3 ") == 3.0


def test_parse_decimal_rejects_non_numbers():
    assert parse_decimal(None) is None
    assert parse_decimal("") is None
    assert parse_decimal("-") is None
    assert parse_decimal("abc") is None
    assert parse_decimal(True) is None


def test_parse_decimal_passes_numbers_through():
    assert parse_decimal(4) == 4.0
    assert parse_decimal(3.25) == 3.25


def test_parse_pct():
    assert parse_pct("47%") == 47.0
    assert parse_pct("4,5 %") == 4.5
    assert parse_pct("47") is None
    assert parse_pct("") is None


def test_clean_question_text_strips_ellipsis_and_lowercases_first_char():
    assert clean_question_text("...Jag känner mig  trygg") == "jag känner mig trygg"
    assert clean_question_text("… … Mitt barn trivs") == "mitt barn trivs"


def test_clean_question_text_is_idempotent():
    once = clean_question_text("  ..Personalen   bemöter mig väl ")
    assert clean_question_text(once) == once


def test_clean_question_text_caps_length():
    text = "a" * (text_cleaning.MAX_QUESTION_LENGTH + 50)
    assert len(clean_question_text(text)) == text_cleaning.MAX_QUESTION_LENGTH


def test_clean_question_text_empty():
    assert clean_question_text("") == ""
    assert clean_question_text("...") == ""


def test_normalize_layout_text_composes_and_keeps_line_count():
    text = "Förskola\fpage\r\nA B"
    normalized = normalize_layout_text(text)

    assert "Förskola" in normalized
    assert "\f" not in normalized
    assert "A B" in normalized
    assert normalized.count("\n") == text.count("\n")


def test_normalize_layout_text_is_idempotent():
    once = normalize_layout_text("Vården x")
    assert normalize_layout_text(once) == once


def test_starts_with_ellipsis():
    assert starts_with_ellipsis("…jag")
    assert starts_with_ellipsis("...jag")
    assert not starts_with_ellipsis("jag")
