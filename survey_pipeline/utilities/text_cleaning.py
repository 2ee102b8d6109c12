"""Helpers for cleaning extracted report text and parsing printed numbers."""

import re
import unicodedata
from typing import Optional

# Question texts longer than this are cut; downstream keys on the full text.
MAX_QUESTION_LENGTH = 500

_LEADING_ELLIPSIS = re.compile(r"^(?:(?:…|\.{2,})\s*)+")
_WHITESPACE = re.compile(r"\s+")
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_PCT = re.compile(r"(\d+(?:[.,]\d+)?)\s*%")

# pdftotext artefacts: page breaks and non-breaking/thin spaces
_LAYOUT_TRANSLATE = str.maketrans(
    {
        "\f": "",
        "\r": "",
        "\u00a0": " ",
        "\u2007": " ",
        "\u202f": " ",
    }
)


def normalize_layout_text(text: str) -> str:
    """Normalize layout text before any line-oriented parsing.

    Composes decomposed letters (``a`` + combining ring -> ``å``) so that
    area headings and markers match, and drops page-break characters
    without changing the number of lines.
    """
    if not text:
        return ""
    return unicodedata.normalize("NFC", text).translate(_LAYOUT_TRANSLATE)


def parse_decimal(value) -> Optional[float]:
    """Parse a printed decimal that may use a comma as separator.

    Like a lenient float parse: only the leading number counts, so
    ``"4,52"`` -> 4.52 and ``"7,7 p"`` -> 7.7. Returns None when there is
    no leading number.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).replace(",", ".", 1).strip()
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def parse_pct(value: str) -> Optional[float]:
    """Parse a percentage string like ``"47%"`` or ``"4,5 %"`` into a number."""
    if not value:
        return None
    match = _PCT.search(value)
    if not match:
        return None
    return parse_decimal(match.group(1))


def clean_question_text(text: str) -> str:
    """Normalize question text into the key shared by every parser.

    Strips leading ellipsis markers, collapses whitespace, lowercases the
    first character (table rows print "Jag ..." where charts print
    "...jag") and caps the length. Applying it twice changes nothing.
    """
    if not text:
        return ""
    cleaned = _WHITESPACE.sub(" ", text).strip()
    cleaned = _LEADING_ELLIPSIS.sub("", cleaned).strip()
    if cleaned:
        cleaned = cleaned[0].lower() + cleaned[1:]
    if len(cleaned) > MAX_QUESTION_LENGTH:
        cleaned = cleaned[:MAX_QUESTION_LENGTH].rstrip()
    return cleaned


def starts_with_ellipsis(text: str) -> bool:
    """Check for the ellipsis glyph that prefixes chart question labels."""
    return text.startswith("…") or text.startswith("...")
