"""Report header metadata: facility name, response rate and respondent counts."""

import re
from typing import Optional, Tuple

from survey_pipeline.models import ReportMetadata
from survey_pipeline.utilities.text_cleaning import parse_decimal

_FACILITY = re.compile(r"Rapport\s+för:\s*\n\s*(.+)")

# Response rate wording changed between eras; tried in order
_RESPONSE_RATE = re.compile(r"[Ss]varsfrekvens(?:en)?\s+(?:om\s+)?(\d+)\s*%")
_RESPONSE_RATE_DECIMAL = re.compile(r"allts[aå]\s+(\d+(?:[.,]\d+)?)\s*%")
_RESPONSE_SHARE = re.compile(r"svarsandel\s+(\d+)\s*%")

_RESPONDENTS_OF_INVITED = re.compile(r"(\d+)\s+vårdnadshavare\s+av\s+(\d+)")
_RESPONDENTS_WITH_SHARE = re.compile(
    r"Antal\s+svarande,?\s*n\s*=\s*(\d+)\s*\(svarsandel\s+(\d+)\s*%\)"
)
_RESPONDENTS = re.compile(r"\bn\s*=\s*(\d+)")


def parse_response_rate(text: str) -> Optional[float]:
    match = _RESPONSE_RATE.search(text)
    if match:
        return float(int(match.group(1)))
    match = _RESPONSE_RATE_DECIMAL.search(text)
    if match:
        return float(round(parse_decimal(match.group(1))))
    match = _RESPONSE_SHARE.search(text)
    if match:
        return float(int(match.group(1)))
    return None


def parse_respondents(text: str) -> Tuple[Optional[int], Optional[int], Optional[float]]:
    """
    Find respondent counts in the report text.

    Returns:
        Tuple of (respondents, total_invited, response_rate); the rate is
        only set by the "Antal svarande, n = X (svarsandel Y%)" wording.
    """
    flat = text.replace("\n", " ")

    match = _RESPONDENTS_OF_INVITED.search(flat)
    if match:
        return int(match.group(1)), int(match.group(2)), None

    match = _RESPONDENTS_WITH_SHARE.search(flat)
    if match:
        return int(match.group(1)), None, float(int(match.group(2)))

    match = _RESPONDENTS.search(flat)
    if match:
        return int(match.group(1)), None, None
    return None, None, None


def parse_metadata(layout_text: str) -> ReportMetadata:
    """Read header metadata from a report's layout text."""
    text = layout_text or ""
    facility = _FACILITY.search(text)
    response_rate = parse_response_rate(text)
    respondents, total_invited, share = parse_respondents(text)
    if not response_rate and share is not None:
        response_rate = share

    return ReportMetadata(
        facility_name=facility.group(1).strip() if facility else "",
        response_rate=response_rate,
        respondents=respondents,
        total_invited=total_invited,
    )
