"""Layout-era detection from incidental report vocabulary.

Reports never declare a version, so the era is inferred from wording that
changed with the survey instrument. Rules are checked in order and the first
match wins; the 7-point family is split afterwards because the newer variant's
fingerprint contains the older one's.
"""

import re
from pathlib import Path
from typing import Optional

from survey_pipeline.models import ReportFormat

SPREADSHEET_EXTENSIONS = (".xls", ".xlsx")

_NKI_TOTAL = re.compile(r"\bNKI,?\s+HELHET\b", re.IGNORECASE)
_NKI_FACTOR_HEADER = re.compile(r"Kvalitetsfaktor.*Skalsteg", re.IGNORECASE)
_SEVEN_POINT_SCALE = re.compile(r"sjugradig", re.IGNORECASE)
_SEVEN_POINT_ANCHOR = re.compile(r"Otillräcklig", re.IGNORECASE)
_RESULTS_PER_QUESTION = re.compile(r"Resultat\s+per\s+fråga", re.IGNORECASE)


def is_spreadsheet(filename: Optional[str]) -> bool:
    return bool(filename) and Path(filename).suffix.lower() in SPREADSHEET_EXTENSIONS


def detect_format(layout_text: str, filename: Optional[str] = None) -> ReportFormat:
    """Classify a document into exactly one of the five format tags."""
    if is_spreadsheet(filename):
        return ReportFormat.SPREADSHEET

    text = layout_text or ""
    if _NKI_TOTAL.search(text) or _NKI_FACTOR_HEADER.search(text):
        return ReportFormat.NKI

    if _SEVEN_POINT_SCALE.search(text) or _SEVEN_POINT_ANCHOR.search(text):
        if _RESULTS_PER_QUESTION.search(text):
            return ReportFormat.SEVEN_POINT
        return ReportFormat.ECERS

    return ReportFormat.FIVE_POINT
