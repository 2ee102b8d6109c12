"""Respondent demographics: child birth year, child gender, respondent gender."""

import re
from enum import Enum
from typing import Dict, Optional

from survey_pipeline.models import Demographics
from survey_pipeline.utilities.text_cleaning import starts_with_ellipsis

_KEY_VALUE = re.compile(r"^\s*(.+?)\s{2,}(\d+)\s*%")
_TERMINATORS = (
    re.compile(r"Svarsfrekvens", re.IGNORECASE),
    re.compile(r"Normer och v", re.IGNORECASE),
    re.compile(r"H.gst andel", re.IGNORECASE),
    re.compile(r"K.nsuppdelad", re.IGNORECASE),
    re.compile(r"Detta diagram", re.IGNORECASE),
    re.compile(r"Resultat per fr", re.IGNORECASE),
    re.compile(r"Viktigaste", re.IGNORECASE),
)


class DemographicSection(Enum):
    BIRTH_YEAR = "birth_year"
    CHILD_GENDER = "child_gender"
    RESPONDENT_GENDER = "respondent_gender"


_HEADERS = (
    (("födelseår", "fodelsear"), DemographicSection.BIRTH_YEAR),
    (("barnets kön", "barnets kon"), DemographicSection.CHILD_GENDER),
    (
        ("svarandens kön", "svarandens kon", "vårdnadshavarens kön"),
        DemographicSection.RESPONDENT_GENDER,
    ),
)

_VALID_KEYS = {
    DemographicSection.BIRTH_YEAR: re.compile(r"^\d{4}$"),
    DemographicSection.CHILD_GENDER: re.compile(
        r"^(?:flicka|pojke|annat|annan|ej bin|non.bin)", re.IGNORECASE
    ),
    DemographicSection.RESPONDENT_GENDER: re.compile(
        r"^(?:kvinna|man|annat|annan|ej bin|non.bin)", re.IGNORECASE
    ),
}


def _section_header(line: str) -> Optional[DemographicSection]:
    lower = line.lower()
    for keywords, section in _HEADERS:
        if any(keyword in lower for keyword in keywords):
            return section
    return None


def _is_terminator(trimmed: str) -> bool:
    return starts_with_ellipsis(trimmed) or any(p.search(trimmed) for p in _TERMINATORS)


def parse_demographics(layout_text: str) -> Demographics:
    """
    Read the three demographic bar charts as label -> percentage maps.

    A section stays open across blank lines and closes on a chart marker,
    a page header, or the first label that does not belong to it.
    """
    distributions: Dict[DemographicSection, Dict[str, int]] = {
        section: {} for section in DemographicSection
    }
    active: Optional[DemographicSection] = None

    for line in layout_text.split("\n"):
        header = _section_header(line)
        if header is not None:
            active = header
            continue

        trimmed = line.strip()
        if not trimmed or active is None:
            continue
        if _is_terminator(trimmed):
            active = None
            continue

        match = _KEY_VALUE.match(line)
        if not match:
            continue
        key = match.group(1).strip()
        if _VALID_KEYS[active].match(key):
            distributions[active][key] = int(match.group(2))
        else:
            active = None

    return Demographics(
        birth_year=distributions[DemographicSection.BIRTH_YEAR],
        child_gender=distributions[DemographicSection.CHILD_GENDER],
        respondent_gender=distributions[DemographicSection.RESPONDENT_GENDER],
    )
