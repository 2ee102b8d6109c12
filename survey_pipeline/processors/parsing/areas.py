"""Question-area vocabularies per era and their canonical names.

Every era prints its own thematic headings; all of them are folded onto the
same five canonical areas so questions can be compared across years.
"""

from typing import Dict, Optional, Tuple

SAFETY = "Trygghet och trivsel"
LEARNING = "Utveckling och lärande"
INFLUENCE = "Inflytande"
RELATIONS = "Relation och kommunikation"
OVERALL = "Helhetsomdöme"

CANONICAL_AREAS: Tuple[str, ...] = (SAFETY, LEARNING, INFLUENCE, RELATIONS, OVERALL)

AREA_ORDER: Dict[str, int] = {area: i + 1 for i, area in enumerate(CANONICAL_AREAS)}

AREA_HEADINGS_5POINT: Tuple[str, ...] = (
    "Normer och värden",
    "Värdegrund och uppdrag",
    "Omsorg, utveckling och lärande",
    "Barns inflytande och delaktighet",
    "Förskola och hem",
    "Helhetsomdöme",
)

AREA_HEADINGS_7POINT: Tuple[str, ...] = (
    "TRYGGHET OCH GEMENSKAP",
    "INFORMATION OCH INFLYTANDE",
    "FÖRUTSÄTTNINGAR",
    "PEDAGOGIK",
    "KONTINUITET",
)

AREA_HEADINGS_ECERS: Tuple[str, ...] = ("Förutsättningar", "Lärande", "Helhetsbedömning")

# Composite-index quality factors (upper case as printed) -> canonical area
NKI_FACTOR_AREAS: Dict[str, str] = {
    "HELHET": OVERALL,
    "TRIVSEL": SAFETY,
    "TRYGGHET": SAFETY,
    "BEMÖTANDE": RELATIONS,
    "PEDAGOGISK HANDLEDNING": LEARNING,
    "PEDAGOGISK PROCESS": LEARNING,
    "SÄKERHET": SAFETY,
    "DELAKTIGHET/INFLYTANDE": INFLUENCE,
    "DELAKTIGHET/INFYTANDE": INFLUENCE,
    "MILJÖ": OVERALL,
    "FÖRSKOLEMILJÖ": OVERALL,
    "MÅLTIDER": OVERALL,
    "FÖRTROENDE": OVERALL,
    "SERVICE VIA TELEFON": RELATIONS,
    "SERVICE VIA TELEFONVÄXELN": RELATIONS,
}

# Ordered: first matching keyword wins
_AREA_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("normer", "trivsel", "trygghet", "gemenskap"), SAFETY),
    (("värdegrund", "uppdrag"), LEARNING),
    (("omsorg", "utveckling", "lärande"), LEARNING),
    (("inflytande", "delaktighet"), INFLUENCE),
    (("information",), INFLUENCE),
    (("förskola och hem", "relation", "kommunikation"), RELATIONS),
    (("helhets",), OVERALL),
    (("förutsättningar", "pedagogik"), LEARNING),
    (("kontinuitet",), RELATIONS),
)


def map_area_name(name: str) -> str:
    """Map an era-specific area heading onto its canonical name.

    Unknown headings are returned unchanged.
    """
    lower = name.lower()
    for keywords, area in _AREA_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return area
    return name


def canonical_area_for_short_name(short_name: str) -> Optional[str]:
    """Resolve a unit-table column label ("Trygghet", "Helhet"...) to a canonical area."""
    lower = short_name.lower()
    if not lower:
        return None
    for area in CANONICAL_AREAS:
        if area.lower().startswith(lower):
            return area
    return None
