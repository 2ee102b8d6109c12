"""Measurement scale of each report era and normalization onto 0-100."""

from typing import List, NamedTuple, Optional

from survey_pipeline.models import QuestionMean, ReportFormat

COMPOSITE_INDEX_PREFIX = "NKI "


class Scale(NamedTuple):
    minimum: float
    maximum: float

    @property
    def label(self) -> str:
        return f"{self.minimum:g}-{self.maximum:g}"


_SCALES = {
    ReportFormat.FIVE_POINT: Scale(1, 5),
    ReportFormat.SEVEN_POINT: Scale(1, 7),
    ReportFormat.ECERS: Scale(1, 7),
    ReportFormat.NKI: Scale(1, 10),
}

CHILDREN_SPREADSHEET_SCALE = Scale(1, 3)
PARENTS_SPREADSHEET_SCALE = Scale(1, 10)


def scale_for(source_format: ReportFormat, report_category: str = "children") -> Scale:
    if source_format == ReportFormat.SPREADSHEET:
        if report_category == "parents":
            return PARENTS_SPREADSHEET_SCALE
        return CHILDREN_SPREADSHEET_SCALE
    return _SCALES[source_format]


def is_composite_index(question_text: str) -> bool:
    return question_text.startswith(COMPOSITE_INDEX_PREFIX)


def normalize_to_percent(
    value: Optional[float], scale: Scale, question_text: str = ""
) -> Optional[float]:
    """
    Map a mean linearly from its era scale onto 0-100.

    Composite-index rows are already on 0-100 and are returned unchanged.
    """
    if value is None:
        return None
    if question_text and is_composite_index(question_text):
        return value
    span = scale.maximum - scale.minimum
    return round((value - scale.minimum) / span * 100, 2)


def with_facility_pct(means: List[QuestionMean], scale: Scale) -> List[QuestionMean]:
    """Fill ``facility_pct`` on every row from its facility mean."""
    return [
        row.model_copy(
            update={
                "facility_pct": normalize_to_percent(row.mean_facility, scale, row.question_text)
            }
        )
        for row in means
    ]
