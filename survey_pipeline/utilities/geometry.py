"""Row helpers for positioned text items."""

from typing import List

from survey_pipeline.models import TextItem


def group_by_rows(items: List[TextItem], tolerance: float = 2) -> List[List[TextItem]]:
    """Group text items into rows by vertical proximity.

    Items are sorted page by page, top-to-bottom; a new row starts on a new
    page or whenever the gap to the previous item's y exceeds ``tolerance``.
    Each row is ordered left-to-right.
    """
    if not items:
        return []

    ordered = sorted(items, key=lambda item: (item.page, item.y, item.x))
    rows: List[List[TextItem]] = []
    current = [ordered[0]]
    for prev, item in zip(ordered, ordered[1:]):
        if item.page == prev.page and abs(item.y - prev.y) <= tolerance:
            current.append(item)
        else:
            rows.append(sorted(current, key=lambda t: t.x))
            current = [item]
    rows.append(sorted(current, key=lambda t: t.x))
    return rows


def merge_horizontal(items: List[TextItem], gap: float = 5) -> List[TextItem]:
    """Merge items on one row whose horizontal gap is at most ``gap``."""
    if not items:
        return []
    ordered = sorted(items, key=lambda item: item.x)
    merged: List[TextItem] = [ordered[0]]
    for item in ordered[1:]:
        prev = merged[-1]
        if item.x - (prev.x + prev.width) <= gap:
            merged[-1] = prev.model_copy(
                update={
                    "text": prev.text + item.text,
                    "width": item.x + item.width - prev.x,
                }
            )
        else:
            merged.append(item)
    return merged
