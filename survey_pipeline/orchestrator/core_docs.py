"""Document selection helpers for pipeline orchestration."""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def dedupe_docs_by_id(docs: list) -> list:
    """Remove duplicate documents by id, keeping the last seen entry."""
    unique_docs: Dict[Any, Dict[str, Any]] = {}
    for doc in docs:
        if doc.get("id"):
            unique_docs[doc["id"]] = doc
    return list(unique_docs.values())


def _safe_year(doc: Dict[str, Any]) -> int:
    try:
        return int(doc.get("year") or 0)
    except (ValueError, TypeError):
        return 0


def apply_filters(
    docs: list,
    report: Optional[str] = None,
    year: Optional[int] = None,
    category: Optional[str] = None,
) -> list:
    """Filter documents by path substring, sidecar year or report category."""
    if report:
        docs = [doc for doc in docs if report in (doc.get("filepath") or "")]
    if year:
        docs = [doc for doc in docs if _safe_year(doc) == year]
    if category:
        docs = [doc for doc in docs if (doc.get("report_category") or "children") == category]
    return docs


def sort_recent_first(docs: list) -> list:
    """Sort documents by year descending, handling missing/invalid years safely."""
    docs = sorted(docs, key=_safe_year, reverse=True)
    years = [doc.get("year") for doc in docs[:5]]
    logger.info("Sorted by year (recent first): %s...", years)
    return docs


def parse_partition(partition: Optional[str]):
    """Parse 'M/N' into (M, N); (None, None) when not partitioned."""
    if not partition:
        return None, None
    try:
        m, n = partition.split("/")
        partition_num = int(m)
        partition_total = int(n)
        if partition_num < 1 or partition_num > partition_total:
            raise ValueError("Partition number out of range")
    except ValueError as exc:
        raise ValueError(
            f"Invalid partition format '{partition}'. Use 'M/N' (e.g., '2/5')"
        ) from exc
    return partition_num, partition_total


def get_partition_slice(
    docs: list, partition_num: Optional[int], partition_total: Optional[int]
) -> list:
    """Return the partition slice for the current worker."""
    if not partition_num or not partition_total:
        return docs

    total_docs = len(docs)
    chunk_size = total_docs // partition_total
    remainder = total_docs % partition_total

    start = 0
    for i in range(1, partition_num):
        start += chunk_size + (1 if i <= remainder else 0)

    end = start + chunk_size + (1 if partition_num <= remainder else 0)

    logger.info(
        "Partition %s/%s: documents %s-%s of %s",
        partition_num,
        partition_total,
        start + 1,
        end,
        total_docs,
    )
    return docs[start:end]


def select_documents(
    docs: List[Dict[str, Any]],
    report: Optional[str] = None,
    year: Optional[int] = None,
    category: Optional[str] = None,
    recent_first: bool = False,
    partition_num: Optional[int] = None,
    partition_total: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Apply dedupe, filters, ordering, partitioning and the limit, in that order."""
    docs = dedupe_docs_by_id(docs)
    docs = apply_filters(docs, report=report, year=year, category=category)
    if recent_first:
        docs = sort_recent_first(docs)
    docs = get_partition_slice(docs, partition_num, partition_total)
    if limit:
        docs = docs[:limit]
    return docs
