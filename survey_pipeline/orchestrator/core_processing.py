"""Processing helpers for pipeline orchestration."""

import logging
import multiprocessing
from typing import Any, Dict, List

from survey_pipeline import config
from survey_pipeline.orchestrator.worker import init_worker, process_document_wrapper

logger = logging.getLogger(__name__)


def new_stats() -> Dict[str, Any]:
    return {"processed": 0, "success": 0, "failed": 0, "failed_ids": []}


def record_result(stats: Dict[str, Any], doc_id: str, result: Dict[str, Any]) -> None:
    """Count one worker result; a missing or failed parse stage counts as a failure."""
    stats["processed"] += 1
    stages = result.get("stages") or {}
    if "error" not in result and stages and all(
        s.get("success", False) for s in stages.values()
    ):
        stats["success"] += 1
        return
    stats["failed"] += 1
    stats["failed_ids"].append(doc_id)
    if "error" in result:
        logger.warning("⚠ Worker error for doc %s: %s", doc_id, result["error"])


def _record_crash(stats: Dict[str, Any], doc_id: str, reason: str) -> None:
    stats["processed"] += 1
    stats["failed"] += 1
    stats["failed_ids"].append(doc_id)
    logger.error("❌ %s (doc %s)", reason, doc_id)


def run_processing(orchestrator, docs_to_process: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Parse the selected documents, in a worker pool when workers > 1.
    """
    logger.info("STEP: Per-Document Processing (Parse)")
    if orchestrator.partition:
        logger.info("Partition: %s", orchestrator.partition)
    logger.info("=" * 60)

    stats = new_stats()
    if not docs_to_process:
        logger.info("No documents found for processing.")
        return stats

    logger.info("Found %s documents to process", len(docs_to_process))

    if orchestrator.workers > 1:
        _process_docs_parallel(orchestrator, docs_to_process, stats)
    else:
        _process_docs_sequential(orchestrator, docs_to_process, stats)

    logger.info(
        "\n✅ Processing complete: %s/%s succeeded",
        stats["success"],
        stats["processed"],
    )
    return stats


def _process_docs_parallel(orchestrator, docs_to_process: list, stats: Dict[str, Any]):
    logger.info(
        "Using %s parallel workers (multiprocessing.Pool)", orchestrator.workers
    )
    ctx = multiprocessing.get_context("spawn")

    with ctx.Pool(
        processes=orchestrator.workers,
        initializer=init_worker,
        initargs=(orchestrator.output_dir, orchestrator.log_level),
        maxtasksperchild=orchestrator.max_tasks_per_child,
    ) as pool:
        pending_results = {}
        for doc in docs_to_process:
            res = pool.apply_async(process_document_wrapper, (doc,))
            pending_results[doc.get("id")] = res

        logger.info("Submitted %s tasks to pool...", len(pending_results))

        for doc_id, res in pending_results.items():
            try:
                result = res.get(timeout=config.DOCUMENT_TIMEOUT_SECONDS)
                record_result(stats, doc_id, result)

            except (multiprocessing.context.TimeoutError, TimeoutError):
                _record_crash(
                    stats, doc_id, "Worker timed out or hung (possible OOM)"
                )

            except (OSError, RuntimeError, ValueError) as exc:
                _record_crash(stats, doc_id, f"Worker crashed: {exc}")


def _process_docs_sequential(orchestrator, docs_to_process: list, stats: Dict[str, Any]):
    logger.info("Running sequentially (1 worker)")
    init_worker(orchestrator.output_dir, orchestrator.log_level)

    for doc in docs_to_process:
        try:
            result = process_document_wrapper(doc)
            record_result(stats, doc.get("id"), result)
        except (OSError, RuntimeError, ValueError) as exc:
            _record_crash(stats, doc.get("id"), f"Error processing document: {exc}")
