"""Worker helpers for orchestrator processing."""

import logging
import os
import random
import time
from typing import Any, Dict, Optional

import psutil
import setproctitle

from survey_pipeline import config
from survey_pipeline.orchestrator.log_config import setup_logging
from survey_pipeline.processors import ReportParseProcessor

logger = logging.getLogger(__name__)

# Global context for worker processes
_worker_context: Dict[str, Any] = {}


def _wait_for_available_memory() -> Optional[str]:
    start_wait = time.time()
    min_free = config.WORKER_MIN_FREE_MB * 1024 * 1024
    while True:
        mem = psutil.virtual_memory()
        if mem.available > min_free:
            return None
        if time.time() - start_wait > config.WORKER_MEMORY_WAIT_SECONDS:
            return "OOM Protection: Timeout waiting for memory"
        time.sleep(random.uniform(1, 5))


def init_worker(output_dir: Optional[str], log_level: int = logging.INFO) -> None:
    """
    Initialize the parser for a worker process.
    This runs once when the worker starts.
    """
    setup_logging(level=log_level)
    setproctitle.setproctitle(f"SurveyPipeline-{os.getpid()}")

    parser = ReportParseProcessor(output_dir=output_dir)
    parser.setup()
    _worker_context["parser"] = parser

    logger.info("[Worker %s] Ready.", os.getpid())


def process_document_wrapper(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Top-level wrapper function to process a document using the worker's global context.

    Returns a picklable summary: the full outcome stays in the worker and
    reaches the caller through the output file.
    """
    parser: Optional[ReportParseProcessor] = _worker_context.get("parser")
    if parser is None:
        return {"doc_id": doc.get("id"), "error": "Worker not initialized"}

    memory_error = _wait_for_available_memory()
    if memory_error:
        return {"doc_id": doc.get("id"), "error": memory_error}

    doc_id = doc.get("id")
    logger.info("[Worker %s] Processing: %s", os.getpid(), doc_id)

    stage_start = time.time()
    parse_result = parser.process_document(doc)
    stage = dict(parse_result["stage"])
    stage["elapsed_seconds"] = round(time.time() - stage_start, 1)

    if parse_result["success"]:
        logger.info("  ✓ Parsed (%s): %s", os.getpid(), doc_id)
    else:
        logger.error(
            "  ✗ Parse failed (%s): %s - %s", os.getpid(), doc_id, parse_result["error"]
        )

    return {"doc_id": doc_id, "stages": {"parse": stage}}
