"""Pipeline orchestrator public exports."""

from survey_pipeline.orchestrator.core import ReportPipelineOrchestrator
from survey_pipeline.orchestrator.worker import (
    _worker_context,
    init_worker,
    process_document_wrapper,
)

__all__ = [
    "ReportPipelineOrchestrator",
    "_worker_context",
    "init_worker",
    "process_document_wrapper",
]
