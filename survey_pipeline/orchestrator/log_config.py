"""Logging configuration for pipeline orchestrator."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from survey_pipeline import config
from survey_pipeline.utilities.logging_utils import ContextFilter


def setup_logging(level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
    """Setup logging to file and console."""
    log_file = None

    log_dir = log_dir or config.LOG_DIR
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, "survey_pipeline.log")
    elif os.path.exists("logs"):
        log_file = "logs/survey_pipeline.log"

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(
            RotatingFileHandler(
                log_file, maxBytes=50 * 1024 * 1024, backupCount=20, encoding="utf-8"
            )
        )

    context_filter = ContextFilter()
    for handler in handlers:
        handler.addFilter(context_filter)

    log_fmt = (
        "%(asctime)s - [%(processName)s:%(process)d:%(doc_id)s] "
        "- %(levelname)s - %(message)s"
    )
    logging.basicConfig(
        level=level,
        format=log_fmt,
        handlers=handlers,
        force=True,
    )
    return logging.getLogger(__name__)
