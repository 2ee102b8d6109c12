"""Logging helpers for per-document context."""

import logging
import threading
from contextlib import contextmanager

_log_context = threading.local()


class ContextFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """
    Filter to inject the current document ID into log records.
    """

    def filter(self, record):
        record.doc_id = getattr(_log_context, "doc_id", "N/A")
        return True


@contextmanager
def document_log_context(doc_id):
    """Tag every log record emitted inside the block with ``doc_id``."""
    previous = getattr(_log_context, "doc_id", None)
    _log_context.doc_id = doc_id
    try:
        yield
    finally:
        if previous is None:
            del _log_context.doc_id
        else:
            _log_context.doc_id = previous
