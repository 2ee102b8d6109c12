"""
extraction.py - Raw inputs for the PDF parsers.

Two views of every PDF are needed: layout-preserving text from poppler's
``pdftotext -layout`` and positioned text spans from PyMuPDF. Both are
bounded by one per-process semaphore so a worker never runs more than
``EXTRACT_CONCURRENCY`` extractions at once.
"""

import logging
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, NamedTuple, Tuple, Union

import fitz  # PyMuPDF

from survey_pipeline import config
from survey_pipeline.errors import ExtractionError
from survey_pipeline.models import TextItem

logger = logging.getLogger(__name__)

_extraction_slots = threading.BoundedSemaphore(config.EXTRACT_CONCURRENCY)


class ExtractedPdf(NamedTuple):
    layout_text: str
    items: List[TextItem]
    page_count: int


def extract_layout_text(filepath: Union[str, Path]) -> str:
    """Run ``pdftotext -layout`` and return its stdout."""
    cmd = [config.PDFTOTEXT_BIN, "-layout", str(filepath), "-"]
    with _extraction_slots:
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=config.PDFTOTEXT_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(
                f"pdftotext timed out after {config.PDFTOTEXT_TIMEOUT}s for {filepath}"
            ) from e
        except OSError as e:
            raise ExtractionError(f"Cannot run {config.PDFTOTEXT_BIN}: {e}") from e

    if result.returncode != 0:
        raise ExtractionError(
            f"pdftotext failed ({result.returncode}) for {filepath}: {result.stderr.strip()[:200]}"
        )
    return result.stdout


def _page_items(page, page_number: int) -> List[TextItem]:
    items = []
    for block in page.get_text("dict")["blocks"]:
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text", "")
                if not text.strip():
                    continue
                x0, _, x1, _ = span["bbox"]
                items.append(
                    TextItem(
                        text=text,
                        x=round(x0, 2),
                        y=round(span["origin"][1], 2),
                        width=round(x1 - x0, 2),
                        height=round(span.get("size") or 10, 2),
                        page=page_number,
                    )
                )
    return items


def extract_text_items(filepath: Union[str, Path]) -> Tuple[List[TextItem], int]:
    """
    Read positioned text spans from every page.

    Returns:
        Tuple of (items, page_count); y is the span baseline so spans of
        different font sizes on one printed row share a y value
    """
    with _extraction_slots:
        try:
            with fitz.open(str(filepath)) as doc:
                items: List[TextItem] = []
                for page_number, page in enumerate(doc, 1):
                    items.extend(_page_items(page, page_number))
                return items, doc.page_count
        except (RuntimeError, OSError, ValueError) as e:
            raise ExtractionError(f"Cannot read text items from {filepath}: {e}") from e


def extract_pdf(filepath: Union[str, Path]) -> ExtractedPdf:
    """Run both extractions concurrently."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        layout_future = executor.submit(extract_layout_text, filepath)
        items_future = executor.submit(extract_text_items, filepath)
        layout_text = layout_future.result()
        items, page_count = items_future.result()

    logger.debug(
        "Extracted %d chars of layout text and %d items from %d pages",
        len(layout_text),
        len(items),
        page_count,
    )
    return ExtractedPdf(layout_text=layout_text, items=items, page_count=page_count)
