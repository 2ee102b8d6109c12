"""
report_io.py - Deterministic JSON serialization of parse outcomes.

Floats are rounded to 2 decimals here, once, at the output boundary; the
parsers keep full precision internally. Keys are sorted so that parsing the
same document twice produces byte-identical files.
"""

import json
import logging
import re
import unicodedata
from pathlib import Path
from typing import Any, Dict, Union

from survey_pipeline.models import ParsedReport, ParseOutcome

logger = logging.getLogger(__name__)

FLOAT_PRECISION = 2


def _round_floats(value: Any) -> Any:
    if isinstance(value, float):
        return round(value, FLOAT_PRECISION)
    if isinstance(value, dict):
        return {k: _round_floats(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_round_floats(v) for v in value]
    return value


def report_to_dict(report: ParsedReport) -> Dict[str, Any]:
    return _round_floats(report.model_dump(mode="json"))


def outcome_to_dict(outcome: ParseOutcome) -> Dict[str, Any]:
    return _round_floats(outcome.model_dump(mode="json"))


def dumps_outcome(outcome: ParseOutcome) -> str:
    return json.dumps(outcome_to_dict(outcome), sort_keys=True, ensure_ascii=False, indent=2)


def output_filename(document_id: str) -> str:
    """
    Build a filesystem-safe JSON filename from a document id.

    Rules:
    - Lowercase, spaces and path separators become underscores
    - Accented letters lose their diacritics (å -> a)
    - Anything but alphanumerics, underscores, hyphens and dots is removed
    """
    clean = unicodedata.normalize("NFD", (document_id or "").lower())
    clean = clean.replace(" ", "_").replace("/", "_")
    clean = re.sub(r"[^a-z0-9_.-]", "", clean)
    clean = re.sub(r"_+", "_", clean)
    clean = re.sub(r"\.{2,}", ".", clean)
    clean = clean.strip("_.")
    return f"{clean or 'untitled'}.json"


def write_outcome(outcome: ParseOutcome, output_dir: Union[str, Path]) -> Path:
    """
    Write one outcome as ``<output_dir>/<document id>.json``.

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / output_filename(outcome.document_id)
    path.write_text(dumps_outcome(outcome) + "\n", encoding="utf-8")
    logger.debug("Wrote %s", path)
    return path


def load_outcome(path: Union[str, Path]) -> ParseOutcome:
    with open(path, "r", encoding="utf-8") as f:
        return ParseOutcome.model_validate(json.load(f))


def load_report(data: Dict[str, Any]) -> ParsedReport:
    return ParsedReport.model_validate(data)
