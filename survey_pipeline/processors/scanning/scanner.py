"""
scanner.py - Report file scanner.

Walks the data directory for survey report files and pairs each one with
its optional sidecar metadata JSON. Unlike the other processors, this
operates on the filesystem, not on individual documents.
"""

import hashlib
import json
import logging
import unicodedata
from pathlib import Path
from typing import Any, Dict, List, Optional

from survey_pipeline import config
from survey_pipeline.processors.base import BaseProcessor

logger = logging.getLogger(__name__)

# Sidecar keys copied onto the document dict
METADATA_FIELDS = ("facility_name", "area_name", "year", "report_category")
EXCLUDED_DIRS = ("parsed", "cache")


def _make_document_id(path: Path, base_dir: Path) -> str:
    """Document id is the path relative to the scan root, NFC-normalized."""
    try:
        relative = path.relative_to(base_dir)
    except ValueError:
        relative = path
    return unicodedata.normalize("NFC", relative.as_posix())


class ScanProcessor(BaseProcessor):
    """
    File scanner for survey report files.

    Finds PDF and spreadsheet reports under ``base_dir``. Metadata for a
    report ``x.pdf`` is read from ``x.pdf.json`` or, failing that, ``x.json``.
    """

    name = "ScanProcessor"
    stage_name = "scan"

    def __init__(self, base_dir: Optional[str] = None):
        """
        Initialize scanner configuration.

        Args:
            base_dir: Base directory to scan (default: DATA_MOUNT_PATH)
        """
        super().__init__()
        self.base_dir = base_dir or config.DATA_MOUNT_PATH

    def process_document(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Not used for scanner - use scan() instead.

        Scanner operates on filesystem, not individual documents.
        """
        raise NotImplementedError("ScanProcessor works on filesystem. Use scan() instead.")

    def _scan_report_files(self) -> List[Path]:
        base_path = Path(self.base_dir)
        if not base_path.exists():
            logger.warning("Data directory not found: %s", self.base_dir)
            return []

        files = []
        for f in base_path.rglob("*"):
            if not f.is_file() or f.suffix.lower() not in config.SUPPORTED_EXTENSIONS:
                continue
            if any(part in EXCLUDED_DIRS for part in f.relative_to(base_path).parts):
                continue
            files.append(f)

        files = self._drop_converted_duplicates(sorted(files))
        logger.info("Found %s report files in %s", len(files), self.base_dir)
        return files

    @staticmethod
    def _drop_converted_duplicates(files: List[Path]) -> List[Path]:
        """A converted ``x.xlsx`` beside ``x.xls`` is read through the ``.xls`` entry."""
        names = set(files)
        return [
            f
            for f in files
            if not (f.suffix.lower() == ".xlsx" and f.with_name(f.name[:-1]) in names)
        ]

    def _metadata_path(self, report_path: Path) -> Optional[Path]:
        for candidate in (
            report_path.with_name(report_path.name + ".json"),
            report_path.with_suffix(".json"),
        ):
            if candidate.exists():
                return candidate
        return None

    def _load_metadata_from_json(self, json_path: Path) -> Dict[str, Any]:
        """Load sidecar metadata; a broken file is logged and treated as absent."""
        try:
            with open(json_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error loading metadata from %s: %s", json_path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Metadata in %s is not an object", json_path)
            return {}
        return {k: data[k] for k in METADATA_FIELDS if data.get(k) not in (None, "")}

    def _compute_file_checksum(self, filepath: Path) -> str:
        """Compute SHA-256 checksum of a file."""
        sha256 = hashlib.sha256()
        with open(filepath, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()

    def build_document(self, report_path: Path) -> Dict[str, Any]:
        """Build the document dict handed to ReportParseProcessor."""
        doc: Dict[str, Any] = {
            "id": _make_document_id(report_path, Path(self.base_dir)),
            "filepath": str(report_path),
            "checksum": self._compute_file_checksum(report_path),
        }
        json_path = self._metadata_path(report_path)
        if json_path is not None:
            doc.update(self._load_metadata_from_json(json_path))
        return doc

    def scan(self) -> List[Dict[str, Any]]:
        """
        Scan the data directory.

        Returns:
            Document dicts sorted by path, each with 'id', 'filepath',
            'checksum' and any sidecar metadata fields
        """
        self.ensure_setup()
        docs = [self.build_document(path) for path in self._scan_report_files()]
        with_metadata = sum(1 for d in docs if len(d) > 3)
        logger.info("✓ Scanned %d documents (%d with metadata)", len(docs), with_metadata)
        return docs
