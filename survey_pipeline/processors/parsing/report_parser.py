"""
report_parser.py - Document parsing processor for survey reports.

This processor turns one source file into a ParseOutcome:
- PDF: layout text + positioned text items -> format detection -> the
  era's table parser -> chart extractors -> one merged ParsedReport
- Spreadsheet: leaf unit sheets -> one ParsedReport per unit

Per-document failures never escape process_document(); they come back as
``{"success": False, "error": ...}`` so a batch can continue.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from survey_pipeline import config
from survey_pipeline.errors import ReportParseError, UnsupportedDocumentError
from survey_pipeline.models import ParsedReport, ParseOutcome, ReportFormat, TextItem
from survey_pipeline.processors.base import BaseProcessor
from survey_pipeline.processors.parsing.charts_demographics import parse_demographics
from survey_pipeline.processors.parsing.charts_gender import parse_gender_splits
from survey_pipeline.processors.parsing.charts_rankings import (
    parse_important_questions,
    parse_unit_means,
)
from survey_pipeline.processors.parsing.distribution import parse_response_distributions
from survey_pipeline.processors.parsing.extraction import extract_pdf
from survey_pipeline.processors.parsing.format_detect import is_spreadsheet
from survey_pipeline.processors.parsing.scales import scale_for, with_facility_pct
from survey_pipeline.processors.parsing.tables import parse_tables
from survey_pipeline.processors.parsing.xls_parser import (
    NO_UNITS_NOTE,
    SHEET_PARSERS,
    parse_spreadsheet,
    unit_to_report,
)
from survey_pipeline.utilities.logging_utils import document_log_context
from survey_pipeline.utilities.report_io import write_outcome
from survey_pipeline.utilities.text_cleaning import normalize_layout_text

logger = logging.getLogger(__name__)

NO_TEXT_NOTE = "No text extracted (scanned or empty document)"


def build_pdf_report(
    layout_text: str,
    items: Optional[List[TextItem]] = None,
    facility_name: str = "",
    area_name: str = "",
) -> ParsedReport:
    """
    Merge table and chart extraction for one PDF into a ParsedReport.

    Pure function of its inputs: the same text and items always give an
    equal report.

    Args:
        layout_text: Output of the layout-preserving text extractor
        items: Positioned text items, used only as the gender-split fallback
        facility_name: Overrides the facility name found in the document
        area_name: Overrides the area name found in the document

    Returns:
        ParsedReport with means, distributions and chart data
    """
    text = normalize_layout_text(layout_text)
    tables = parse_tables(text)
    scale = scale_for(tables.source_format)

    means_map = {
        row.question_text: row.mean_facility
        for row in tables.means
        if row.mean_facility is not None
    }

    return ParsedReport(
        source_format=tables.source_format,
        facility_name=facility_name or tables.metadata.facility_name,
        area_name=area_name or tables.metadata.area_name,
        scale=scale.label,
        response_rate=tables.metadata.response_rate,
        respondents=tables.metadata.respondents,
        total_invited=tables.metadata.total_invited,
        historical_years=tables.historical_years,
        means=with_facility_pct(tables.means, scale),
        distributions=parse_response_distributions(text, means_map),
        demographics=parse_demographics(text),
        gender_splits=parse_gender_splits(text, items),
        important_questions=parse_important_questions(text),
        unit_means=parse_unit_means(text),
    )


class ReportParseProcessor(BaseProcessor):
    """
    Survey report parsing processor.

    Handles PDF reports from all layout eras and hierarchical spreadsheet
    exports. Optionally writes each outcome as JSON to ``output_dir``.
    """

    name = "ReportParseProcessor"
    stage_name = "parse"

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize parser configuration.

        Args:
            output_dir: Directory for per-document JSON output; nothing is
                written when None
        """
        super().__init__()
        self.output_dir = output_dir

    def setup(self) -> None:
        """Check the external text extractor and prepare the output folder."""
        logger.info("Initializing %s...", self.name)
        if shutil.which(config.PDFTOTEXT_BIN) is None:
            logger.warning(
                "⚠ %s not found on PATH, PDF documents will fail", config.PDFTOTEXT_BIN
            )
        if self.output_dir:
            os.makedirs(self.output_dir, exist_ok=True)
        super().setup()

    def _resolve_data_filepath(self, filepath: str) -> str:
        """Relative paths that do not exist as given are resolved under DATA_MOUNT_PATH."""
        if os.path.isabs(filepath) or os.path.exists(filepath):
            return filepath
        return os.path.join(config.DATA_MOUNT_PATH, filepath)

    def _parse_pdf(self, doc_id: str, filepath: str, doc: Dict[str, Any]) -> ParseOutcome:
        extracted = extract_pdf(filepath)
        if not extracted.layout_text.strip():
            logger.warning("⚠ No text in %s (%d pages)", filepath, extracted.page_count)
            return ParseOutcome(document_id=doc_id, note=NO_TEXT_NOTE)

        report = build_pdf_report(
            extracted.layout_text,
            extracted.items,
            facility_name=doc.get("facility_name") or "",
            area_name=doc.get("area_name") or "",
        )
        return ParseOutcome(
            document_id=doc_id,
            source_format=report.source_format,
            reports=[report],
        )

    def _parse_spreadsheet(
        self, doc_id: str, filepath: str, doc: Dict[str, Any]
    ) -> ParseOutcome:
        category = doc.get("report_category") or "children"
        if category not in SHEET_PARSERS:
            raise UnsupportedDocumentError(f"Unknown report category: {category}")

        scale = scale_for(ReportFormat.SPREADSHEET, category)
        reports = []
        for unit in parse_spreadsheet(filepath, category):
            report = unit_to_report(unit, area_name=doc.get("area_name") or "")
            reports.append(
                report.model_copy(
                    update={"scale": scale.label, "means": with_facility_pct(report.means, scale)}
                )
            )
        return ParseOutcome(
            document_id=doc_id,
            source_format=ReportFormat.SPREADSHEET,
            reports=reports,
            note=None if reports else NO_UNITS_NOTE,
        )

    def _build_parse_failure(self, doc_id: str, error_message: str) -> Dict[str, Any]:
        return {
            "success": False,
            "outcome": ParseOutcome(document_id=doc_id, error=error_message),
            "stage": self.build_stage_info(False, error=error_message),
            "error": error_message,
        }

    def process_document(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Parse a single report file.

        Args:
            doc: Document dict with 'id' and 'filepath', optionally
                'facility_name', 'area_name' and 'report_category'
                ('children' or 'parents', spreadsheets only)

        Returns:
            Dict with success status, the ParseOutcome, the stage summary
            and an error message on failure
        """
        self.ensure_setup()

        doc_id = str(doc.get("id") or "")
        filepath = doc.get("filepath")

        with document_log_context(doc_id or "N/A"):
            if not filepath:
                return self._build_parse_failure(doc_id, "No filepath")

            filepath = self._resolve_data_filepath(str(filepath))
            if not os.path.exists(filepath):
                return self._build_parse_failure(doc_id, f"File not found: {filepath}")

            suffix = Path(filepath).suffix.lower()
            try:
                if is_spreadsheet(filepath):
                    outcome = self._parse_spreadsheet(doc_id, filepath, doc)
                elif suffix == ".pdf":
                    outcome = self._parse_pdf(doc_id, filepath, doc)
                else:
                    raise UnsupportedDocumentError(f"Unsupported file type: {suffix or filepath}")
            except ReportParseError as e:
                logger.error("Parse failed for %s: %s", filepath, e)
                return self._build_parse_failure(doc_id, str(e))
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.exception("Unexpected error parsing %s", filepath)
                return self._build_parse_failure(doc_id, f"{type(e).__name__}: {e}")

            if outcome.note:
                logger.info("  %s", outcome.note)
            logger.info(
                "✓ Parsed %s as %s: %d report(s)",
                os.path.basename(filepath),
                outcome.source_format.value if outcome.source_format else "-",
                len(outcome.reports),
            )

            output_path = None
            if self.output_dir:
                output_path = str(write_outcome(outcome, self.output_dir))

            return {
                "success": True,
                "outcome": outcome,
                "stage": self.build_stage_info(
                    True,
                    source_format=outcome.source_format.value if outcome.source_format else None,
                    report_count=len(outcome.reports),
                    note=outcome.note,
                    output_path=output_path,
                ),
                "error": None,
            }
