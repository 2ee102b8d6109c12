"""Entry point for table parsing: detect the era and run its mean-table parser."""

import logging
from typing import Callable, Dict

from survey_pipeline.errors import UnsupportedDocumentError
from survey_pipeline.models import MeanTable, ParsedTables, ReportFormat
from survey_pipeline.processors.parsing import tables_5point, tables_7point, tables_ecers, tables_nki
from survey_pipeline.processors.parsing.format_detect import detect_format
from survey_pipeline.processors.parsing.metadata import parse_metadata
from survey_pipeline.utilities.text_cleaning import normalize_layout_text

logger = logging.getLogger(__name__)

TABLE_PARSERS: Dict[ReportFormat, Callable[[str], MeanTable]] = {
    ReportFormat.FIVE_POINT: tables_5point.parse_mean_rows,
    ReportFormat.SEVEN_POINT: tables_7point.parse_mean_rows,
    ReportFormat.ECERS: tables_ecers.parse_mean_rows,
    ReportFormat.NKI: tables_nki.parse_mean_rows,
}


def parse_tables(layout_text: str) -> ParsedTables:
    """
    Parse metadata and question means from PDF layout text.

    Args:
        layout_text: Full-document text from the layout-preserving extractor

    Returns:
        ParsedTables with the detected format, metadata, means and the
        historical years found in the column headers
    """
    text = normalize_layout_text(layout_text)
    source_format = detect_format(text)
    parser = TABLE_PARSERS.get(source_format)
    if parser is None:
        raise UnsupportedDocumentError(f"No table parser for format {source_format.value}")

    table = parser(text)
    metadata = parse_metadata(text)
    logger.info(
        "Parsed %s tables: %d means, historical years %s",
        source_format.value,
        len(table.rows),
        table.historical_years,
    )
    return ParsedTables(
        source_format=source_format,
        metadata=metadata,
        means=table.rows,
        historical_years=table.historical_years,
    )
