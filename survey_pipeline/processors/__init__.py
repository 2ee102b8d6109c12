"""
Pipeline processors package.

Provides reusable processor classes for the report pipeline stages.
Each processor:
- Implements the BaseProcessor interface
- Handles one-time initialization in setup()
- Can be used independently or composed by the orchestrator

Usage:
    from survey_pipeline.processors import ReportParseProcessor, ScanProcessor

    with ScanProcessor(base_dir="./data") as scanner:
        docs = scanner.scan()

    with ReportParseProcessor(output_dir="./data/parsed") as parser:
        for doc in docs:
            result = parser.process_document(doc)
"""

from survey_pipeline.processors.base import BaseProcessor
from survey_pipeline.processors.parsing.report_parser import ReportParseProcessor
from survey_pipeline.processors.scanning.scanner import ScanProcessor

__all__ = [
    "BaseProcessor",
    "ReportParseProcessor",
    "ScanProcessor",
]
