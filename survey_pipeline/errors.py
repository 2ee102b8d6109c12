"""Exceptions raised by the report parsing pipeline."""


class ReportParseError(Exception):
    """Base class for per-document parse failures."""


class UnsupportedDocumentError(ReportParseError):
    """The file type is not one of the known report formats."""


class ExtractionError(ReportParseError):
    """The external text/coordinate extraction step failed."""
