"""
models.py - Record types produced by the report parsers.

Every record is a frozen pydantic model: parsers build them once per
document and hand them to the caller, nothing mutates them afterwards.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ReportFormat(str, Enum):
    """Layout era of a source document, decided once by the format detector."""

    SPREADSHEET = "xls"
    NKI = "nki"
    ECERS = "ecers"
    SEVEN_POINT = "7point"
    FIVE_POINT = "5point"


class UnitLevel(str, Enum):
    DISTRICT = "district"
    SCHOOL_GROUP = "school_group"
    UNIT = "unit"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextItem(_Record):
    """A positioned text fragment on a PDF page."""

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 10.0
    page: int = 1


class QuestionMean(_Record):
    question_text: str
    question_area: str = ""
    mean_region: Optional[float] = None
    mean_city: Optional[float] = None
    mean_district: Optional[float] = None
    mean_facility: Optional[float] = None
    # mean_facility mapped onto 0-100 from the report scale
    facility_pct: Optional[float] = None
    historical_means: Dict[str, Optional[float]] = Field(default_factory=dict)


class ResponseDistribution(_Record):
    question_text: str
    pct_strongly_disagree: Optional[float] = None
    pct_disagree: Optional[float] = None
    pct_neither: Optional[float] = None
    pct_agree: Optional[float] = None
    pct_strongly_agree: Optional[float] = None
    pct_dont_know: Optional[float] = None


class Demographics(_Record):
    birth_year: Dict[str, int] = Field(default_factory=dict)
    child_gender: Dict[str, int] = Field(default_factory=dict)
    respondent_gender: Dict[str, int] = Field(default_factory=dict)


class GenderSplitRow(_Record):
    question_text: str
    pct_total: Optional[float] = None
    pct_female: Optional[float] = None
    pct_male: Optional[float] = None


class ImportantQuestion(_Record):
    rank: int
    question_text: str
    pct: Optional[int] = None


class UnitMean(_Record):
    unit_name: str
    area_name: str
    mean_value: Optional[float] = None


class ReportMetadata(_Record):
    facility_name: str = ""
    area_name: str = ""
    response_rate: Optional[float] = None
    respondents: Optional[int] = None
    total_invited: Optional[int] = None


class MeanTable(_Record):
    """Output of one era-specific table parser."""

    rows: List[QuestionMean] = Field(default_factory=list)
    historical_years: List[int] = Field(default_factory=list)


class ParsedTables(_Record):
    source_format: ReportFormat
    metadata: ReportMetadata
    means: List[QuestionMean] = Field(default_factory=list)
    historical_years: List[int] = Field(default_factory=list)


class XlsMeanRow(_Record):
    question_text: str
    mean_value: Optional[float] = None
    mean_all_units: Optional[float] = None
    index_value: Optional[float] = None
    index_all_units: Optional[float] = None


class XlsResponseRow(_Record):
    question_text: str
    pct_low: Optional[float] = None
    pct_medium: Optional[float] = None
    pct_high: Optional[float] = None
    pct_no_answer: Optional[float] = None


class XlsUnitData(_Record):
    sheet_id: str
    unit_name: str
    district_name: str = ""
    respondents: Optional[int] = None
    level: UnitLevel
    means: List[XlsMeanRow] = Field(default_factory=list)
    responses: List[XlsResponseRow] = Field(default_factory=list)


class ParsedReport(_Record):
    """One normalized record per PDF document or per spreadsheet leaf unit."""

    source_format: ReportFormat
    facility_name: str = ""
    area_name: str = ""
    scale: str = ""
    response_rate: Optional[float] = None
    respondents: Optional[int] = None
    total_invited: Optional[int] = None
    historical_years: List[int] = Field(default_factory=list)
    means: List[QuestionMean] = Field(default_factory=list)
    distributions: List[ResponseDistribution] = Field(default_factory=list)
    demographics: Demographics = Field(default_factory=Demographics)
    gender_splits: List[GenderSplitRow] = Field(default_factory=list)
    important_questions: List[ImportantQuestion] = Field(default_factory=list)
    unit_means: List[UnitMean] = Field(default_factory=list)
    # Spreadsheet units only
    sheet_id: Optional[str] = None
    unit_name: Optional[str] = None
    district_name: Optional[str] = None
    level: Optional[UnitLevel] = None


class ParseOutcome(_Record):
    """Result of parsing one source document (zero or more reports)."""

    document_id: str
    source_format: Optional[ReportFormat] = None
    reports: List[ParsedReport] = Field(default_factory=list)
    note: Optional[str] = None
    error: Optional[str] = None
