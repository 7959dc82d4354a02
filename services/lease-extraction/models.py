"""Pydantic models for the lease extraction pipeline and its JSON output."""

from datetime import datetime
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Strict members keep JSON true/1/"1" distinct instead of coercing between them
Scalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]


class DocumentType(str, Enum):
    NNN = "NNN"
    FSG = "FSG"
    MG = "MG"
    IG = "IG"
    ANN = "ANN"


class EscalationType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_DOLLAR_PER_RSF = "fixed_dollar_per_rsf"
    FIXED_DOLLAR_PER_MONTH = "fixed_dollar_per_month"
    CPI = "cpi"
    FMV = "fmv"
    STEP_SCHEDULE = "step_schedule"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CheckId(str, Enum):
    RENT_MATH = "rent_math"
    PRO_RATA = "pro_rata"
    DATE_ARITHMETIC = "date_arithmetic"
    ESCALATION_CONSISTENCY = "escalation_consistency"
    DEPOSIT_SANITY = "deposit_sanity"


class ValidationStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    FLAG = "FLAG"
    SKIP = "SKIP"


class Metric(BaseModel):
    """A single extracted field with its evidence and reviewer notes."""

    metric: str
    value: Scalar = None
    override: Scalar = None  # set by an auto-corrector or a human reviewer
    source_document: str = ""
    source_blurb: str = ""
    flags: list[str] = Field(default_factory=list)

    @property
    def final_value(self) -> Scalar:
        """Override if one has been set, otherwise the extracted value."""
        return self.override if self.override is not None else self.value


class ValidationResult(BaseModel):
    check: CheckId
    status: ValidationStatus
    detail: str


class EscalationAnalysis(BaseModel):
    suggested_type: EscalationType
    suggested_value: float
    confidence: Confidence
    reasoning: str


# --- model provider boundary ---


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    type: Literal["image"] = "image"
    base64: str
    media_type: Literal["image/png", "image/jpeg", "image/webp"] = "image/jpeg"


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: list[Union[TextPart, ImagePart]]


class InferenceOptions(BaseModel):
    max_tokens: int = 4096
    temperature: float = 0.0
    json_mode: bool = False


class ModelResponse(BaseModel):
    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0


# --- page source boundary ---


class PageContent(BaseModel):
    page_number: int  # 1-indexed
    content: str
    width: float = 0
    height: float = 0


# --- stage results ---


class LeaseTypeResult(BaseModel):
    document_type: DocumentType
    raw_response: str
    model: str
    latency_ms: int


class ExtractionResult(BaseModel):
    metrics: list[Metric]
    model: str
    latency_ms: int
    errors: list[str] = []


class PipelineOptions(BaseModel):
    force_document_type: DocumentType | None = None
    skip_extraction: bool = False
    max_pages: int | None = Field(None, gt=0)


class PipelineOutput(BaseModel):
    filename: str
    document_type: DocumentType
    metrics: list[Metric]
    validation_results: list[ValidationResult]
    page_count: int
    model: str
    extracted_at: datetime
    errors: list[str] = []


class PipelineSkipped(BaseModel):
    status: Literal["skipped"] = "skipped"
    reason: str
    filename: str
