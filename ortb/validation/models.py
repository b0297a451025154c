"""
Validation Result Models

Pydantic models for the outcome of validating OpenRTB bid requests:
field-level errors and warnings, per-request results and batch results.
Results are frozen once built; per-call metadata such as processing time
and cache provenance is applied to a copy with ``model_copy(update=...)``.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


Severity = Literal["error", "warning", "info"]
ComplianceLevel = Literal["compliant", "partial", "non-compliant"]
ErrorType = Literal["required-field", "schema", "format", "value", "logical"]

DEFAULT_SPEC_VERSION = "2.6"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_validation_id() -> str:
    return f"val_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def new_batch_id() -> str:
    return f"batch_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ValidationError(BaseModel):
    """A field-level error reported by the schema matcher.

    Attributes:
        field: Dotted field path (e.g. "imp.0.banner.w"), "root" for the document
        message: Human-readable description
        severity: Always "error"
        code: Stable code for programmatic handling (e.g. ORTB_REQUIRED_FIELD_MISSING)
        type: Error category (required-field, schema, format, value, logical)
        actual_value: Offending value, when there is one
        expected_value: Expected value, type or format
        suggestion: Optional remediation hint
    """
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    severity: Literal["error"] = "error"
    code: str
    type: ErrorType
    actual_value: Any = None
    expected_value: Any = None
    suggestion: Optional[str] = None


class ValidationWarning(BaseModel):
    """A field-level warning; never blocks validity.

    Attributes:
        field: Dotted field path
        message: Human-readable description
        severity: "warning" or "info", always below error
        code: Stable code; markers such as RECOMMENDED, FORMAT or VALUE
            drive categorization
        actual_value: Value that triggered the warning
        recommended_value: Suggested replacement value
        suggestion: Optional remediation hint
    """
    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    severity: Literal["warning", "info"] = "warning"
    code: str
    actual_value: Any = None
    recommended_value: Any = None
    suggestion: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating one bid request.

    ``is_valid`` always equals ``not errors`` and ``compliance_score`` is
    always within [0, 100]; both are enforced at construction.
    """
    model_config = ConfigDict(frozen=True)

    is_valid: bool
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    compliance_level: ComplianceLevel
    validated_fields: List[str] = Field(default_factory=list)
    compliance_score: int = Field(..., ge=0, le=100)
    timestamp: datetime = Field(default_factory=utc_now)
    validation_id: str = Field(default_factory=new_validation_id)
    spec_version: str = DEFAULT_SPEC_VERSION
    processing_time: Optional[float] = Field(
        default=None,
        description="Wall-clock milliseconds spent producing this result"
    )
    from_cache: bool = False

    @model_validator(mode="after")
    def _check_validity(self) -> "ValidationResult":
        if self.is_valid != (len(self.errors) == 0):
            raise ValueError("is_valid must be true exactly when there are no errors")
        return self

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


class ErrorFrequency(BaseModel):
    """Occurrence count of an error code across a batch."""
    code: str
    message: str
    count: int
    percentage: int


class WarningFrequency(BaseModel):
    """Occurrence count of a warning code across a batch."""
    code: str
    message: str
    count: int
    percentage: int


class BatchValidationSummary(BaseModel):
    """Aggregate counts for a batch.

    Attributes:
        total_requests: Number of results in the batch
        valid_requests: Results without errors
        invalid_requests: Results with at least one error
        warning_requests: Valid results that carry warnings
        common_errors: Top error codes by raw occurrence
        common_warnings: Top warning codes by raw occurrence
        average_compliance_score: Rounded mean compliance score
    """
    total_requests: int = 0
    valid_requests: int = 0
    invalid_requests: int = 0
    warning_requests: int = 0
    common_errors: List[ErrorFrequency] = Field(default_factory=list)
    common_warnings: List[WarningFrequency] = Field(default_factory=list)
    average_compliance_score: int = 0


class ProcessingError(BaseModel):
    """A request that could not be validated inside a batch."""
    request_index: int
    error: str
    timestamp: datetime = Field(default_factory=utc_now)


class BatchProcessingStats(BaseModel):
    """Processing statistics for a batch run.

    Attributes:
        total_processing_time: Wall-clock milliseconds for the whole batch
        average_processing_time: total_processing_time / requests processed
        successfully_processed: Requests the matcher validated
        failed_processing: Requests that timed out or failed
        processing_errors: One record per failed request
        aborted: True when fail-fast stopped the batch early
    """
    total_processing_time: float = 0.0
    average_processing_time: float = 0.0
    successfully_processed: int = 0
    failed_processing: int = 0
    processing_errors: List[ProcessingError] = Field(default_factory=list)
    aborted: bool = False


class BatchValidationResult(BaseModel):
    """Outcome of validating a sequence of bid requests.

    ``results[i]`` always corresponds to the i-th input request.
    """
    model_config = ConfigDict(frozen=True)

    results: List[ValidationResult] = Field(default_factory=list)
    summary: BatchValidationSummary = Field(default_factory=BatchValidationSummary)
    overall_compliance_score: int = Field(default=0, ge=0, le=100)
    timestamp: datetime = Field(default_factory=utc_now)
    batch_id: str = Field(default_factory=new_batch_id)
    processing_stats: BatchProcessingStats = Field(default_factory=BatchProcessingStats)
