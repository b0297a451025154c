"""Pydantic request/response models for the REST API."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ortb.reporting.models import (
    BatchValidationReport,
    ComplianceReport,
    ValidationReport,
)
from ortb.validation.models import BatchValidationResult, ValidationResult


# --- Response Models ---

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    spec_versions: List[str]
    cache_entries: int
    cache_hit_rate: float


class ValidateSingleResponse(BaseModel):
    """Validation result plus the reports requested in the options."""
    result: ValidationResult
    validation_report: Optional[ValidationReport] = None
    compliance_report: Optional[ComplianceReport] = None


class ValidateBatchResponse(BaseModel):
    batch_result: BatchValidationResult
    batch_report: Optional[BatchValidationReport] = None


# --- Request Models ---

class ValidationOptionsModel(BaseModel):
    timeout_ms: Optional[int] = Field(None, gt=0, description="Per-request timeout in milliseconds")
    spec_version: Optional[str] = None
    use_cache: bool = True
    include_field_details: bool = Field(False, description="Include the field-level validation report")
    include_compliance_report: bool = False


class BatchOptionsModel(ValidationOptionsModel):
    concurrency: Optional[int] = Field(None, gt=0)
    fail_fast: bool = False


class ValidateSingleRequest(BaseModel):
    request: Any = Field(..., description="OpenRTB bid request")
    options: ValidationOptionsModel = Field(default_factory=ValidationOptionsModel)


class ValidateBatchRequest(BaseModel):
    requests: List[Any] = Field(..., description="OpenRTB bid requests")
    options: BatchOptionsModel = Field(default_factory=BatchOptionsModel)


class ResultReportRequest(BaseModel):
    result: ValidationResult


class BatchAnalyticsRequest(BaseModel):
    batch_result: BatchValidationResult


class TrendAnalysisRequest(BaseModel):
    batches: List[BatchValidationResult] = Field(..., description="Batch results, oldest first")
