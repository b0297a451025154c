"""
Report Data Models

Plain, serializable records produced by the reporting engine: validation
and compliance reports for a single result, analytics for a batch, and
trend analyses across batches. None of these carry behavior; renderers
consume them read-only.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ortb.validation.models import (
    BatchProcessingStats,
    BatchValidationResult,
    ComplianceLevel,
    ErrorFrequency,
    ValidationError,
    ValidationWarning,
    utc_now,
)


Priority = Literal["critical", "high", "medium", "low"]
Direction = Literal["improving", "declining", "stable"]


# --- Single-result reports ---

class ValidationSummary(BaseModel):
    total_fields: int
    valid_fields: int
    error_fields: int
    warning_fields: int
    missing_required_fields: int
    status: Literal["passed", "warning", "failed"]


class FieldValidationResult(BaseModel):
    """Validation outcome for one field path.

    Attributes:
        field_path: Dotted field path
        is_valid: False when the field carries any error
        errors: Errors reported on this field
        warnings: Warnings reported on this field
        is_required: True when a required-field error was reported
        is_present: False when the field is missing from the request
    """
    field_path: str
    is_valid: bool = True
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    is_required: bool = False
    is_present: bool = True


class ReportMetadata(BaseModel):
    generated_at: datetime = Field(default_factory=utc_now)
    tool_version: str
    spec_version: str
    report_version: str
    additional_info: Optional[Dict[str, Any]] = None


class ValidationReport(BaseModel):
    summary: ValidationSummary
    field_results: List[FieldValidationResult] = Field(default_factory=list)
    compliance_score: int
    recommendations: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)
    metadata: ReportMetadata


class CategoryCompliance(BaseModel):
    """Compliance of one issue category.

    ``issues`` lists the category's errors; ``issue_count`` also counts
    its warnings.
    """
    category: str
    compliance: ComplianceLevel
    score: int
    issue_count: int
    issues: List[ValidationError] = Field(default_factory=list)


class ComplianceRecommendation(BaseModel):
    priority: Literal["high", "medium", "low"]
    title: str
    description: str
    affected_fields: List[str] = Field(default_factory=list)
    impact_score: int


class ComplianceReport(BaseModel):
    overall_compliance: ComplianceLevel
    compliance_score: int
    category_compliance: List[CategoryCompliance] = Field(default_factory=list)
    critical_issues: List[ValidationError] = Field(default_factory=list)
    recommendations: List[ComplianceRecommendation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


# --- Batch analytics ---

class ComplianceDistribution(BaseModel):
    compliant: int = 0
    partial: int = 0
    non_compliant: int = 0


class ProcessingTimeStats(BaseModel):
    """Processing-time distribution in milliseconds."""
    average: float
    median: float
    p50: float
    p95: float
    p99: float
    min: float
    max: float


class BatchStatistics(BaseModel):
    total_requests: int
    valid_requests: int
    invalid_requests: int
    warning_requests: int
    average_compliance_score: float
    median_compliance_score: float
    compliance_distribution: ComplianceDistribution
    processing_time: Optional[ProcessingTimeStats] = None


class CategoryDistribution(BaseModel):
    category: str
    count: int
    percentage: int


class SeverityDistribution(BaseModel):
    severity: Literal["error", "warning", "info"]
    count: int
    percentage: int


class FieldDistribution(BaseModel):
    """Issue counts for one field.

    ``affected_requests`` counts distinct requests, not raw occurrences.
    """
    field_path: str
    error_count: int
    warning_count: int
    affected_requests: int
    percentage: int


class ErrorCorrelation(BaseModel):
    """Co-occurrence of two error codes across the requests of a batch.

    Attributes:
        error1: First error code (lexically smaller)
        error2: Second error code
        correlation_strength: Jaccard index of the two request sets (0-1)
        co_occurrence_rate: Percentage of all requests carrying both codes
    """
    error1: str
    error2: str
    correlation_strength: float
    co_occurrence_rate: int


class ErrorDistribution(BaseModel):
    by_category: List[CategoryDistribution] = Field(default_factory=list)
    by_severity: List[SeverityDistribution] = Field(default_factory=list)
    by_field: List[FieldDistribution] = Field(default_factory=list)
    most_common_errors: List[ErrorFrequency] = Field(default_factory=list)
    error_correlations: List[ErrorCorrelation] = Field(default_factory=list)


class CategoryTrend(BaseModel):
    category: str
    trend: float = 0.0
    direction: Direction = "stable"


class ComplianceTrends(BaseModel):
    overall_trend: float = 0.0
    category_trends: List[CategoryTrend] = Field(default_factory=list)
    improvement_areas: List[str] = Field(default_factory=list)
    regression_areas: List[str] = Field(default_factory=list)


class FieldAnalytics(BaseModel):
    """Per-field rates, as percentages of requests that reference the field."""
    field_path: str
    referenced_requests: int
    validation_rate: int
    error_rate: int
    warning_rate: int
    common_issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class PerformanceMetrics(BaseModel):
    average_validation_time: float = 0.0
    median_validation_time: float = 0.0
    throughput: float = Field(default=0.0, description="Requests per second")


class AnalyticsRecommendation(BaseModel):
    priority: Priority
    category: Literal["compliance", "performance", "quality"]
    title: str
    description: str
    impact: str
    action_items: List[str] = Field(default_factory=list)
    estimated_effort: Literal["low", "medium", "high"]


class BatchAnalytics(BaseModel):
    overall_stats: BatchStatistics
    error_distribution: ErrorDistribution
    compliance_trends: ComplianceTrends
    field_analytics: List[FieldAnalytics] = Field(default_factory=list)
    performance_metrics: PerformanceMetrics
    recommendations: List[AnalyticsRecommendation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


# --- Trend analysis ---

class TimePeriodAnalysis(BaseModel):
    period: str
    start_date: datetime
    end_date: datetime
    batch_id: str
    total_requests: int
    average_compliance_score: int
    top_errors: List[ErrorFrequency] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    regressions: List[str] = Field(default_factory=list)


class TrendInsight(BaseModel):
    type: Literal["improvement", "regression", "pattern", "anomaly"]
    description: str
    impact: Literal["high", "medium", "low"]
    recommendation: str
    confidence: int = Field(..., ge=0, le=100)


class PerformanceProjection(BaseModel):
    timeframe: Literal["1week", "1month", "3months"]
    projected_compliance_score: int
    confidence: int = Field(..., ge=0, le=100)
    assumptions: List[str] = Field(default_factory=list)


class TrendAnalysis(BaseModel):
    time_periods: List[TimePeriodAnalysis] = Field(default_factory=list)
    trend_direction: Direction
    insights: List[TrendInsight] = Field(default_factory=list)
    projections: List[PerformanceProjection] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


# --- Batch report ---

class BatchValidationReport(BaseModel):
    """Batch result bundled with its aggregated compliance report."""
    batch_result: BatchValidationResult
    individual_reports: List[ValidationReport] = Field(default_factory=list)
    compliance_report: ComplianceReport
    processing_stats: BatchProcessingStats
    timestamp: datetime = Field(default_factory=utc_now)
