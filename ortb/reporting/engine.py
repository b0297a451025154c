"""
Reporting Engine

Turns validation outcomes into reports: a field-level validation report and
a category-level compliance report for a single result, analytics for a
batch, trend analysis across batches, and a bundled batch report. Every
method is a pure function of its inputs; nothing is cached or mutated.
"""

import logging
from typing import Dict, List, Optional, Sequence

from ortb.reporting.analytics import generate_batch_analytics
from ortb.reporting.models import (
    BatchAnalytics,
    BatchValidationReport,
    CategoryCompliance,
    ComplianceRecommendation,
    ComplianceReport,
    FieldValidationResult,
    ReportMetadata,
    TrendAnalysis,
    ValidationReport,
    ValidationSummary,
)
from ortb.reporting.scoring import categorize_validation_issues
from ortb.reporting.trends import ProjectionPolicy, generate_trend_analysis
from ortb.validation.models import (
    BatchValidationResult,
    ComplianceLevel,
    ValidationError,
    ValidationResult,
)


logger = logging.getLogger(__name__)

TOOL_VERSION = "1.0.0"
REPORT_VERSION = "1.0"

LOW_SCORE_THRESHOLD = 80
CRITICAL_ISSUE_SHARE = 0.1
HIGH_FAILURE_SHARE = 0.5
MAX_CRITICAL_ISSUES = 10


class ReportingEngine:
    """Builds reports from validation results.

    Example:
        >>> engine = ReportingEngine()
        >>> report = engine.generate_validation_report(result)
        >>> compliance = engine.generate_compliance_report(result)
        >>> analytics = engine.generate_batch_analytics(batch_result)
    """

    def __init__(
        self,
        projection_policy: Optional[ProjectionPolicy] = None,
        tool_version: str = TOOL_VERSION
    ):
        """Initialize engine.

        Args:
            projection_policy: Policy for trend projections (defaults to ProjectionPolicy())
            tool_version: Version written into report metadata
        """
        self.projection_policy = projection_policy or ProjectionPolicy()
        self.tool_version = tool_version

    # --- Single result ---

    def generate_validation_report(self, result: ValidationResult) -> ValidationReport:
        """Field-level report for one validation result."""
        return ValidationReport(
            summary=self._summarize(result),
            field_results=self._field_results(result),
            compliance_score=result.compliance_score,
            recommendations=self._recommendations(result),
            metadata=ReportMetadata(
                tool_version=self.tool_version,
                spec_version=result.spec_version,
                report_version=REPORT_VERSION,
            ),
        )

    def generate_compliance_report(self, result: ValidationResult) -> ComplianceReport:
        """Category-level compliance report for one validation result."""
        categories = categorize_validation_issues(result.errors, result.warnings)
        return ComplianceReport(
            overall_compliance=result.compliance_level,
            compliance_score=result.compliance_score,
            category_compliance=categories,
            critical_issues=[
                e for e in result.errors
                if e.severity == "error" and e.type == "required-field"
            ],
            recommendations=self._compliance_recommendations(categories),
        )

    def _summarize(self, result: ValidationResult) -> ValidationSummary:
        total_fields = len(result.validated_fields)
        error_fields = len({e.field for e in result.errors})

        if result.errors:
            status = "failed"
        elif result.warnings:
            status = "warning"
        else:
            status = "passed"

        return ValidationSummary(
            total_fields=total_fields,
            valid_fields=total_fields - error_fields,
            error_fields=error_fields,
            warning_fields=len({w.field for w in result.warnings}),
            missing_required_fields=sum(1 for e in result.errors if e.type == "required-field"),
            status=status,
        )

    def _field_results(self, result: ValidationResult) -> List[FieldValidationResult]:
        """Merge validated fields with error and warning fields, in that order."""
        fields: Dict[str, dict] = {}

        def entry(path: str) -> dict:
            if path not in fields:
                fields[path] = {
                    "field_path": path,
                    "is_valid": True,
                    "errors": [],
                    "warnings": [],
                    "is_required": False,
                    "is_present": True,
                }
            return fields[path]

        for path in result.validated_fields:
            entry(path)

        for error in result.errors:
            field = entry(error.field)
            field["errors"].append(error)
            field["is_valid"] = False
            if error.type == "required-field":
                field["is_required"] = True
                field["is_present"] = False

        for warning in result.warnings:
            entry(warning.field)["warnings"].append(warning)

        return [FieldValidationResult(**data) for data in fields.values()]

    def _recommendations(self, result: ValidationResult) -> List[str]:
        recommendations = []

        if result.errors:
            recommendations.append("Address all validation errors to achieve compliance")

            required = sum(1 for e in result.errors if e.type == "required-field")
            if required:
                recommendations.append(f"Add {required} missing required field(s)")

            if any(e.type == "schema" for e in result.errors):
                recommendations.append("Fix data type and format issues")

        if result.warnings:
            recommendations.append("Consider addressing warnings to improve request quality")

        if result.compliance_score < LOW_SCORE_THRESHOLD:
            recommendations.append("Focus on critical compliance issues first")

        return recommendations

    def _compliance_recommendations(
        self,
        categories: Sequence[CategoryCompliance]
    ) -> List[ComplianceRecommendation]:
        recommendations = []

        for category in categories:
            if category.compliance == "non-compliant":
                recommendations.append(ComplianceRecommendation(
                    priority="high",
                    title=f"Fix {category.category} Issues",
                    description=(
                        f"Address {category.issue_count} issues in {category.category} "
                        "to improve compliance"
                    ),
                    affected_fields=[e.field for e in category.issues],
                    impact_score=min(50, category.issue_count * 10),
                ))

        for category in categories:
            if category.compliance == "partial":
                recommendations.append(ComplianceRecommendation(
                    priority="medium",
                    title=f"Improve {category.category} Compliance",
                    description=f"Address warnings in {category.category} for full compliance",
                    affected_fields=[],
                    impact_score=min(25, category.issue_count * 5),
                ))

        # sorted() is stable: equal impact keeps high before medium
        return sorted(recommendations, key=lambda r: -r.impact_score)

    # --- Batches ---

    def generate_batch_analytics(self, batch_result: BatchValidationResult) -> BatchAnalytics:
        """Distributions, field rates and recommendations for one batch."""
        return generate_batch_analytics(batch_result)

    def generate_trend_analysis(
        self,
        historical_batches: Sequence[BatchValidationResult]
    ) -> TrendAnalysis:
        """Trend direction, insights and projections across batches, oldest first."""
        return generate_trend_analysis(historical_batches, self.projection_policy)

    def generate_batch_report(
        self,
        batch_result: BatchValidationResult,
        include_individual_reports: bool = False
    ) -> BatchValidationReport:
        """Bundle a batch result with its aggregated compliance report.

        Args:
            batch_result: Result of validate_batch
            include_individual_reports: Also build a ValidationReport per result

        Returns:
            BatchValidationReport
        """
        logger.debug(
            f"Building batch report for {batch_result.batch_id} "
            f"({len(batch_result.results)} result(s))"
        )
        individual_reports = []
        if include_individual_reports:
            individual_reports = [
                self.generate_validation_report(result) for result in batch_result.results
            ]

        return BatchValidationReport(
            batch_result=batch_result,
            individual_reports=individual_reports,
            compliance_report=self.generate_aggregated_compliance_report(batch_result),
            processing_stats=batch_result.processing_stats,
        )

    def generate_aggregated_compliance_report(
        self,
        batch_result: BatchValidationResult
    ) -> ComplianceReport:
        """Compliance report for a whole batch.

        Overall compliance follows the share of valid results. Critical issues
        are error ``code:field`` pairs present in more than 10% of requests.
        """
        results = batch_result.results
        if not results:
            return ComplianceReport(
                overall_compliance="non-compliant",
                compliance_score=0,
            )

        valid = sum(1 for r in results if r.is_valid)
        if valid == len(results):
            overall: ComplianceLevel = "compliant"
        elif valid:
            overall = "partial"
        else:
            overall = "non-compliant"

        return ComplianceReport(
            overall_compliance=overall,
            compliance_score=batch_result.overall_compliance_score,
            category_compliance=categorize_validation_issues(
                [e for r in results for e in r.errors],
                [w for r in results for w in r.warnings],
            ),
            critical_issues=self._batch_critical_issues(results),
            recommendations=self._batch_recommendations(batch_result),
        )

    def _batch_critical_issues(self, results: Sequence[ValidationResult]) -> List[ValidationError]:
        first_seen: Dict[str, ValidationError] = {}
        request_counts: Dict[str, int] = {}
        for result in results:
            for key in dict.fromkeys(f"{e.code}:{e.field}" for e in result.errors):
                request_counts[key] = request_counts.get(key, 0) + 1
            for error in result.errors:
                first_seen.setdefault(f"{error.code}:{error.field}", error)

        threshold = len(results) * CRITICAL_ISSUE_SHARE
        frequent = [key for key, count in request_counts.items() if count > threshold]
        frequent.sort(key=lambda key: -request_counts[key])
        return [first_seen[key] for key in frequent[:MAX_CRITICAL_ISSUES]]

    def _batch_recommendations(
        self,
        batch_result: BatchValidationResult
    ) -> List[ComplianceRecommendation]:
        summary = batch_result.summary
        recommendations = []

        if summary.invalid_requests > summary.total_requests * HIGH_FAILURE_SHARE:
            failure_rate = int(summary.invalid_requests / summary.total_requests * 100 + 0.5)
            recommendations.append(ComplianceRecommendation(
                priority="high",
                title="High Failure Rate Detected",
                description=(
                    f"{failure_rate}% of requests failed validation. "
                    "Review common errors and implement systematic fixes."
                ),
                affected_fields=[e.code for e in summary.common_errors[:5]],
                impact_score=50,
            ))

        if summary.common_errors:
            top = summary.common_errors[0]
            recommendations.append(ComplianceRecommendation(
                priority="high",
                title=f"Address Most Common Error: {top.code}",
                description=f"{top.message} appears in {top.percentage}% of requests.",
                affected_fields=[top.code],
                impact_score=top.percentage,
            ))

        return recommendations
