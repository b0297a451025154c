"""
Batch Analytics

Derived statistics for a single BatchValidationResult: score and timing
distributions, error distributions and correlations, per-field rates and
analytics recommendations. Everything here is recomputed from
``batch_result.results``; nothing is read from stored summaries.
"""

from itertools import combinations
from typing import Dict, List, Optional, Sequence, Set

from ortb.reporting.models import (
    AnalyticsRecommendation,
    BatchAnalytics,
    BatchStatistics,
    CategoryDistribution,
    CategoryTrend,
    ComplianceDistribution,
    ComplianceTrends,
    ErrorCorrelation,
    ErrorDistribution,
    FieldAnalytics,
    FieldDistribution,
    PerformanceMetrics,
    ProcessingTimeStats,
    SeverityDistribution,
)
from ortb.reporting.scoring import (
    categorize_validation_issues,
    category_for_error,
    round_half_up,
)
from ortb.validation.models import BatchValidationResult, ValidationResult
from ortb.validation.summary import error_frequencies, summarize_results


LOW_COMPLIANCE_SCORE = 70
SLOW_VALIDATION_MS = 1000
LOW_FIELD_VALIDATION_RATE = 80
MAX_CORRELATIONS = 10
MAX_COMMON_ISSUES = 3

_PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def percentage(part: float, whole: float) -> int:
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


def percentile(sorted_values: Sequence[float], q: float) -> float:
    """Nearest-rank percentile: ``sorted_values[floor(n * q)]``, clamped to the last element."""
    if not sorted_values:
        return 0.0
    index = min(int(len(sorted_values) * q), len(sorted_values) - 1)
    return sorted_values[index]


def median(sorted_values: Sequence[float]) -> float:
    return percentile(sorted_values, 0.5)


def _processing_times(results: Sequence[ValidationResult]) -> List[float]:
    return sorted(r.processing_time for r in results if r.processing_time is not None)


def calculate_batch_statistics(results: Sequence[ValidationResult]) -> BatchStatistics:
    summary = summarize_results(results)
    scores = sorted(r.compliance_score for r in results)
    times = _processing_times(results)

    processing_time = None
    if times:
        processing_time = ProcessingTimeStats(
            average=round(sum(times) / len(times), 3),
            median=median(times),
            p50=percentile(times, 0.5),
            p95=percentile(times, 0.95),
            p99=percentile(times, 0.99),
            min=times[0],
            max=times[-1],
        )

    return BatchStatistics(
        total_requests=summary.total_requests,
        valid_requests=summary.valid_requests,
        invalid_requests=summary.invalid_requests,
        warning_requests=summary.warning_requests,
        average_compliance_score=round(sum(scores) / len(scores), 2) if scores else 0.0,
        median_compliance_score=median(scores),
        compliance_distribution=ComplianceDistribution(
            compliant=sum(1 for r in results if r.compliance_level == "compliant"),
            partial=sum(1 for r in results if r.compliance_level == "partial"),
            non_compliant=sum(1 for r in results if r.compliance_level == "non-compliant"),
        ),
        processing_time=processing_time,
    )


def _error_codes_by_request(results: Sequence[ValidationResult]) -> Dict[str, Set[int]]:
    requests_by_code: Dict[str, Set[int]] = {}
    for index, result in enumerate(results):
        for error in result.errors:
            requests_by_code.setdefault(error.code, set()).add(index)
    return requests_by_code


def calculate_error_correlations(results: Sequence[ValidationResult]) -> List[ErrorCorrelation]:
    """Pairwise co-occurrence of error codes across requests.

    Strength is the Jaccard index of the two request sets; only pairs that
    co-occur at least once are reported.
    """
    requests_by_code = _error_codes_by_request(results)
    correlations = []
    for first, second in combinations(sorted(requests_by_code), 2):
        a, b = requests_by_code[first], requests_by_code[second]
        both = len(a & b)
        if not both:
            continue
        correlations.append(ErrorCorrelation(
            error1=first,
            error2=second,
            correlation_strength=round(both / len(a | b), 4),
            co_occurrence_rate=percentage(both, len(results)),
        ))
    correlations.sort(key=lambda c: (-c.correlation_strength, -c.co_occurrence_rate))
    return correlations[:MAX_CORRELATIONS]


def analyze_error_distribution(results: Sequence[ValidationResult]) -> ErrorDistribution:
    errors = [e for r in results for e in r.errors]
    warnings = [w for r in results for w in r.warnings]

    category_counts: Dict[str, int] = {}
    for error in errors:
        category = category_for_error(error)
        category_counts[category] = category_counts.get(category, 0) + 1
    by_category = sorted(
        (
            CategoryDistribution(category=category, count=count, percentage=percentage(count, len(errors)))
            for category, count in category_counts.items()
        ),
        key=lambda d: -d.count,
    )

    severity_counts: Dict[str, int] = {}
    for issue in [*errors, *warnings]:
        severity_counts[issue.severity] = severity_counts.get(issue.severity, 0) + 1
    total_issues = len(errors) + len(warnings)
    by_severity = [
        SeverityDistribution(severity=severity, count=count, percentage=percentage(count, total_issues))
        for severity, count in severity_counts.items()
    ]

    fields: Dict[str, dict] = {}
    for index, result in enumerate(results):
        for error in result.errors:
            data = fields.setdefault(error.field, {"errors": 0, "warnings": 0, "requests": set()})
            data["errors"] += 1
            data["requests"].add(index)
        for warning in result.warnings:
            data = fields.setdefault(warning.field, {"errors": 0, "warnings": 0, "requests": set()})
            data["warnings"] += 1
            data["requests"].add(index)
    by_field = sorted(
        (
            FieldDistribution(
                field_path=path,
                error_count=data["errors"],
                warning_count=data["warnings"],
                affected_requests=len(data["requests"]),
                percentage=percentage(len(data["requests"]), len(results)),
            )
            for path, data in fields.items()
        ),
        key=lambda d: -d.affected_requests,
    )

    return ErrorDistribution(
        by_category=by_category,
        by_severity=by_severity,
        by_field=by_field,
        most_common_errors=error_frequencies(results),
        error_correlations=calculate_error_correlations(results),
    )


def analyze_compliance_trends(results: Sequence[ValidationResult]) -> ComplianceTrends:
    """Category picture within one batch.

    A single batch has no time axis, so every category trend is flat.
    Warning-only categories are improvement areas; categories with errors
    are regression areas.
    """
    categories = categorize_validation_issues(
        [e for r in results for e in r.errors],
        [w for r in results for w in r.warnings],
    )
    return ComplianceTrends(
        overall_trend=0.0,
        category_trends=[CategoryTrend(category=c.category) for c in categories],
        improvement_areas=[c.category for c in categories if c.compliance == "partial"],
        regression_areas=[c.category for c in categories if c.compliance == "non-compliant"],
    )


def analyze_field_performance(results: Sequence[ValidationResult]) -> List[FieldAnalytics]:
    """Per-field rates as percentages of the requests that reference the field.

    A request references a field when it validated the field or reported
    an error or warning on it.
    """
    fields: Dict[str, dict] = {}

    def entry(path: str) -> dict:
        return fields.setdefault(path, {
            "referenced": set(), "validated": set(), "errored": set(), "warned": set(),
            "error_messages": [], "warning_messages": [],
        })

    for index, result in enumerate(results):
        for path in result.validated_fields:
            data = entry(path)
            data["referenced"].add(index)
            data["validated"].add(index)
        for error in result.errors:
            data = entry(error.field)
            data["referenced"].add(index)
            data["errored"].add(index)
            if error.message not in data["error_messages"]:
                data["error_messages"].append(error.message)
        for warning in result.warnings:
            data = entry(warning.field)
            data["referenced"].add(index)
            data["warned"].add(index)
            if warning.message not in data["warning_messages"]:
                data["warning_messages"].append(warning.message)

    analytics = []
    for path, data in fields.items():
        referenced = len(data["referenced"])
        validation_rate = percentage(len(data["validated"]), referenced)

        recommendations = []
        if data["errored"]:
            recommendations.append(f"Fix validation errors for {path}")
        if data["warned"]:
            recommendations.append(f"Address warnings to improve {path} quality")
        if validation_rate < LOW_FIELD_VALIDATION_RATE:
            recommendations.append(
                f"Improve {path} validation rate (currently {validation_rate}%)"
            )

        analytics.append(FieldAnalytics(
            field_path=path,
            referenced_requests=referenced,
            validation_rate=validation_rate,
            error_rate=percentage(len(data["errored"]), referenced),
            warning_rate=percentage(len(data["warned"]), referenced),
            common_issues=(data["error_messages"] + data["warning_messages"])[:MAX_COMMON_ISSUES],
            recommendations=recommendations,
        ))
    return analytics


def calculate_performance_metrics(batch_result: BatchValidationResult) -> PerformanceMetrics:
    stats = batch_result.processing_stats
    times = _processing_times(batch_result.results)
    total_time = stats.total_processing_time

    return PerformanceMetrics(
        average_validation_time=stats.average_processing_time,
        median_validation_time=median(times) if times else stats.average_processing_time,
        throughput=round(len(batch_result.results) / total_time * 1000, 2) if total_time > 0 else 0.0,
    )


def generate_analytics_recommendations(
    stats: BatchStatistics,
    top_error_code: Optional[str] = None
) -> List[AnalyticsRecommendation]:
    """Recommendations for low compliance and slow validation.

    An empty batch gets none.
    """
    if not stats.total_requests:
        return []

    recommendations = []

    if stats.average_compliance_score < LOW_COMPLIANCE_SCORE:
        action_items = [
            "Review and fix most common errors",
            "Implement validation checks in request generation",
            "Establish compliance monitoring",
        ]
        if top_error_code:
            action_items[0] = f"Review and fix most common errors, starting with {top_error_code}"
        recommendations.append(AnalyticsRecommendation(
            priority="critical",
            category="compliance",
            title="Critical Compliance Issues Detected",
            description=(
                f"Average compliance score is {stats.average_compliance_score}%, "
                "indicating systemic issues"
            ),
            impact="High impact on request acceptance rates",
            action_items=action_items,
            estimated_effort="high",
        ))

    if stats.processing_time is not None and stats.processing_time.average > SLOW_VALIDATION_MS:
        recommendations.append(AnalyticsRecommendation(
            priority="medium",
            category="performance",
            title="Validation Performance Optimization Needed",
            description=f"Average validation time is {stats.processing_time.average}ms",
            impact="Affects system throughput and user experience",
            action_items=[
                "Optimize validation rules",
                "Enable result caching",
                "Tune batch concurrency",
            ],
            estimated_effort="medium",
        ))

    return sorted(recommendations, key=lambda r: _PRIORITY_ORDER[r.priority])


def generate_batch_analytics(batch_result: BatchValidationResult) -> BatchAnalytics:
    """Full analytics for one batch."""
    results = batch_result.results
    stats = calculate_batch_statistics(results)
    distribution = analyze_error_distribution(results)
    top_error = distribution.most_common_errors[0].code if distribution.most_common_errors else None

    return BatchAnalytics(
        overall_stats=stats,
        error_distribution=distribution,
        compliance_trends=analyze_compliance_trends(results),
        field_analytics=analyze_field_performance(results),
        performance_metrics=calculate_performance_metrics(batch_result),
        recommendations=generate_analytics_recommendations(stats, top_error),
    )
