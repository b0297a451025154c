"""
Batch Summaries

Aggregate counts and most-frequent issue codes over a sequence of
validation results. Shared by the orchestrator (batch summaries) and the
reporting engine (batch analytics).
"""

from typing import Dict, List, Sequence, Tuple

from ortb.validation.models import (
    BatchValidationSummary,
    ErrorFrequency,
    ValidationResult,
    WarningFrequency,
)


TOP_CODES = 10


def _percentage(count: int, total: int) -> int:
    if not total:
        return 0
    return int(count / total * 100 + 0.5)


def count_codes(issues) -> List[Tuple[str, str, int]]:
    """Count issues by code.

    Returns:
        (code, first message seen, count) tuples sorted by count descending;
        ties keep first-appearance order
    """
    counts: Dict[str, List] = {}
    for issue in issues:
        entry = counts.get(issue.code)
        if entry is None:
            counts[issue.code] = [issue.message, 1]
        else:
            entry[1] += 1
    ranked = sorted(counts.items(), key=lambda item: -item[1][1])
    return [(code, message, count) for code, (message, count) in ranked]


def error_frequencies(
    results: Sequence[ValidationResult],
    limit: int = TOP_CODES,
) -> List[ErrorFrequency]:
    """Most common error codes by raw occurrence."""
    total = len(results)
    ranked = count_codes(error for result in results for error in result.errors)
    return [
        ErrorFrequency(code=code, message=message, count=count, percentage=_percentage(count, total))
        for code, message, count in ranked[:limit]
    ]


def warning_frequencies(
    results: Sequence[ValidationResult],
    limit: int = TOP_CODES,
) -> List[WarningFrequency]:
    """Most common warning codes by raw occurrence."""
    total = len(results)
    ranked = count_codes(warning for result in results for warning in result.warnings)
    return [
        WarningFrequency(code=code, message=message, count=count, percentage=_percentage(count, total))
        for code, message, count in ranked[:limit]
    ]


def average_compliance_score(results: Sequence[ValidationResult]) -> int:
    """Rounded mean compliance score; 0 for no results."""
    if not results:
        return 0
    return int(sum(r.compliance_score for r in results) / len(results) + 0.5)


def summarize_results(results: Sequence[ValidationResult]) -> BatchValidationSummary:
    """Build the summary of a batch from its materialized results."""
    return BatchValidationSummary(
        total_requests=len(results),
        valid_requests=sum(1 for r in results if r.is_valid),
        invalid_requests=sum(1 for r in results if not r.is_valid),
        warning_requests=sum(1 for r in results if r.is_valid and r.has_warnings),
        common_errors=error_frequencies(results),
        common_warnings=warning_frequencies(results),
        average_compliance_score=average_compliance_score(results),
    )
