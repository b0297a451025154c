"""
Compliance Scoring

Pure functions that turn validation outcomes into compliance scores,
compliance levels and category breakdowns. Identical inputs always give
identical outputs.
"""

import math
from typing import Dict, List, Sequence, Tuple

from ortb.reporting.models import CategoryCompliance
from ortb.validation.models import ComplianceLevel, ValidationError, ValidationWarning


ERROR_PENALTY = 20
WARNING_PENALTY = 5
REQUIRED_FIELD_PENALTY = 10
FIELD_BONUS_PER_FIELD = 2
FIELD_BONUS_CAP = 20

CATEGORY_REQUIRED_FIELDS = "Required Fields"
CATEGORY_SCHEMA = "Schema Validation"
CATEGORY_FORMAT = "Format Validation"
CATEGORY_VALUE = "Value Validation"
CATEGORY_BUSINESS_LOGIC = "Business Logic"
CATEGORY_RECOMMENDED_FIELDS = "Recommended Fields"
CATEGORY_OTHER = "Other"

_ERROR_TYPE_CATEGORIES = {
    "required-field": CATEGORY_REQUIRED_FIELDS,
    "schema": CATEGORY_SCHEMA,
    "format": CATEGORY_FORMAT,
    "value": CATEGORY_VALUE,
    "logical": CATEGORY_BUSINESS_LOGIC,
}

# Checked in order; the first marker found in a warning code wins.
_WARNING_CODE_MARKERS = (
    ("RECOMMENDED", CATEGORY_RECOMMENDED_FIELDS),
    ("FORMAT", CATEGORY_FORMAT),
    ("VALUE", CATEGORY_VALUE),
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def is_required_field_error(error: ValidationError) -> bool:
    return error.type == "required-field" or "REQUIRED" in error.code


def compliance_level(
    errors: Sequence[ValidationError],
    warnings: Sequence[ValidationWarning],
) -> ComplianceLevel:
    """Coarse compliance bucket from error/warning presence."""
    if errors:
        return "non-compliant"
    if warnings:
        return "partial"
    return "compliant"


def score_issues(
    errors: Sequence[ValidationError],
    warnings: Sequence[ValidationWarning],
    validated_field_count: int,
) -> int:
    """Score a set of issues on the 0-100 scale.

    Each error costs 20 points and each warning 5. Required-field errors
    cost a further 10 on top of the base error penalty. Breadth of
    validated fields earns back up to 20 points (2 per field).
    """
    required_errors = sum(1 for e in errors if is_required_field_error(e))
    score = 100
    score -= ERROR_PENALTY * len(errors)
    score -= WARNING_PENALTY * len(warnings)
    score -= REQUIRED_FIELD_PENALTY * required_errors
    score += min(FIELD_BONUS_CAP, FIELD_BONUS_PER_FIELD * validated_field_count)
    return max(0, min(100, round_half_up(score)))


def calculate_compliance_score(result) -> int:
    """Compliance score for a ValidationResult (or anything shaped like one)."""
    return score_issues(result.errors, result.warnings, len(result.validated_fields))


def category_for_error(error: ValidationError) -> str:
    return _ERROR_TYPE_CATEGORIES.get(error.type, CATEGORY_OTHER)


def category_for_warning(warning: ValidationWarning) -> str:
    for marker, category in _WARNING_CODE_MARKERS:
        if marker in warning.code:
            return category
    return CATEGORY_OTHER


def group_issues_by_category(
    errors: Sequence[ValidationError],
    warnings: Sequence[ValidationWarning],
) -> Dict[str, Tuple[List[ValidationError], List[ValidationWarning]]]:
    """Bucket errors and warnings by category, in order of first appearance."""
    groups: Dict[str, Tuple[List[ValidationError], List[ValidationWarning]]] = {}
    for error in errors:
        groups.setdefault(category_for_error(error), ([], []))[0].append(error)
    for warning in warnings:
        groups.setdefault(category_for_warning(warning), ([], []))[1].append(warning)
    return groups


def category_compliance(error_count: int, warning_count: int) -> Tuple[ComplianceLevel, int]:
    """Compliance level and score for a single category."""
    if error_count:
        return "non-compliant", max(0, 50 - 10 * error_count)
    if warning_count:
        return "partial", 80
    return "compliant", 100


def categorize_validation_issues(
    errors: Sequence[ValidationError],
    warnings: Sequence[ValidationWarning],
) -> List[CategoryCompliance]:
    """Build one CategoryCompliance per non-empty issue category."""
    categories = []
    for category, (category_errors, category_warnings) in group_issues_by_category(
        errors, warnings
    ).items():
        level, score = category_compliance(len(category_errors), len(category_warnings))
        categories.append(CategoryCompliance(
            category=category,
            compliance=level,
            score=score,
            issue_count=len(category_errors) + len(category_warnings),
            issues=list(category_errors),
        ))
    return categories
