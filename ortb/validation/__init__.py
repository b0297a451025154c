"""
Bid Request Validation

Result models and the exception hierarchy for validating OpenRTB bid
requests. The orchestrator, cache and schema matcher live in their own
submodules and are imported from there.
"""

from ortb.validation.errors import (
    BatchSizeExceededError,
    CacheError,
    ConfigurationError,
    MatcherShapeError,
    OrtbValidatorError,
    SchemaMatcherError,
    UnsupportedSpecVersionError,
)
from ortb.validation.models import (
    BatchProcessingStats,
    BatchValidationResult,
    BatchValidationSummary,
    ErrorFrequency,
    ProcessingError,
    ValidationError,
    ValidationResult,
    ValidationWarning,
    WarningFrequency,
)

__all__ = [
    "BatchSizeExceededError",
    "CacheError",
    "ConfigurationError",
    "MatcherShapeError",
    "OrtbValidatorError",
    "SchemaMatcherError",
    "UnsupportedSpecVersionError",
    "BatchProcessingStats",
    "BatchValidationResult",
    "BatchValidationSummary",
    "ErrorFrequency",
    "ProcessingError",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "WarningFrequency",
]
