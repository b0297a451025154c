"""
Validator Error Hierarchy

Defines the exceptions used by the validation orchestrator, the result
cache and the schema matcher. Field-level problems in a bid request are
never raised; they are reported as ValidationError/ValidationWarning data.
"""


class OrtbValidatorError(Exception):
    """Base exception for all validator errors."""
    pass


class SchemaMatcherError(OrtbValidatorError):
    """The schema matcher failed to produce an outcome.

    Raised by matchers for internal failures. The orchestrator converts it
    into a synthesized error result and never lets it reach the caller.
    """
    pass


class MatcherShapeError(SchemaMatcherError):
    """Schema matcher output does not have the expected shape.

    Attributes:
        raw_output: The output that failed shape validation
        original_error: The underlying pydantic validation error
    """

    def __init__(
        self,
        message: str,
        raw_output: object = None,
        original_error: Exception = None
    ):
        super().__init__(message)
        self.raw_output = raw_output
        self.original_error = original_error


class UnsupportedSpecVersionError(SchemaMatcherError):
    """Requested OpenRTB specification version is not supported by the matcher."""

    def __init__(self, spec_version: str, supported: list = None):
        supported = supported or []
        super().__init__(
            f"Unsupported OpenRTB version: {spec_version}. "
            f"Supported versions: {', '.join(supported) or 'none'}"
        )
        self.spec_version = spec_version
        self.supported = supported


class BatchSizeExceededError(OrtbValidatorError):
    """Batch holds more requests than the configured maximum.

    This is the only precondition failure validate_batch raises; it is
    raised before any request is validated.
    """

    def __init__(self, batch_size: int, max_batch_size: int):
        super().__init__(
            f"Batch size {batch_size} exceeds maximum allowed size of {max_batch_size}"
        )
        self.batch_size = batch_size
        self.max_batch_size = max_batch_size


class CacheError(OrtbValidatorError):
    """Error generating a cache key or storing a cache entry.

    Raised when a request cannot be canonically serialized for fingerprinting.
    """
    pass


class ConfigurationError(OrtbValidatorError):
    """Invalid validator configuration.

    Raised when configuration values are out of range or cannot be parsed.
    """
    pass
