"""
Schema Matcher

The schema matcher walks a bid request and reports raw field-level errors,
warnings and the field paths it validated. The orchestrator depends only on
the SchemaMatcher interface; PydanticSchemaMatcher is the default
implementation, built on the models in ``ortb.validation.request_schema``
and the rule table in ``ortb.validation.rules``.

Matchers may implement ``validate_against_schema`` as a plain method or as
``async def``. Their output is validated against MatchResult before the
orchestrator trusts it.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as PydanticValidationError

from ortb.validation.errors import (
    MatcherShapeError,
    SchemaMatcherError,
    UnsupportedSpecVersionError,
)
from ortb.validation.models import ErrorType, ValidationError, ValidationWarning
from ortb.validation.request_schema import SCHEMAS
from ortb.validation.rules import DEFAULT_RULES, Rule, apply_rules


logger = logging.getLogger(__name__)

REQUIRED_FIELD_CODE = "ORTB_REQUIRED_FIELD_MISSING"
INVALID_TYPE_CODE = "ORTB_INVALID_TYPE"
INVALID_VALUE_CODE = "ORTB_INVALID_VALUE"
INVALID_FORMAT_CODE = "ORTB_INVALID_FORMAT"

_VALUE_ERROR_TYPES = {
    "too_short", "too_long", "string_too_short", "string_too_long",
    "greater_than", "greater_than_equal", "less_than", "less_than_equal",
    "literal_error", "enum",
}
_FORMAT_ERROR_TYPES = {"string_pattern_mismatch"}

# Constraint failures on these paths get a dedicated code
_SPECIAL_CODES = {
    ("id",): "ORTB_INVALID_REQUEST_ID",
    ("imp",): "ORTB_MISSING_IMPRESSIONS",
}


class MatchResult(BaseModel):
    """Raw matcher output.

    Any deviation from this shape (missing keys, wrong types, unknown keys,
    ``is_valid`` disagreeing with ``errors``) is a hard failure.
    """
    model_config = ConfigDict(extra="forbid")

    is_valid: bool
    errors: List[ValidationError]
    warnings: List[ValidationWarning]
    validated_fields: List[str]

    @model_validator(mode="after")
    def _check_validity(self) -> "MatchResult":
        if self.is_valid != (len(self.errors) == 0):
            raise ValueError("is_valid must be true exactly when there are no errors")
        return self


def coerce_match_result(raw: Any) -> MatchResult:
    """Validate matcher output.

    Args:
        raw: MatchResult instance or a dict with the MatchResult keys

    Returns:
        MatchResult

    Raises:
        MatcherShapeError: If the output does not have the expected shape
    """
    if isinstance(raw, MatchResult):
        return raw
    if not isinstance(raw, dict):
        raise MatcherShapeError(
            f"Schema matcher returned {type(raw).__name__}, expected a mapping",
            raw_output=raw,
        )
    try:
        return MatchResult.model_validate(raw)
    except PydanticValidationError as e:
        raise MatcherShapeError(
            f"Schema matcher output has an unexpected shape: {e.error_count()} problem(s)",
            raw_output=raw,
            original_error=e,
        )


class SchemaMatcher(ABC):
    """Interface consumed by the validation orchestrator."""

    supported_versions: tuple = ()

    @abstractmethod
    def validate_against_schema(self, request: Any, spec_version: str) -> Any:
        """Validate a request against a specification version.

        Args:
            request: Parsed bid request
            spec_version: OpenRTB version (e.g. "2.6")

        Returns:
            MatchResult, or a dict with keys is_valid, errors, warnings and
            validated_fields (may be returned from a coroutine)
        """
        raise NotImplementedError


def field_path(loc: Iterable[Any]) -> str:
    """Dotted field path for a pydantic error location."""
    path = ".".join(str(part) for part in loc)
    return path or "root"


def collect_field_paths(value: Any, prefix: str = "") -> List[str]:
    """All present field paths of a request, depth first in document order.

    Object keys are listed; array elements are traversed through their
    index but not listed themselves. ``ext`` objects are listed but not
    descended into.
    """
    paths: List[str] = []
    if isinstance(value, dict):
        for key, child in value.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            paths.append(path)
            if key != "ext":
                paths.extend(collect_field_paths(child, path))
    elif isinstance(value, list):
        for index, child in enumerate(value):
            paths.extend(collect_field_paths(child, f"{prefix}.{index}"))
    return paths


def _classify(error_type: str) -> ErrorType:
    if error_type == "missing":
        return "required-field"
    if error_type in _VALUE_ERROR_TYPES:
        return "value"
    if error_type in _FORMAT_ERROR_TYPES:
        return "format"
    return "schema"


def _code_for(kind: ErrorType, loc: tuple) -> str:
    if kind == "required-field":
        return REQUIRED_FIELD_CODE
    if kind == "value":
        return _SPECIAL_CODES.get(loc, INVALID_VALUE_CODE)
    if kind == "format":
        return INVALID_FORMAT_CODE
    return INVALID_TYPE_CODE


def pydantic_errors_to_validation_errors(errors: list) -> List[ValidationError]:
    """Convert pydantic error dicts to ValidationError records."""
    converted = []
    for err in errors:
        loc = tuple(err.get("loc", ()))
        path = field_path(loc)
        kind = _classify(err["type"])
        if kind == "required-field":
            message = f"Required field '{path}' is missing"
            suggestion = f"Add the required field '{path}' to your request"
            actual = None
        else:
            message = f"Field '{path}': {err['msg']}"
            suggestion = f"Check the '{path}' field against the OpenRTB specification"
            actual = err.get("input")
        converted.append(ValidationError(
            field=path,
            message=message,
            code=_code_for(kind, loc),
            type=kind,
            actual_value=actual,
            expected_value=err.get("ctx", {}).get("expected") if err.get("ctx") else None,
            suggestion=suggestion,
        ))
    return converted


class PydanticSchemaMatcher(SchemaMatcher):
    """Default schema matcher.

    Structural validation runs the request through the strict pydantic
    models of the requested version; the rule table adds business, range
    and recommended-field checks.

    Example:
        >>> matcher = PydanticSchemaMatcher()
        >>> match = matcher.validate_against_schema(request, "2.6")
        >>> match.is_valid
    """

    supported_versions = tuple(SCHEMAS)

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES

    def validate_against_schema(self, request: Any, spec_version: str) -> MatchResult:
        """Validate a request.

        Raises:
            UnsupportedSpecVersionError: If spec_version has no schema
            SchemaMatcherError: If the request cannot be serialized as JSON
        """
        schema = SCHEMAS.get(spec_version)
        if schema is None:
            raise UnsupportedSpecVersionError(spec_version, list(self.supported_versions))

        try:
            document = json.dumps(request)
        except (TypeError, ValueError) as e:
            raise SchemaMatcherError(f"Request is not JSON-serializable: {e}")

        errors: List[ValidationError] = []
        try:
            schema.model_validate_json(document)
        except PydanticValidationError as e:
            errors.extend(pydantic_errors_to_validation_errors(e.errors()))

        warnings: List[ValidationWarning] = []
        if isinstance(request, dict):
            rule_errors, rule_warnings = apply_rules(request, self.rules)
            errors.extend(rule_errors)
            warnings.extend(rule_warnings)

        error_paths = {error.field for error in errors}
        validated = [
            path for path in collect_field_paths(request)
            if path not in error_paths
        ]

        logger.debug(
            f"Schema match for spec {spec_version}: "
            f"{len(errors)} error(s), {len(warnings)} warning(s), {len(validated)} field(s)"
        )
        return MatchResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            validated_fields=validated,
        )

