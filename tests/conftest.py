"""
Pytest configuration and shared fixtures.
"""
import asyncio
import os
import time

import pytest

from ortb.validation.models import (
    BatchValidationResult,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from ortb.validation.schema_matcher import MatchResult, SchemaMatcher


@pytest.fixture(autouse=True, scope="function")
def reset_environment():
    """Reset environment variables between tests."""
    original_env = os.environ.copy()
    for name in list(os.environ):
        if name.startswith("ORTB_") or name.startswith("API_"):
            del os.environ[name]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def valid_request():
    """Minimal valid banner request: no site/app and no device."""
    return {
        "id": "req-1",
        "imp": [{"id": "imp-1", "banner": {"w": 300, "h": 250}}],
        "at": 1,
    }


@pytest.fixture
def complete_request():
    """Valid request that triggers no warnings."""
    return {
        "id": "req-complete",
        "imp": [{"id": "imp-1", "banner": {"w": 728, "h": 90}, "bidfloor": 0.5, "bidfloorcur": "USD"}],
        "site": {"id": "site-1", "domain": "example.com", "page": "https://example.com/news"},
        "device": {"ua": "Mozilla/5.0", "ip": "203.0.113.7", "devicetype": 2},
        "at": 2,
        "tmax": 120,
        "cur": ["USD"],
    }


@pytest.fixture
def make_error():
    def factory(field="imp.0.id", code="ORTB_INVALID_VALUE", type="value", message=None):
        return ValidationError(
            field=field,
            message=message or f"Problem with {field}",
            code=code,
            type=type,
        )
    return factory


@pytest.fixture
def make_warning():
    def factory(field="device", code="ORTB_RECOMMENDED_FIELD_MISSING", message=None):
        return ValidationWarning(
            field=field,
            message=message or f"Consider {field}",
            code=code,
        )
    return factory


@pytest.fixture
def make_result():
    """Build a consistent ValidationResult from errors, warnings and fields."""
    from ortb.reporting.scoring import compliance_level, score_issues

    def factory(errors=(), warnings=(), validated_fields=(), processing_time=1.0, **overrides):
        errors, warnings = list(errors), list(warnings)
        fields = dict(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            compliance_level=compliance_level(errors, warnings),
            validated_fields=list(validated_fields),
            compliance_score=score_issues(errors, warnings, len(validated_fields)),
            processing_time=processing_time,
        )
        fields.update(overrides)
        return ValidationResult(**fields)
    return factory


@pytest.fixture
def make_batch():
    """Build a BatchValidationResult whose summary matches its results."""
    from ortb.validation.summary import average_compliance_score, summarize_results

    def factory(results, **overrides):
        fields = dict(
            results=list(results),
            summary=summarize_results(results),
            overall_compliance_score=average_compliance_score(results),
        )
        fields.update(overrides)
        return BatchValidationResult(**fields)
    return factory


class StaticMatcher(SchemaMatcher):
    """Matcher returning a fixed raw output and counting calls."""

    supported_versions = ("2.6",)

    def __init__(self, output=None):
        self.output = output if output is not None else {
            "is_valid": True, "errors": [], "warnings": [], "validated_fields": ["id", "imp", "at"],
        }
        self.calls = 0

    def validate_against_schema(self, request, spec_version):
        self.calls += 1
        return self.output


class SlowMatcher(SchemaMatcher):
    """Async matcher that sleeps before answering."""

    supported_versions = ("2.6",)

    def __init__(self, delay_seconds):
        self.delay_seconds = delay_seconds
        self.calls = 0

    async def validate_against_schema(self, request, spec_version):
        self.calls += 1
        await asyncio.sleep(self.delay_seconds)
        return MatchResult(is_valid=True, errors=[], warnings=[], validated_fields=["id"])


class SyncSlowMatcher(SchemaMatcher):
    """Blocking matcher; the orchestrator runs it in a worker thread."""

    supported_versions = ("2.6",)

    def __init__(self, delay_seconds):
        self.delay_seconds = delay_seconds
        self.calls = 0
        self.finished = 0

    def validate_against_schema(self, request, spec_version):
        self.calls += 1
        delay, self.delay_seconds = self.delay_seconds, 0
        time.sleep(delay)
        self.finished += 1
        return {"is_valid": True, "errors": [], "warnings": [], "validated_fields": ["id"]}


class FailingMatcher(SchemaMatcher):
    supported_versions = ("2.6",)

    def __init__(self, message="matcher exploded"):
        self.message = message

    def validate_against_schema(self, request, spec_version):
        raise RuntimeError(self.message)


@pytest.fixture
def static_matcher():
    return StaticMatcher()


@pytest.fixture
def static_matcher_factory():
    return StaticMatcher


@pytest.fixture
def slow_matcher_factory():
    return SlowMatcher


@pytest.fixture
def failing_matcher():
    return FailingMatcher()


@pytest.fixture
def sync_slow_matcher_factory():
    return SyncSlowMatcher
