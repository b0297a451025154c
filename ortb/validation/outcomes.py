"""
Validation Outcomes

Tagged outcomes used inside the orchestrator. A matcher call raced against
its timeout ends as exactly one of Completed, TimedOut or Failed; a batch
item ends as Success or Failure. Callers never see these types; they only
see the ValidationResult each outcome is turned into.
"""

from dataclasses import dataclass
from typing import Union

from ortb.validation.models import ValidationResult
from ortb.validation.schema_matcher import MatchResult


@dataclass(frozen=True)
class Completed:
    """The matcher returned a well-formed result in time."""
    match: MatchResult


@dataclass(frozen=True)
class TimedOut:
    """The matcher did not finish within ``timeout_ms``."""
    timeout_ms: int

    @property
    def reason(self) -> str:
        return f"Validation timeout after {self.timeout_ms}ms"


@dataclass(frozen=True)
class Failed:
    """The matcher raised, or returned output of the wrong shape."""
    error: BaseException

    @property
    def reason(self) -> str:
        return str(self.error) or type(self.error).__name__


MatchOutcome = Union[Completed, TimedOut, Failed]


@dataclass(frozen=True)
class Success:
    """Batch item validated by the matcher (or served from cache)."""
    index: int
    result: ValidationResult


@dataclass(frozen=True)
class Failure:
    """Batch item whose validation timed out or failed.

    ``result`` is the synthesized error result placed at ``index``.
    """
    index: int
    error: str
    result: ValidationResult


BatchItem = Union[Success, Failure]
