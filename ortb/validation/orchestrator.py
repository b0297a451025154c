"""
Validation Orchestrator

Single entry point for validating one bid request or a batch of them.
Coordinates the result cache, the schema matcher, per-request timeouts,
windowed batch concurrency and partial-failure accounting.

Every failure of the matcher (timeout, exception, malformed output) ends
in a well-formed ValidationResult. The only exception validate_batch
raises is BatchSizeExceededError, before any request is touched.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from ortb.config.settings import CacheConfig, OrchestratorConfig
from ortb.reporting.scoring import compliance_level, is_required_field_error, score_issues
from ortb.validation.cache import CacheStats, ResultCache
from ortb.validation.errors import BatchSizeExceededError, CacheError
from ortb.validation.models import (
    BatchProcessingStats,
    BatchValidationResult,
    ProcessingError,
    ValidationError,
    ValidationResult,
)
from ortb.validation.outcomes import (
    BatchItem,
    Completed,
    Failed,
    Failure,
    MatchOutcome,
    Success,
    TimedOut,
)
from ortb.validation.schema_matcher import MatchResult, SchemaMatcher, coerce_match_result
from ortb.validation.summary import average_compliance_score, summarize_results


logger = logging.getLogger(__name__)

SERVICE_ERROR_CODE = "VALIDATION_SERVICE_ERROR"
BATCH_ERROR_CODE = "BATCH_PROCESSING_ERROR"

ProgressCallback = Callable[[int, int], Any]


@dataclass
class ValidationOptions:
    """Per-call validation options.

    Attributes:
        timeout_ms: Matcher timeout (default: OrchestratorConfig.timeout_ms)
        spec_version: OpenRTB version (default: OrchestratorConfig.spec_version)
        use_cache: Consult and populate the cache for this call
        include_field_details: Reporting verbosity for callers; ignored by validation
        include_compliance_report: Reporting verbosity for callers; ignored by validation
    """
    timeout_ms: Optional[int] = None
    spec_version: Optional[str] = None
    use_cache: bool = True
    include_field_details: bool = False
    include_compliance_report: bool = False

    def cache_fingerprint(self) -> Dict[str, Any]:
        """Options that change the validation outcome.

        Timeout, cache usage and reporting flags are excluded so that they
        share cache entries.
        """
        return {"spec_version": self.spec_version}


@dataclass
class BatchValidationOptions(ValidationOptions):
    """Batch validation options.

    Attributes:
        concurrency: Requests per window, capped at OrchestratorConfig.max_concurrency
        fail_fast: Stop after the window containing the first failure
        on_progress: Called as on_progress(processed, total) after each window;
            may be a coroutine function
    """
    concurrency: Optional[int] = None
    fail_fast: bool = False
    on_progress: Optional[ProgressCallback] = None


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


def _discard(task: asyncio.Task) -> None:
    """Retrieve a discarded task's outcome so it is never reported as unhandled."""
    if not task.cancelled():
        task.exception()


class ValidationOrchestrator:
    """Validates bid requests against a schema matcher.

    The orchestrator owns its cache. Pass a ResultCache to share one
    between orchestrators explicitly, or let it build its own from
    ``cache_config``.

    Example:
        >>> orchestrator = ValidationOrchestrator(PydanticSchemaMatcher())
        >>> result = await orchestrator.validate_single(request)
        >>> batch = await orchestrator.validate_batch(requests, BatchValidationOptions(concurrency=5))
    """

    def __init__(
        self,
        schema_matcher: SchemaMatcher,
        config: Optional[OrchestratorConfig] = None,
        cache: Optional[ResultCache] = None,
        cache_config: Optional[CacheConfig] = None
    ):
        """Initialize orchestrator.

        Args:
            schema_matcher: Matcher that produces raw field-level outcomes
            config: Orchestrator configuration (defaults to OrchestratorConfig())
            cache: Optional result cache (creates one from cache_config if not provided)
            cache_config: Configuration for the cache created when none is given
        """
        self.schema_matcher = schema_matcher
        self.config = config or OrchestratorConfig()
        self.cache = cache if cache is not None else ResultCache(cache_config)

    # --- Single request ---

    async def validate_single(
        self,
        request: Any,
        options: Optional[ValidationOptions] = None
    ) -> ValidationResult:
        """Validate one bid request.

        Args:
            request: Parsed bid request
            options: Per-call options

        Returns:
            ValidationResult; a synthesized VALIDATION_SERVICE_ERROR result
            when the matcher times out or fails
        """
        outcome = await self._validate(request, self._resolve(options))
        if isinstance(outcome, ValidationResult):
            return outcome
        return self._error_result(
            SERVICE_ERROR_CODE,
            f"Validation service error: {outcome.reason}",
            outcome.spec_version,
            outcome.elapsed_ms,
        )

    async def _validate(self, request: Any, options: ValidationOptions):
        """Cache lookup, timed matcher call and result building.

        Returns a ValidationResult on success, or a _FailedValidation
        describing why no result could be produced.
        """
        start = time.perf_counter()
        use_cache = self.config.enable_caching and options.use_cache
        cache_key = self._cache_key(request, options) if use_cache else None

        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit: {cache_key}")
                return cached.model_copy(update={
                    "from_cache": True,
                    "processing_time": _elapsed_ms(start),
                })
            logger.debug(f"Cache miss: {cache_key}")

        outcome = await self._race_matcher(request, options.spec_version, options.timeout_ms)

        if isinstance(outcome, Completed):
            result = self._build_result(outcome.match, options.spec_version, _elapsed_ms(start))
            if cache_key is not None:
                self.cache.set(cache_key, result)
            return result

        if isinstance(outcome, TimedOut):
            logger.warning(f"Schema matcher timed out after {outcome.timeout_ms}ms")
        else:
            logger.warning(f"Schema matcher failed: {outcome.reason}")
        return _FailedValidation(outcome.reason, options.spec_version, _elapsed_ms(start))

    async def _race_matcher(
        self,
        request: Any,
        spec_version: str,
        timeout_ms: int
    ) -> MatchOutcome:
        """Race the matcher call against a timer.

        The losing matcher call is discarded: a coroutine is cancelled and a
        thread's late result is never read.
        """
        task = asyncio.ensure_future(self._call_matcher(request, spec_version))
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)

        if task not in done:
            task.cancel()
            task.add_done_callback(_discard)
            return TimedOut(timeout_ms)

        try:
            raw = task.result()
        except Exception as e:
            return Failed(e)

        try:
            return Completed(coerce_match_result(raw))
        except Exception as e:
            return Failed(e)

    async def _call_matcher(self, request: Any, spec_version: str) -> Any:
        method = self.schema_matcher.validate_against_schema
        if inspect.iscoroutinefunction(method):
            return await method(request, spec_version)
        raw = await asyncio.to_thread(method, request, spec_version)
        if inspect.isawaitable(raw):
            raw = await raw
        return raw

    def _build_result(
        self,
        match: MatchResult,
        spec_version: str,
        processing_time: float
    ) -> ValidationResult:
        # A field reported missing is never also validated
        missing = {e.field for e in match.errors if is_required_field_error(e)}
        validated_fields = list(dict.fromkeys(
            path for path in match.validated_fields if path not in missing
        ))

        return ValidationResult(
            is_valid=not match.errors,
            errors=match.errors,
            warnings=match.warnings,
            compliance_level=compliance_level(match.errors, match.warnings),
            validated_fields=validated_fields,
            compliance_score=score_issues(match.errors, match.warnings, len(validated_fields)),
            spec_version=spec_version,
            processing_time=processing_time,
            from_cache=False,
        )

    def _error_result(
        self,
        code: str,
        message: str,
        spec_version: str,
        processing_time: float
    ) -> ValidationResult:
        return ValidationResult(
            is_valid=False,
            errors=[ValidationError(
                field="root",
                message=message,
                code=code,
                type="schema",
                expected_value="valid ORTB request",
            )],
            warnings=[],
            compliance_level="non-compliant",
            validated_fields=[],
            compliance_score=0,
            spec_version=spec_version,
            processing_time=processing_time,
            from_cache=False,
        )

    # --- Batch ---

    async def validate_batch(
        self,
        requests: Sequence[Any],
        options: Optional[BatchValidationOptions] = None
    ) -> BatchValidationResult:
        """Validate a sequence of bid requests in concurrency windows.

        Args:
            requests: Parsed bid requests
            options: Batch options

        Returns:
            BatchValidationResult with ``results[i]`` for ``requests[i]``

        Raises:
            BatchSizeExceededError: If there are more requests than max_batch_size
        """
        options = options or BatchValidationOptions()
        start = time.perf_counter()

        if not requests:
            return BatchValidationResult()

        total = len(requests)
        if total > self.config.max_batch_size:
            raise BatchSizeExceededError(total, self.config.max_batch_size)

        resolved = self._resolve(options)
        concurrency = self._effective_concurrency(options.concurrency)
        logger.info(f"Validating batch of {total} request(s), concurrency {concurrency}")

        slots: List[Optional[ValidationResult]] = [None] * total
        items: List[BatchItem] = []
        aborted = False

        for window_start in range(0, total, concurrency):
            window = range(window_start, min(window_start + concurrency, total))
            window_items = await asyncio.gather(*(
                self._validate_item(index, requests[index], resolved) for index in window
            ))
            for item in window_items:
                slots[item.index] = item.result
            items.extend(window_items)

            processed = window.stop
            logger.debug(f"Batch window done: {processed}/{total}")
            await self._report_progress(options.on_progress, processed, total)

            if options.fail_fast and any(isinstance(item, Failure) for item in window_items):
                aborted = processed < total
                if aborted:
                    logger.warning(f"Fail-fast: stopping batch after {processed}/{total} request(s)")
                break

        results = [result for result in slots if result is not None]
        total_time = _elapsed_ms(start)

        return BatchValidationResult(
            results=results,
            summary=summarize_results(results),
            overall_compliance_score=average_compliance_score(results),
            processing_stats=self._fold_stats(items, total_time, aborted),
        )

    async def _validate_item(self, index: int, request: Any, options: ValidationOptions) -> BatchItem:
        outcome = await self._validate(request, options)
        if isinstance(outcome, ValidationResult):
            return Success(index=index, result=outcome)
        result = self._error_result(
            BATCH_ERROR_CODE,
            f"Batch processing error: {outcome.reason}",
            outcome.spec_version,
            outcome.elapsed_ms,
        )
        return Failure(index=index, error=outcome.reason, result=result)

    def _fold_stats(
        self,
        items: Sequence[BatchItem],
        total_time: float,
        aborted: bool
    ) -> BatchProcessingStats:
        successes = 0
        errors: List[ProcessingError] = []
        for item in items:
            if isinstance(item, Success):
                successes += 1
            else:
                errors.append(ProcessingError(request_index=item.index, error=item.error))

        return BatchProcessingStats(
            total_processing_time=total_time,
            average_processing_time=round(total_time / len(items), 3) if items else 0.0,
            successfully_processed=successes,
            failed_processing=len(errors),
            processing_errors=sorted(errors, key=lambda e: e.request_index),
            aborted=aborted,
        )

    @staticmethod
    async def _report_progress(
        on_progress: Optional[ProgressCallback],
        processed: int,
        total: int
    ) -> None:
        """Call the progress hook; a failing hook never stops the batch."""
        if on_progress is None:
            return
        try:
            ret = on_progress(processed, total)
            if inspect.isawaitable(ret):
                await ret
        except Exception as e:
            logger.warning(f"Progress callback failed at {processed}/{total}: {e}")

    # --- Options ---

    def _resolve(self, options: Optional[ValidationOptions]) -> ValidationOptions:
        """Fill per-call defaults from the configuration."""
        options = options or ValidationOptions()
        return ValidationOptions(
            timeout_ms=options.timeout_ms or self.config.timeout_ms,
            spec_version=options.spec_version or self.config.spec_version,
            use_cache=options.use_cache,
            include_field_details=options.include_field_details,
            include_compliance_report=options.include_compliance_report,
        )

    def _effective_concurrency(self, requested: Optional[int]) -> int:
        limit = self.config.max_concurrency
        return max(1, min(requested or limit, limit))

    def _cache_key(self, request: Any, options: ValidationOptions) -> Optional[str]:
        try:
            return self.cache.generate_key(request, options)
        except CacheError as e:
            logger.warning(f"Skipping cache for request: {e}")
            return None

    # --- Cache administration ---

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Validation cache cleared")

    def cleanup_cache(self) -> int:
        """Remove expired cache entries; returns the number removed."""
        return self.cache.cleanup()


@dataclass(frozen=True)
class _FailedValidation:
    """Why a validation produced no matcher-backed result."""
    reason: str
    spec_version: str
    elapsed_ms: float
