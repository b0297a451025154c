"""
Validate Subcommand Module

Validates OpenRTB bid requests read from JSON files, either one file or a
batch selected by a glob pattern, and optionally writes a JSON or CSV
report. Exits with status 1 when any request is invalid.
"""

import asyncio
import glob
import logging
import sys
import time
from typing import Any, List, Optional, Tuple

import click

from ortb.reporting.engine import ReportingEngine
from ortb.reporting.export import (
    batch_results_to_csv,
    format_batch_human,
    format_result_human,
    to_json,
)
from ortb.utils.logging_config import get_progress_context, logging_config
from ortb.validation.errors import BatchSizeExceededError
from ortb.validation.models import BatchValidationResult
from ortb.validation.orchestrator import (
    BatchValidationOptions,
    ValidationOptions,
    ValidationOrchestrator,
)
from ortb.validation.schema_matcher import PydanticSchemaMatcher

from .shared_options import (
    config_option,
    load_config,
    log_level_option,
    read_json,
    report_option,
    write_report,
)


logger = logging.getLogger(__name__)


@click.command(help="Validate OpenRTB bid requests and score their compliance")
@click.option(
    "--input", "-i",
    "input_path",
    type=click.Path(),
    help="JSON file holding one bid request",
)
@click.option(
    "--batch", "-b",
    type=str,
    help="Glob pattern for batch validation (e.g., 'requests/*.json'); "
         "a file holding a JSON array contributes every element",
)
@report_option()
@click.option(
    "--format", "-f",
    "report_format",
    type=click.Choice(["json", "csv"], case_sensitive=False),
    default="json",
    help="Report format (default: json)",
)
@click.option(
    "--timeout",
    "timeout_ms",
    type=click.IntRange(min=1),
    default=None,
    help="Per-request timeout in milliseconds (overrides config)",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Requests validated concurrently in a batch (capped by config)",
)
@click.option(
    "--fail-fast",
    is_flag=True,
    help="Stop the batch after the first request that cannot be processed",
)
@click.option(
    "--no-cache",
    is_flag=True,
    help="Neither read nor populate the result cache",
)
@config_option()
@log_level_option()
def validate(
    input_path: Optional[str],
    batch: Optional[str],
    report_path: Optional[str],
    report_format: str,
    timeout_ms: Optional[int],
    concurrency: Optional[int],
    fail_fast: bool,
    no_cache: bool,
    config_path: Optional[str],
    log_level: Optional[str],
):
    """Validate bid requests against OpenRTB 2.6.

    Examples:
        # Validate a single request
        ortb-validator validate --input request.json

        # Validate with a JSON report
        ortb-validator validate --input request.json --report report.json

        # Batch validation with a CSV report
        ortb-validator validate --batch "requests/*.json" --report results.csv --format csv

        # Batch validation that stops on the first processing failure
        ortb-validator validate --batch "requests/*.json" --fail-fast --concurrency 5
    """
    if not input_path and not batch:
        click.echo("Error: --input or --batch is required", err=True)
        click.echo("Run 'ortb-validator validate --help' for usage", err=True)
        sys.exit(1)

    config = load_config(config_path, log_level)
    orchestrator = ValidationOrchestrator(
        PydanticSchemaMatcher(),
        config=config.orchestrator,
        cache_config=config.cache,
    )

    if batch:
        options = BatchValidationOptions(
            timeout_ms=timeout_ms,
            use_cache=not no_cache,
            concurrency=concurrency,
            fail_fast=fail_fast,
        )
        _run_batch(orchestrator, batch, options, report_path, report_format.lower())
    else:
        options = ValidationOptions(timeout_ms=timeout_ms, use_cache=not no_cache)
        _run_single(orchestrator, input_path, options, report_path, report_format.lower())


def _run_single(
    orchestrator: ValidationOrchestrator,
    input_path: str,
    options: ValidationOptions,
    report_path: Optional[str],
    report_format: str,
):
    """Validate a single file."""
    request = read_json(input_path)
    result = asyncio.run(orchestrator.validate_single(request, options))

    click.echo(format_result_human(result, label=input_path))

    if report_path:
        if report_format == "csv":
            content = batch_results_to_csv(BatchValidationResult(results=[result]))
        else:
            engine = ReportingEngine()
            content = to_json({
                "result": result,
                "validation_report": engine.generate_validation_report(result),
                "compliance_report": engine.generate_compliance_report(result),
            })
        write_report(report_path, content)
        click.echo(f"\nReport saved: {report_path}")

    if not result.is_valid:
        sys.exit(1)


def _collect_requests(pattern: str) -> Tuple[List[Any], List[str]]:
    """Requests and display labels for every file matching the pattern."""
    requests: List[Any] = []
    labels: List[str] = []
    for path in sorted(glob.glob(pattern)):
        document = read_json(path)
        if isinstance(document, list):
            for index, request in enumerate(document):
                requests.append(request)
                labels.append(f"{path}[{index}]")
        else:
            requests.append(document)
            labels.append(path)
    logger.debug(f"Collected {len(requests)} request(s) matching {pattern}")
    return requests, labels


def _run_batch(
    orchestrator: ValidationOrchestrator,
    pattern: str,
    options: BatchValidationOptions,
    report_path: Optional[str],
    report_format: str,
):
    """Validate every request in the files matching a glob pattern."""
    requests, labels = _collect_requests(pattern)
    if not requests:
        click.echo(f"No requests found for pattern: {pattern}", err=True)
        sys.exit(1)

    click.echo(f"Validating {len(requests)} request(s)...")
    start = time.time()
    try:
        with get_progress_context("Validating requests", len(requests)) as progress:
            options.on_progress = progress
            batch_result = asyncio.run(orchestrator.validate_batch(requests, options))
    except BatchSizeExceededError as e:
        raise click.ClickException(str(e))
    logging_config.log_operation_timing(f"Batch validation of {len(requests)} request(s)", time.time() - start)

    click.echo(format_batch_human(batch_result, labels))

    if report_path:
        if report_format == "csv":
            content = batch_results_to_csv(batch_result)
        else:
            content = to_json(ReportingEngine().generate_batch_report(batch_result))
        write_report(report_path, content)
        click.echo(f"\nReport saved: {report_path}")

    if batch_result.summary.invalid_requests:
        sys.exit(1)
