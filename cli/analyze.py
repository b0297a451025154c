"""
Analyze Subcommand Module

Builds batch analytics, and optionally a trend analysis, from batch results
previously saved by ``ortb-validator validate --batch --report``.
"""

import logging
from typing import Any, List, Optional

import click
from pydantic import ValidationError as PydanticValidationError

from ortb.reporting.engine import ReportingEngine
from ortb.reporting.export import to_json
from ortb.reporting.models import BatchAnalytics, TrendAnalysis
from ortb.validation.models import BatchValidationResult

from .shared_options import (
    config_option,
    load_config,
    log_level_option,
    read_json,
    report_option,
    write_report,
)


logger = logging.getLogger(__name__)


def _load_batch(path: str) -> BatchValidationResult:
    """Read a batch result, or the batch result inside a saved batch report."""
    document: Any = read_json(path)
    if isinstance(document, dict) and "batch_result" in document:
        document = document["batch_result"]
    try:
        return BatchValidationResult.model_validate(document)
    except PydanticValidationError as e:
        raise click.ClickException(f"{path} is not a batch validation result: {e}")


def _format_analytics(path: str, analytics: BatchAnalytics) -> str:
    stats = analytics.overall_stats
    lines = [
        f"📊 {path}",
        f"  Requests: {stats.total_requests} "
        f"({stats.valid_requests} valid, {stats.invalid_requests} invalid, "
        f"{stats.warning_requests} with warnings)",
        f"  Average compliance score: {stats.average_compliance_score}",
    ]
    if stats.processing_time is not None:
        lines.append(
            f"  Processing time: avg {stats.processing_time.average}ms, "
            f"p95 {stats.processing_time.p95}ms"
        )
    for error in analytics.error_distribution.most_common_errors[:3]:
        lines.append(f"  ❌ {error.code}: {error.count} ({error.percentage}%)")
    for recommendation in analytics.recommendations:
        lines.append(f"  → [{recommendation.priority}] {recommendation.title}")
    return "\n".join(lines)


def _format_trends(trends: TrendAnalysis) -> str:
    lines = [f"📈 Trend: {trends.trend_direction}"]
    for insight in trends.insights:
        lines.append(f"  {insight.description} (confidence {insight.confidence})")
    for projection in trends.projections:
        lines.append(
            f"  {projection.timeframe}: projected score {projection.projected_compliance_score} "
            f"(confidence {projection.confidence})"
        )
    return "\n".join(lines)


@click.command(help="Build analytics and trends from saved batch results")
@click.argument("batch_files", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--trends",
    is_flag=True,
    help="Also analyze trends across the files, oldest first",
)
@report_option(help="Write the analytics report (JSON) to this path")
@config_option()
@log_level_option()
def analyze(
    batch_files: List[str],
    trends: bool,
    report_path: Optional[str],
    config_path: Optional[str],
    log_level: Optional[str],
):
    """Analyze saved batch results.

    Examples:
        # Analytics for one batch
        ortb-validator analyze batch-report.json

        # Trends across several runs, oldest first
        ortb-validator analyze monday.json tuesday.json wednesday.json --trends
    """
    load_config(config_path, log_level)
    engine = ReportingEngine()

    batches = [_load_batch(path) for path in batch_files]
    logger.info(f"Analyzing {len(batches)} batch result(s)")

    analytics = [engine.generate_batch_analytics(batch) for batch in batches]
    for path, batch_analytics in zip(batch_files, analytics):
        click.echo(_format_analytics(path, batch_analytics))

    trend_analysis = None
    if trends:
        trend_analysis = engine.generate_trend_analysis(batches)
        click.echo(_format_trends(trend_analysis))

    if report_path:
        write_report(report_path, to_json({
            "analytics": analytics,
            "trends": trend_analysis,
        }))
        click.echo(f"\nReport saved: {report_path}")
