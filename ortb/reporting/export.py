"""
Report Export

Renders validation results and reports as JSON, CSV or human-readable
console text.
"""

import csv
import io
import json
from typing import Any, List, Optional

from pydantic import BaseModel

from ortb.validation.models import BatchValidationResult, ValidationResult


CSV_COLUMNS = [
    "index",
    "validation_id",
    "is_valid",
    "compliance_level",
    "compliance_score",
    "error_count",
    "warning_count",
    "error_codes",
    "warning_codes",
    "processing_time_ms",
    "from_cache",
]


def to_dict(model: Any) -> Any:
    """JSON-compatible form of a model, or of a list or dict of models."""
    if isinstance(model, BaseModel):
        return model.model_dump(mode="json")
    if isinstance(model, dict):
        return {key: to_dict(value) for key, value in model.items()}
    if isinstance(model, (list, tuple)):
        return [to_dict(item) for item in model]
    return model


def to_json(model: Any, indent: int = 2) -> str:
    """Serialize a report or result to a JSON string."""
    return json.dumps(to_dict(model), indent=indent, ensure_ascii=False, default=str)


def batch_results_to_csv(batch: BatchValidationResult) -> str:
    """One CSV row per result, in request order."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for index, result in enumerate(batch.results):
        writer.writerow({
            "index": index,
            "validation_id": result.validation_id,
            "is_valid": result.is_valid,
            "compliance_level": result.compliance_level,
            "compliance_score": result.compliance_score,
            "error_count": len(result.errors),
            "warning_count": len(result.warnings),
            "error_codes": ";".join(e.code for e in result.errors),
            "warning_codes": ";".join(w.code for w in result.warnings),
            "processing_time_ms": "" if result.processing_time is None else result.processing_time,
            "from_cache": result.from_cache,
        })
    return buffer.getvalue()


def _status(result: ValidationResult):
    if not result.is_valid:
        return "❌", "Failed"
    if result.has_warnings:
        return "✅", "Valid (with warnings)"
    return "✅", "Valid"


def format_result_human(result: ValidationResult, label: str = "request") -> str:
    """Format one result for console output."""
    icon, status = _status(result)
    lines = [
        f"{icon} {label}: {status} "
        f"(score {result.compliance_score}, {result.compliance_level}, OpenRTB {result.spec_version})"
    ]

    for error in result.errors:
        lines.append(f"  ❌ [{error.field}] {error.message} ({error.code})")
        if error.suggestion:
            lines.append(f"      → {error.suggestion}")
    for warning in result.warnings:
        lines.append(f"  ⚠ [{warning.field}] {warning.message} ({warning.code})")
        if warning.suggestion:
            lines.append(f"      → {warning.suggestion}")

    return "\n".join(lines)


def format_batch_human(batch: BatchValidationResult, labels: Optional[List[str]] = None) -> str:
    """Format a batch: one block per result followed by the summary counts."""
    summary = batch.summary
    stats = batch.processing_stats
    lines = []

    for index, result in enumerate(batch.results):
        label = labels[index] if labels and index < len(labels) else f"request[{index}]"
        lines.append(format_result_human(result, label))

    lines.append("")
    lines.append(f"  ✅ {summary.valid_requests} passed")
    if summary.warning_requests:
        lines.append(f"  ⚠ {summary.warning_requests} with warnings")
    if summary.invalid_requests:
        lines.append(f"  ❌ {summary.invalid_requests} failed")
    if stats.failed_processing:
        lines.append(f"  ❌ {stats.failed_processing} could not be processed")
    if stats.aborted:
        lines.append("  ⚠ batch stopped early (fail-fast)")
    lines.append(f"  Overall compliance score: {batch.overall_compliance_score}")

    return "\n".join(lines)
