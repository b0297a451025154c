"""
Unit Tests for Report Export
"""

import csv
import io
import json

from ortb.reporting.engine import ReportingEngine
from ortb.reporting.export import (
    CSV_COLUMNS,
    batch_results_to_csv,
    format_batch_human,
    format_result_human,
    to_json,
)
from ortb.validation.models import BatchProcessingStats


class TestJson:
    def test_result_to_json(self, make_result):
        result = make_result(validated_fields=["id"])
        data = json.loads(to_json(result))
        assert data["is_valid"] is True
        assert data["validated_fields"] == ["id"]
        assert isinstance(data["timestamp"], str)

    def test_dict_of_reports(self, make_result):
        result = make_result()
        engine = ReportingEngine()
        data = json.loads(to_json({
            "result": result,
            "compliance_report": engine.generate_compliance_report(result),
            "trends": None,
        }))
        assert data["compliance_report"]["overall_compliance"] == "compliant"
        assert data["trends"] is None


class TestCsv:
    def test_one_row_per_result(self, make_batch, make_result, make_error, make_warning):
        batch = make_batch([
            make_result(warnings=[make_warning()]),
            make_result(errors=[make_error(code="A"), make_error(code="B")], processing_time=None),
        ])
        rows = list(csv.DictReader(io.StringIO(batch_results_to_csv(batch))))

        assert len(rows) == 2
        assert list(rows[0]) == CSV_COLUMNS
        assert rows[0]["index"] == "0"
        assert rows[0]["warning_codes"] == "ORTB_RECOMMENDED_FIELD_MISSING"
        assert rows[1]["is_valid"] == "False"
        assert rows[1]["error_codes"] == "A;B"
        assert rows[1]["processing_time_ms"] == ""

    def test_empty_batch_has_header_only(self, make_batch):
        assert batch_results_to_csv(make_batch([])).strip() == ",".join(CSV_COLUMNS)


class TestHumanFormat:
    def test_valid_result(self, make_result):
        text = format_result_human(make_result(), label="request.json")
        assert text.startswith("✅ request.json: Valid")

    def test_warnings(self, make_result, make_warning):
        text = format_result_human(make_result(warnings=[make_warning(field="device")]))
        assert "Valid (with warnings)" in text
        assert "⚠ [device]" in text

    def test_errors_with_suggestion(self, make_result):
        from ortb.validation.models import ValidationError

        error = ValidationError(
            field="at", message="Required field 'at' is missing", code="ORTB_REQUIRED_FIELD_MISSING",
            type="required-field", suggestion="Add the required field 'at' to your request",
        )
        text = format_result_human(make_result(errors=[error]))
        assert text.startswith("❌")
        assert "❌ [at] Required field 'at' is missing (ORTB_REQUIRED_FIELD_MISSING)" in text
        assert "→ Add the required field" in text

    def test_batch_summary(self, make_batch, make_result, make_error):
        batch = make_batch(
            [make_result(), make_result(errors=[make_error()])],
            processing_stats=BatchProcessingStats(failed_processing=1, aborted=True),
        )
        text = format_batch_human(batch, labels=["a.json", "b.json"])
        assert "✅ a.json" in text
        assert "❌ b.json" in text
        assert "✅ 1 passed" in text
        assert "❌ 1 failed" in text
        assert "could not be processed" in text
        assert "fail-fast" in text
