"""
Unit Tests for the Reporting Engine

Covers validation reports, compliance reports and the aggregated batch
report.
"""

import pytest

from ortb.reporting.engine import REPORT_VERSION, TOOL_VERSION, ReportingEngine
from ortb.reporting.scoring import CATEGORY_RECOMMENDED_FIELDS, CATEGORY_REQUIRED_FIELDS


@pytest.fixture
def engine():
    return ReportingEngine()


@pytest.fixture
def missing_at(make_error):
    return make_error(
        field="at", code="ORTB_REQUIRED_FIELD_MISSING", type="required-field",
        message="Required field 'at' is missing",
    )


class TestValidationReport:
    def test_passed_report(self, engine, make_result):
        result = make_result(validated_fields=["id", "imp", "at"])
        report = engine.generate_validation_report(result)

        assert report.summary.status == "passed"
        assert report.summary.total_fields == 3
        assert report.summary.valid_fields == 3
        assert report.compliance_score == result.compliance_score
        assert report.recommendations == []
        assert [f.field_path for f in report.field_results] == ["id", "imp", "at"]
        assert report.metadata.tool_version == TOOL_VERSION
        assert report.metadata.report_version == REPORT_VERSION
        assert report.metadata.spec_version == "2.6"

    def test_warning_report(self, engine, make_result, make_warning):
        result = make_result(warnings=[make_warning(field="device")], validated_fields=["id"])
        report = engine.generate_validation_report(result)

        assert report.summary.status == "warning"
        assert report.summary.warning_fields == 1
        assert report.recommendations == [
            "Consider addressing warnings to improve request quality",
        ]

    def test_failed_report(self, engine, make_result, missing_at, make_error):
        type_error = make_error(field="imp.0.banner.w", type="schema", code="ORTB_INVALID_TYPE")
        result = make_result(errors=[missing_at, type_error], validated_fields=["id", "imp"])
        report = engine.generate_validation_report(result)

        assert report.summary.status == "failed"
        assert report.summary.error_fields == 2
        assert report.summary.missing_required_fields == 1
        assert report.summary.valid_fields == 0
        assert report.recommendations == [
            "Address all validation errors to achieve compliance",
            "Add 1 missing required field(s)",
            "Fix data type and format issues",
            "Focus on critical compliance issues first",
        ]

    def test_field_results_merge_errors_and_warnings(self, engine, make_result, missing_at, make_warning):
        result = make_result(
            errors=[missing_at],
            warnings=[make_warning(field="id", code="ORTB_SOMETHING")],
            validated_fields=["id"],
        )
        fields = {f.field_path: f for f in engine.generate_validation_report(result).field_results}

        assert list(fields) == ["id", "at"]
        assert fields["id"].is_valid is True
        assert len(fields["id"].warnings) == 1
        assert fields["at"].is_valid is False
        assert fields["at"].is_required is True
        assert fields["at"].is_present is False


class TestComplianceReport:
    def test_compliant(self, engine, make_result):
        report = engine.generate_compliance_report(make_result())
        assert report.overall_compliance == "compliant"
        assert report.category_compliance == []
        assert report.critical_issues == []
        assert report.recommendations == []

    def test_categories_and_critical_issues(self, engine, make_result, missing_at, make_warning):
        result = make_result(errors=[missing_at], warnings=[make_warning(), make_warning(field="site")])
        report = engine.generate_compliance_report(result)

        assert report.overall_compliance == "non-compliant"
        assert report.critical_issues == [missing_at]
        categories = [c.category for c in report.category_compliance]
        assert categories == [CATEGORY_REQUIRED_FIELDS, CATEGORY_RECOMMENDED_FIELDS]

        high, medium = report.recommendations
        assert high.priority == "high"
        assert high.title == f"Fix {CATEGORY_REQUIRED_FIELDS} Issues"
        assert high.affected_fields == ["at"]
        assert high.impact_score == 10
        assert medium.priority == "medium"
        assert medium.impact_score == 10

    def test_recommendations_sorted_by_impact(self, engine, make_result, make_error, make_warning):
        errors = [make_error(field=f"imp.{i}.id", type="logical") for i in range(2)]
        warnings = [make_warning(code="ORTB_BAD_FORMAT") for _ in range(5)]
        report = engine.generate_compliance_report(make_result(errors=errors, warnings=warnings))

        impacts = [r.impact_score for r in report.recommendations]
        assert impacts == sorted(impacts, reverse=True)
        assert report.recommendations[0].priority == "medium"
        assert report.recommendations[0].impact_score == 25


class TestBatchReport:
    def test_empty_batch(self, engine, make_batch):
        report = engine.generate_batch_report(make_batch([]))
        assert report.compliance_report.overall_compliance == "non-compliant"
        assert report.compliance_report.compliance_score == 0
        assert report.individual_reports == []

    def test_individual_reports_on_request(self, engine, make_batch, make_result):
        batch = make_batch([make_result(), make_result()])
        assert engine.generate_batch_report(batch).individual_reports == []
        report = engine.generate_batch_report(batch, include_individual_reports=True)
        assert len(report.individual_reports) == 2
        assert report.processing_stats == batch.processing_stats

    def test_overall_compliance_by_valid_share(self, engine, make_batch, make_result, missing_at):
        all_valid = make_batch([make_result(), make_result()])
        mixed = make_batch([make_result(), make_result(errors=[missing_at])])
        none_valid = make_batch([make_result(errors=[missing_at])])

        assert engine.generate_aggregated_compliance_report(all_valid).overall_compliance == "compliant"
        assert engine.generate_aggregated_compliance_report(mixed).overall_compliance == "partial"
        assert engine.generate_aggregated_compliance_report(none_valid).overall_compliance == "non-compliant"

    def test_critical_issues_need_more_than_ten_percent(self, engine, make_batch, make_result, missing_at, make_error):
        rare = make_error(field="imp.0.bidfloor", code="ORTB_NEGATIVE_BID_FLOOR")
        results = [make_result(errors=[missing_at]) for _ in range(3)]
        results.append(make_result(errors=[rare]))
        results.extend(make_result() for _ in range(6))

        report = engine.generate_aggregated_compliance_report(make_batch(results))

        # 3/10 and 1/10 requests: only the first clears the threshold
        assert [e.code for e in report.critical_issues] == ["ORTB_REQUIRED_FIELD_MISSING"]

    def test_batch_recommendations(self, engine, make_batch, make_result, missing_at):
        results = [make_result(errors=[missing_at]) for _ in range(3)] + [make_result()]
        report = engine.generate_aggregated_compliance_report(make_batch(results))

        titles = [r.title for r in report.recommendations]
        assert titles == [
            "High Failure Rate Detected",
            "Address Most Common Error: ORTB_REQUIRED_FIELD_MISSING",
        ]
        assert report.recommendations[0].description.startswith("75% of requests failed")
        assert report.recommendations[1].impact_score == 75
