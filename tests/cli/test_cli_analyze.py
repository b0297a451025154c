"""
Tests for cli.analyze

Covers analytics for saved batch results and saved batch reports,
trend analysis across runs and the JSON analytics report.
"""

import json
import logging

import pytest
from click.testing import CliRunner

from cli import main
from ortb.reporting.engine import ReportingEngine
from ortb.reporting.export import to_json


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield tmp_path
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def missing_at(make_error):
    return make_error(field="at", code="ORTB_REQUIRED_FIELD_MISSING", type="required-field")


@pytest.fixture
def first_run(tmp_path, make_batch, make_result, missing_at):
    batch = make_batch([make_result(errors=[missing_at]), make_result(errors=[missing_at]), make_result()])
    fp = tmp_path / "monday.json"
    fp.write_text(to_json(batch), encoding="utf-8")
    return str(fp)


@pytest.fixture
def second_run(tmp_path, make_batch, make_result):
    """A later run saved as a full batch report."""
    batch = make_batch([make_result(), make_result()])
    fp = tmp_path / "tuesday.json"
    fp.write_text(to_json(ReportingEngine().generate_batch_report(batch)), encoding="utf-8")
    return str(fp)


class TestAnalyze:
    def test_single_batch(self, runner, first_run):
        result = runner.invoke(main, ["analyze", first_run])
        assert result.exit_code == 0
        assert f"📊 {first_run}" in result.output
        assert "Requests: 3 (1 valid, 2 invalid" in result.output
        assert "ORTB_REQUIRED_FIELD_MISSING: 2" in result.output
        assert "📈" not in result.output

    def test_trends(self, runner, first_run, second_run):
        result = runner.invoke(main, ["analyze", first_run, second_run, "--trends"])
        assert result.exit_code == 0
        assert "📈 Trend: improving" in result.output
        assert "1week: projected score" in result.output

    def test_report(self, runner, first_run, second_run, tmp_path):
        report = tmp_path / "analytics.json"
        result = runner.invoke(main, ["analyze", first_run, second_run, "--trends", "-r", str(report)])
        assert result.exit_code == 0
        data = json.loads(report.read_text(encoding="utf-8"))
        assert len(data["analytics"]) == 2
        assert data["analytics"][1]["overall_stats"]["valid_requests"] == 2
        assert data["trends"]["trend_direction"] == "improving"

    def test_report_without_trends(self, runner, first_run, tmp_path):
        report = tmp_path / "analytics.json"
        runner.invoke(main, ["analyze", first_run, "--report", str(report)])
        assert json.loads(report.read_text(encoding="utf-8"))["trends"] is None

    def test_not_a_batch(self, runner, tmp_path):
        fp = tmp_path / "other.json"
        fp.write_text(json.dumps(["not", "a", "batch"]), encoding="utf-8")
        result = runner.invoke(main, ["analyze", str(fp)])
        assert result.exit_code == 1
        assert "is not a batch validation result" in result.output

    def test_requires_files(self, runner):
        result = runner.invoke(main, ["analyze"])
        assert result.exit_code == 2
