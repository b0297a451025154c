"""Tests for REST API endpoints."""

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.dependencies import get_orchestrator
from ortb.config.settings import OrchestratorConfig
from ortb.validation.orchestrator import SERVICE_ERROR_CODE, ValidationOrchestrator
from ortb.validation.schema_matcher import PydanticSchemaMatcher


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def small_batch_cap():
    orchestrator = ValidationOrchestrator(PydanticSchemaMatcher(), OrchestratorConfig(max_batch_size=2))
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield orchestrator
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "OpenRTB Validator API"
        assert data["health"] == "/api/v1/health"

    def test_health(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "2.6" in data["spec_versions"]
        assert data["cache_entries"] >= 0
        assert 0.0 <= data["cache_hit_rate"] <= 1.0


class TestValidateEndpoint:
    def test_validate_valid_request(self, client, valid_request):
        resp = client.post("/api/v1/validate", json={"request": valid_request})
        assert resp.status_code == 200
        data = resp.json()
        assert data["result"]["is_valid"] is True
        assert data["result"]["compliance_score"] == 100
        assert data["validation_report"] is None
        assert data["compliance_report"] is None

    def test_validate_invalid_request(self, client, valid_request):
        del valid_request["at"]
        resp = client.post("/api/v1/validate", json={"request": valid_request, "options": {"use_cache": False}})
        assert resp.status_code == 200
        result = resp.json()["result"]
        assert result["is_valid"] is False
        assert result["errors"][0]["code"] == "ORTB_REQUIRED_FIELD_MISSING"

    def test_validate_with_reports(self, client, complete_request):
        resp = client.post("/api/v1/validate", json={
            "request": complete_request,
            "options": {"include_field_details": True, "include_compliance_report": True},
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["validation_report"]["summary"]["status"] == "passed"
        assert data["compliance_report"]["overall_compliance"] == "compliant"

    def test_repeat_is_served_from_cache(self, client, valid_request):
        valid_request["id"] = "cache-check"
        client.post("/api/v1/validate", json={"request": valid_request})
        resp = client.post("/api/v1/validate", json={"request": valid_request})
        assert resp.json()["result"]["from_cache"] is True

    def test_unsupported_spec_version(self, client, valid_request):
        resp = client.post("/api/v1/validate", json={
            "request": valid_request, "options": {"spec_version": "9.9"},
        })
        assert resp.status_code == 200
        result = resp.json()["result"]
        assert result["is_valid"] is False
        assert result["errors"][0]["code"] == SERVICE_ERROR_CODE

    def test_missing_body(self, client):
        resp = client.post("/api/v1/validate", json={})
        assert resp.status_code == 422

    def test_invalid_timeout(self, client, valid_request):
        resp = client.post("/api/v1/validate", json={"request": valid_request, "options": {"timeout_ms": 0}})
        assert resp.status_code == 422


class TestValidateBatchEndpoint:
    def test_batch(self, client, valid_request, complete_request):
        resp = client.post("/api/v1/validate/batch", json={
            "requests": [valid_request, {"id": "no-imp", "at": 1}, complete_request],
            "options": {"concurrency": 2},
        })
        assert resp.status_code == 200
        data = resp.json()
        batch = data["batch_result"]
        assert [r["is_valid"] for r in batch["results"]] == [True, False, True]
        assert batch["summary"]["total_requests"] == 3
        assert data["batch_report"] is None

    def test_batch_with_report(self, client, valid_request):
        resp = client.post("/api/v1/validate/batch", json={
            "requests": [valid_request],
            "options": {"include_compliance_report": True, "include_field_details": True},
        })
        report = resp.json()["batch_report"]
        assert report["compliance_report"]["overall_compliance"] == "compliant"
        assert len(report["individual_reports"]) == 1

    def test_empty_batch(self, client):
        resp = client.post("/api/v1/validate/batch", json={"requests": []})
        assert resp.status_code == 200
        assert resp.json()["batch_result"]["overall_compliance_score"] == 0

    def test_batch_over_cap(self, client, small_batch_cap, valid_request):
        resp = client.post("/api/v1/validate/batch", json={"requests": [valid_request] * 3})
        assert resp.status_code == 413
        assert "exceeds maximum allowed size of 2" in resp.json()["detail"]

    def test_default_cap(self, client, valid_request):
        resp = client.post("/api/v1/validate/batch", json={"requests": [valid_request] * 101})
        assert resp.status_code == 413


class TestReportEndpoints:
    @pytest.fixture
    def failed_result(self, client, valid_request):
        del valid_request["at"]
        resp = client.post("/api/v1/validate", json={"request": valid_request})
        return resp.json()["result"]

    @pytest.fixture
    def batch_results(self, client, valid_request):
        bad = dict(valid_request, id="bad")
        del bad["at"]
        first = client.post("/api/v1/validate/batch", json={"requests": [bad, bad, valid_request]})
        second = client.post("/api/v1/validate/batch", json={"requests": [valid_request, valid_request]})
        return first.json()["batch_result"], second.json()["batch_result"]

    def test_validation_report(self, client, failed_result):
        resp = client.post("/api/v1/reports/validation", json={"result": failed_result})
        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"]["status"] == "failed"
        assert data["summary"]["missing_required_fields"] == 1

    def test_compliance_report(self, client, failed_result):
        resp = client.post("/api/v1/reports/compliance", json={"result": failed_result})
        assert resp.status_code == 200
        data = resp.json()
        assert data["overall_compliance"] == "non-compliant"
        assert data["critical_issues"][0]["field"] == "at"

    def test_batch_analytics(self, client, batch_results):
        resp = client.post("/api/v1/analytics/batch", json={"batch_result": batch_results[0]})
        assert resp.status_code == 200
        stats = resp.json()["overall_stats"]
        assert stats["total_requests"] == 3
        assert stats["invalid_requests"] == 2

    def test_trend_analysis(self, client, batch_results):
        resp = client.post("/api/v1/analytics/trends", json={"batches": list(batch_results)})
        assert resp.status_code == 200
        data = resp.json()
        assert data["trend_direction"] == "improving"
        assert len(data["projections"]) == 3

    def test_malformed_result(self, client):
        resp = client.post("/api/v1/reports/validation", json={"result": {"is_valid": True}})
        assert resp.status_code == 422
