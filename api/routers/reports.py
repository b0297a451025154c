"""Report and analytics endpoints.

These take results produced earlier (by the validation endpoints or the
CLI) and never re-validate anything.
"""

from fastapi import APIRouter, Depends

from api.auth import verify_api_key
from api.dependencies import get_engine
from api.models import BatchAnalyticsRequest, ResultReportRequest, TrendAnalysisRequest
from ortb.reporting.engine import ReportingEngine
from ortb.reporting.models import (
    BatchAnalytics,
    ComplianceReport,
    TrendAnalysis,
    ValidationReport,
)

router = APIRouter()


@router.post("/reports/validation", response_model=ValidationReport)
async def validation_report(
    body: ResultReportRequest,
    _key=Depends(verify_api_key),
    engine: ReportingEngine = Depends(get_engine),
):
    """Field-level report for a validation result."""
    return engine.generate_validation_report(body.result)


@router.post("/reports/compliance", response_model=ComplianceReport)
async def compliance_report(
    body: ResultReportRequest,
    _key=Depends(verify_api_key),
    engine: ReportingEngine = Depends(get_engine),
):
    """Category-level compliance report for a validation result."""
    return engine.generate_compliance_report(body.result)


@router.post("/analytics/batch", response_model=BatchAnalytics)
async def batch_analytics(
    body: BatchAnalyticsRequest,
    _key=Depends(verify_api_key),
    engine: ReportingEngine = Depends(get_engine),
):
    """Distributions, field rates and recommendations for a batch result."""
    return engine.generate_batch_analytics(body.batch_result)


@router.post("/analytics/trends", response_model=TrendAnalysis)
async def trend_analysis(
    body: TrendAnalysisRequest,
    _key=Depends(verify_api_key),
    engine: ReportingEngine = Depends(get_engine),
):
    """Trend direction, insights and projections across batch results."""
    return engine.generate_trend_analysis(body.batches)
