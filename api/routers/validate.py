"""Validation endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.auth import verify_api_key
from api.dependencies import get_engine, get_orchestrator
from api.models import (
    ValidateBatchRequest,
    ValidateBatchResponse,
    ValidateSingleRequest,
    ValidateSingleResponse,
)
from ortb.reporting.engine import ReportingEngine
from ortb.validation.errors import BatchSizeExceededError
from ortb.validation.orchestrator import (
    BatchValidationOptions,
    ValidationOptions,
    ValidationOrchestrator,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/validate", response_model=ValidateSingleResponse)
async def validate(
    body: ValidateSingleRequest,
    _key=Depends(verify_api_key),
    orchestrator: ValidationOrchestrator = Depends(get_orchestrator),
    engine: ReportingEngine = Depends(get_engine),
):
    """Validate one bid request."""
    options = ValidationOptions(**body.options.model_dump())
    result = await orchestrator.validate_single(body.request, options)

    response = ValidateSingleResponse(result=result)
    if options.include_field_details:
        response.validation_report = engine.generate_validation_report(result)
    if options.include_compliance_report:
        response.compliance_report = engine.generate_compliance_report(result)
    return response


@router.post("/validate/batch", response_model=ValidateBatchResponse)
async def validate_batch(
    body: ValidateBatchRequest,
    _key=Depends(verify_api_key),
    orchestrator: ValidationOrchestrator = Depends(get_orchestrator),
    engine: ReportingEngine = Depends(get_engine),
):
    """Validate a batch of bid requests; results keep request order."""
    options = BatchValidationOptions(**body.options.model_dump())
    try:
        batch_result = await orchestrator.validate_batch(body.requests, options)
    except BatchSizeExceededError as e:
        logger.warning(f"Rejected batch: {e}")
        raise HTTPException(status_code=413, detail=str(e))

    response = ValidateBatchResponse(batch_result=batch_result)
    if options.include_compliance_report:
        response.batch_report = engine.generate_batch_report(
            batch_result,
            include_individual_reports=options.include_field_details,
        )
    return response
