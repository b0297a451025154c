"""Health and info endpoints."""

from fastapi import APIRouter, Depends

from api.dependencies import get_orchestrator
from api.models import HealthResponse
from ortb import __version__
from ortb.validation.orchestrator import ValidationOrchestrator

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(orchestrator: ValidationOrchestrator = Depends(get_orchestrator)):
    """Health check endpoint."""
    stats = orchestrator.cache_stats()
    return HealthResponse(
        status="ok",
        version=__version__,
        spec_versions=list(orchestrator.schema_matcher.supported_versions),
        cache_entries=stats.total_entries,
        cache_hit_rate=stats.hit_rate,
    )
