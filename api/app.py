"""
OpenRTB Validator REST API

FastAPI application exposing bid request validation, compliance reports
and analytics via HTTP endpoints.

Usage:
    uvicorn api.app:app --reload --port 8000
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import APIConfig
from api.dependencies import build_orchestrator
from api.routers import health, reports, validate
from ortb import __version__
from ortb.config.settings import ValidatorConfig
from ortb.reporting.engine import ReportingEngine
from ortb.utils.logging_config import configure_logging
from ortb.validation.errors import OrtbValidatorError

config = APIConfig.load()
validator_config = ValidatorConfig.load_from_yaml(config.validator_config_path)
configure_logging(validator_config.log_level)

app = FastAPI(
    title="OpenRTB Validator API",
    description="REST API for validating OpenRTB 2.6 bid requests and reporting on their compliance.",
    version=__version__,
)

app.state.orchestrator = build_orchestrator(config, validator_config)
app.state.engine = ReportingEngine()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrtbValidatorError)
async def validator_error_handler(request: Request, exc: OrtbValidatorError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# Register routers under /api/v1 prefix
PREFIX = "/api/v1"
app.include_router(health.router, prefix=PREFIX, tags=["Health"])
app.include_router(validate.router, prefix=PREFIX, tags=["Validation"])
app.include_router(reports.router, prefix=PREFIX, tags=["Reports"])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "OpenRTB Validator API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
