"""Construction and injection of the orchestrator and reporting engine."""

import logging
from dataclasses import replace

from fastapi import Request

from api.config import APIConfig
from ortb.config.settings import ValidatorConfig
from ortb.reporting.engine import ReportingEngine
from ortb.validation.orchestrator import ValidationOrchestrator
from ortb.validation.schema_matcher import PydanticSchemaMatcher

logger = logging.getLogger(__name__)


def build_orchestrator(api_config: APIConfig, validator_config: ValidatorConfig) -> ValidationOrchestrator:
    """Orchestrator whose batch cap is the smaller of the validator and API caps."""
    max_batch_size = min(validator_config.orchestrator.max_batch_size, api_config.max_batch_size)
    orchestrator_config = replace(validator_config.orchestrator, max_batch_size=max_batch_size)
    logger.info(
        f"API orchestrator: max_batch_size={max_batch_size}, "
        f"timeout_ms={orchestrator_config.timeout_ms}, "
        f"caching={'on' if orchestrator_config.enable_caching else 'off'}"
    )
    return ValidationOrchestrator(
        PydanticSchemaMatcher(),
        config=orchestrator_config,
        cache_config=validator_config.cache,
    )


def get_orchestrator(request: Request) -> ValidationOrchestrator:
    return request.app.state.orchestrator


def get_engine(request: Request) -> ReportingEngine:
    return request.app.state.engine
