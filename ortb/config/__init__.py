"""
Validator configuration.

Dataclass configuration for the result cache and the validation
orchestrator, loaded from YAML with environment variable overrides.
"""

from ortb.config.settings import (
    CacheConfig,
    OrchestratorConfig,
    ValidatorConfig,
    DEFAULT_CONFIG_PATH,
)

__all__ = [
    "CacheConfig",
    "OrchestratorConfig",
    "ValidatorConfig",
    "DEFAULT_CONFIG_PATH",
]
