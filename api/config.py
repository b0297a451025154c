"""
REST API configuration.

Server settings come from ``API_*`` environment variables; validator
settings (cache, orchestrator, logging) stay in the validator config file,
whose path may be given with ``ORTB_CONFIG_PATH``.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from ortb.validation.errors import ConfigurationError

DEFAULT_MAX_BATCH_SIZE = 100


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class APIConfig:
    """REST API configuration.

    Attributes:
        host: Bind address for uvicorn
        port: Bind port for uvicorn
        cors_origins: Allowed CORS origins (API_CORS_ORIGINS, comma separated)
        api_key: Required X-API-Key value; authentication is off when unset
        debug: Debug mode flag
        max_batch_size: Largest batch POST /validate/batch accepts; the
            validator's own cap still applies when it is lower
        validator_config_path: Validator YAML config (default path when None)
    """
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    api_key: Optional[str] = None
    debug: bool = False
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    validator_config_path: Optional[str] = None

    @classmethod
    def load(cls) -> "APIConfig":
        """Build the configuration from the environment.

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """
        origins = os.environ.get("API_CORS_ORIGINS")
        return cls(
            host=os.environ.get("API_HOST") or "127.0.0.1",
            port=_env_int("API_PORT", 8000),
            cors_origins=[o.strip() for o in origins.split(",")] if origins else ["*"],
            api_key=os.environ.get("API_KEY") or None,
            debug=(os.environ.get("API_DEBUG") or "").lower() in ("1", "true", "yes"),
            max_batch_size=_env_int("API_MAX_BATCH_SIZE", DEFAULT_MAX_BATCH_SIZE),
            validator_config_path=os.environ.get("ORTB_CONFIG_PATH") or None,
        )
