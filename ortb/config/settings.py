"""
Validator Configuration Management

This module provides centralized configuration loading for the result cache
and the validation orchestrator. Configuration is loaded with the following
precedence:
1. Environment variables (highest priority)
2. Config file values (.ortb-validator/config.yaml)
3. Default values (lowest priority)

Components accept configuration objects instead of reading module state,
so several independently configured orchestrators can live in one process.

Usage:
    >>> from ortb.config import ValidatorConfig
    >>>
    >>> # Load from config file (when a validator section exists)
    >>> config = ValidatorConfig.load_from_yaml('.ortb-validator/config.yaml')
    >>>
    >>> # Or create directly with defaults
    >>> config = ValidatorConfig()
    >>>
    >>> print(config.cache.ttl_seconds)
    >>> print(config.orchestrator.max_batch_size)
"""

from dataclasses import dataclass, field
from typing import Optional, Any, Dict, List
import os
import yaml
from pathlib import Path

from ortb.validation.errors import ConfigurationError


DEFAULT_CONFIG_PATH = '.ortb-validator/config.yaml'

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass
class CacheConfig:
    """Configuration for the validation result cache.

    Attributes:
        ttl_seconds: Lifetime of a cached result (default: 30 minutes)
        max_entries: Entry count that triggers LRU eviction
    """
    ttl_seconds: float = 1800
    max_entries: int = 5000


@dataclass
class OrchestratorConfig:
    """Configuration for the validation orchestrator.

    Attributes:
        max_batch_size: Largest batch validate_batch accepts
        timeout_ms: Default per-request matcher timeout in milliseconds
        max_concurrency: Upper bound on requests validated concurrently
        enable_caching: Whether results are looked up and stored in the cache
        spec_version: OpenRTB version passed to the schema matcher
    """
    max_batch_size: int = 100
    timeout_ms: int = 5000
    max_concurrency: int = 10
    enable_caching: bool = True
    spec_version: str = "2.6"


@dataclass
class ValidatorConfig:
    """Complete validator configuration.

    Attributes:
        cache: Result cache configuration
        orchestrator: Orchestrator configuration
        log_level: Logging level for the CLI and API (debug, info, warning, error)
    """
    cache: CacheConfig = field(default_factory=CacheConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    log_level: str = "info"

    @classmethod
    def load_from_yaml(cls, config_path: Optional[str] = None) -> 'ValidatorConfig':
        """Load validator configuration from YAML file.

        Args:
            config_path: Path to config YAML file (default: .ortb-validator/config.yaml)

        Returns:
            ValidatorConfig instance

        Raises:
            ConfigurationError: If the file is not valid YAML
        """
        validator_section = {}
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file, 'r') as f:
                try:
                    config_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")
                validator_section = config_data.get('validator', {}) or {}

        return cls.load_from_dict(validator_section)

    @classmethod
    def load_from_dict(cls, validator_section: Dict[str, Any]) -> 'ValidatorConfig':
        """Load validator configuration from dictionary.

        Args:
            validator_section: Dictionary containing the validator configuration

        Returns:
            ValidatorConfig instance

        Raises:
            ConfigurationError: If a value cannot be converted to its type

        Example:
            >>> config = ValidatorConfig.load_from_dict({'cache': {'ttl_seconds': 60}})
        """
        cache_section = validator_section.get('cache', {}) or {}
        orchestrator_section = validator_section.get('orchestrator', {}) or {}

        try:
            cache_config = CacheConfig(
                ttl_seconds=float(cls._resolve_value(
                    cache_section.get('ttl_seconds'),
                    'ORTB_CACHE_TTL_SECONDS',
                    1800
                )),
                max_entries=int(cls._resolve_value(
                    cache_section.get('max_entries'),
                    'ORTB_CACHE_MAX_ENTRIES',
                    5000
                ))
            )

            orchestrator_config = OrchestratorConfig(
                max_batch_size=int(cls._resolve_value(
                    orchestrator_section.get('max_batch_size'),
                    'ORTB_MAX_BATCH_SIZE',
                    100
                )),
                timeout_ms=int(cls._resolve_value(
                    orchestrator_section.get('timeout_ms'),
                    'ORTB_VALIDATION_TIMEOUT_MS',
                    5000
                )),
                max_concurrency=int(cls._resolve_value(
                    orchestrator_section.get('max_concurrency'),
                    'ORTB_MAX_CONCURRENCY',
                    10
                )),
                enable_caching=cls._parse_bool(cls._resolve_value(
                    orchestrator_section.get('enable_caching'),
                    'ORTB_ENABLE_CACHING',
                    True
                )),
                spec_version=str(cls._resolve_value(
                    orchestrator_section.get('spec_version'),
                    'ORTB_SPEC_VERSION',
                    "2.6"
                ))
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}")

        log_level = str(cls._resolve_value(
            validator_section.get('log_level'),
            'ORTB_LOG_LEVEL',
            "info"
        )).lower()

        return cls(
            cache=cache_config,
            orchestrator=orchestrator_config,
            log_level=log_level
        )

    def validate(self) -> List[str]:
        """Check value ranges.

        Returns:
            List of problems; empty when the configuration is usable
        """
        problems = []
        if self.cache.ttl_seconds <= 0:
            problems.append("cache.ttl_seconds must be positive")
        if self.cache.max_entries < 1:
            problems.append("cache.max_entries must be at least 1")
        if self.orchestrator.max_batch_size < 1:
            problems.append("orchestrator.max_batch_size must be at least 1")
        if self.orchestrator.timeout_ms < 1:
            problems.append("orchestrator.timeout_ms must be at least 1")
        if self.orchestrator.max_concurrency < 1:
            problems.append("orchestrator.max_concurrency must be at least 1")
        if self.log_level not in ("debug", "info", "warning", "error"):
            problems.append(f"log_level '{self.log_level}' is not one of debug, info, warning, error")
        return problems

    @staticmethod
    def _resolve_value(config_value: Any, env_var: str, default: Any) -> Any:
        """Resolve configuration value with precedence: ENV > Config > Default.

        Example:
            >>> # With ORTB_MAX_BATCH_SIZE="50" in environment
            >>> _resolve_value(None, 'ORTB_MAX_BATCH_SIZE', 100)
            '50'
        """
        env_value = os.getenv(env_var)
        if env_value is not None:
            return env_value

        if config_value is not None:
            return config_value

        return default

    @staticmethod
    def _parse_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"cannot interpret {value!r} as a boolean")
