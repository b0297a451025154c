"""
Shared CLI Options and Helpers

Reusable Click decorators for options common to several subcommands, plus
the configuration, logging and file helpers they share.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import click

from ortb.config.settings import ValidatorConfig
from ortb.utils.logging_config import logging_config
from ortb.validation.errors import ConfigurationError


def config_option(help=None):
    """Decorator for configuration file options."""
    def decorator(f):
        return click.option(
            '--config',
            'config_path',
            default=None,
            type=click.Path(),
            help=help or 'Path to configuration file (default: .ortb-validator/config.yaml)'
        )(f)
    return decorator


def log_level_option(help=None):
    """Decorator for logging level options."""
    def decorator(f):
        return click.option(
            '--log-level',
            default=None,
            type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
            help=help or 'Logging level (overrides config)'
        )(f)
    return decorator


def report_option(help=None):
    """Decorator for report output path options."""
    def decorator(f):
        return click.option(
            '--report', '-r',
            'report_path',
            type=click.Path(),
            default=None,
            help=help or 'Write the report to this path'
        )(f)
    return decorator


def load_config(config_path: Optional[str], log_level: Optional[str]) -> ValidatorConfig:
    """Load configuration and configure logging for a CLI run.

    Raises:
        click.ClickException: If the configuration cannot be loaded or is invalid
    """
    try:
        config = ValidatorConfig.load_from_yaml(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    problems = config.validate()
    if problems:
        raise click.ClickException("Invalid configuration: " + "; ".join(problems))

    level = (log_level or config.log_level).lower()
    logging_config.configure_logging(level=level, force=True)
    logging_config.log_configuration_details({
        **{f"cache.{k}": v for k, v in asdict(config.cache).items()},
        **{f"orchestrator.{k}": v for k, v in asdict(config.orchestrator).items()},
        "log_level": level,
    })
    return config


def read_json(path: str) -> Any:
    """Read a JSON document, turning read and parse failures into click errors."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except OSError as e:
        raise click.ClickException(f"Cannot read {path}: {e}")
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {path}: {e}")


def write_report(path: str, content: str) -> None:
    """Write a rendered report to disk, creating parent directories."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
