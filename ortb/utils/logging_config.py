"""
Logging Configuration and Progress Reporting

Sets up process-wide logging for the validator CLI and API, and renders
batch progress on stderr so report output on stdout stays machine-readable.

Levels are named the way the configuration names them: debug, info,
warning and error. Debug output adds logger names to each line; a log file,
when requested, always gets full timestamps and rotates by size.
"""

import logging
import logging.handlers
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional, TextIO


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Configuration keys containing any of these are never logged in clear
_SECRET_MARKERS = ("key", "secret", "token", "password")


class ProgressIndicator:
    """
    Single-line progress display for batch validation.

    An instance can be passed directly as ``on_progress`` to
    ``ValidationOrchestrator.validate_batch``; each completed window redraws
    the line. Redraws are throttled to ``min_interval`` seconds except for the
    final step.
    """

    BAR_WIDTH = 20

    def __init__(
        self,
        description: str,
        total_steps: Optional[int] = None,
        stream: Optional[TextIO] = None,
        min_interval: float = 0.5
    ):
        self.description = description
        self.total_steps = total_steps
        self.current_step = 0
        self.stream = stream or sys.stderr
        self.min_interval = min_interval
        self.start_time = time.time()
        self._last_draw = 0.0

    def update(self, step: Optional[int] = None, message: Optional[str] = None):
        """Advance to ``step`` (or by one) and redraw if due."""
        self.current_step = step if step is not None else self.current_step + 1

        now = time.time()
        final = self.total_steps is not None and self.current_step >= self.total_steps
        if not final and now - self._last_draw < self.min_interval:
            return
        self._last_draw = now

        print(
            f"\r{message or self.description} {self._status()} [{now - self.start_time:.1f}s]",
            end="", file=self.stream, flush=True
        )

    def __call__(self, processed: int, total: int) -> None:
        self.total_steps = total
        self.update(step=processed)

    def finish(self, message: Optional[str] = None, ok: bool = True):
        """End the progress line with a final status."""
        elapsed = time.time() - self.start_time
        marker = "[OK]" if ok else "[FAILED]"
        print(f"\r{message or self.description + ' completed'} {marker} [{elapsed:.1f}s]", file=self.stream)

    def _status(self) -> str:
        if not self.total_steps:
            return f"{self.current_step} processed"
        percentage = self.current_step / self.total_steps * 100
        filled = int(self.BAR_WIDTH * percentage / 100)
        bar = "#" * filled + "-" * (self.BAR_WIDTH - filled)
        return f"[{bar}] {percentage:.1f}% ({self.current_step}/{self.total_steps})"


class LoggingConfig:
    """
    Process-wide logging setup for the validator.

    The first ``configure_logging`` call wins unless ``force`` is set; the CLI
    forces reconfiguration once the validator configuration is known.
    """

    def __init__(self):
        self._configured = False
        self._console_handler: Optional[logging.Handler] = None
        self._file_handler: Optional[logging.Handler] = None

    def configure_logging(
        self,
        level: str = "info",
        log_file: Optional[str] = None,
        max_log_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        force: bool = False
    ) -> None:
        """
        Configure the root logger.

        Args:
            level: Logging level (debug, info, warning, error); unknown names mean info
            log_file: Optional log file path; parent directories are created
            max_log_file_size: Size in bytes at which the log file rotates
            backup_count: Rotated log files to keep
            force: Reconfigure even if logging was already configured
        """
        if self._configured and not force:
            return

        name = level.lower()
        log_level = LOG_LEVELS.get(name, logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        root_logger.handlers.clear()

        self._console_handler = logging.StreamHandler(sys.stderr)
        self._console_handler.setLevel(log_level)
        self._console_handler.setFormatter(logging.Formatter(
            DEBUG_CONSOLE_FORMAT if name == "debug" else CONSOLE_FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S" if name == "debug" else "%H:%M:%S"
        ))
        root_logger.addHandler(self._console_handler)

        self._file_handler = None
        if log_file:
            self._add_file_handler(log_file, log_level, max_log_file_size, backup_count)

        self._configured = True
        logging.getLogger(__name__).debug(f"Logging configured: level={name}, file={log_file}")

    def _add_file_handler(self, log_file: str, log_level: int, max_size: int, backup_count: int) -> None:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=max_size, backupCount=backup_count, encoding="utf-8"
            )
        except OSError as e:
            # Console logging still works
            logging.getLogger(__name__).warning(f"Cannot open log file {log_file}: {e}")
            return

        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger().addHandler(handler)
        self._file_handler = handler

    @contextmanager
    def progress_context(self, description: str, total_steps: Optional[int] = None):
        """
        Context manager yielding a ProgressIndicator.

        Usage:
            with logging_config.progress_context("Validating requests", len(requests)) as progress:
                await orchestrator.validate_batch(
                    requests, BatchValidationOptions(on_progress=progress)
                )
        """
        progress = ProgressIndicator(description, total_steps)
        try:
            yield progress
        except Exception as e:
            progress.finish(f"{description} failed: {e}", ok=False)
            raise
        progress.finish()

    def log_configuration_details(self, config: Dict[str, Any]) -> None:
        """Log the effective configuration at debug level, masking secrets."""
        logger = logging.getLogger(__name__)
        if not self.is_debug_enabled():
            return

        logger.debug("Effective validator configuration:")
        for key, value in config.items():
            if any(marker in key.lower() for marker in _SECRET_MARKERS):
                value = "***MASKED***" if value else None
            logger.debug(f"  {key}: {value}")

    def log_operation_timing(self, operation: str, duration: float) -> None:
        """Log how long an operation took; ``duration`` is in seconds."""
        logger = logging.getLogger(__name__)
        if duration < 1.0:
            logger.debug(f"{operation} completed in {duration * 1000:.0f}ms")
        else:
            logger.info(f"{operation} completed in {duration:.1f}s")

    def is_debug_enabled(self) -> bool:
        return logging.getLogger().isEnabledFor(logging.DEBUG)


logging_config = LoggingConfig()


def configure_logging(level: str = "info", log_file: Optional[str] = None) -> None:
    """Configure process-wide logging once; later calls are ignored."""
    logging_config.configure_logging(level=level, log_file=log_file)


def get_progress_context(description: str, total_steps: Optional[int] = None):
    """Progress context manager from the process-wide logging configuration."""
    return logging_config.progress_context(description, total_steps)
