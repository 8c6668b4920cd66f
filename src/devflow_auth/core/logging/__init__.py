"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog.
It provides structured logging capabilities with JSON formatting for production
and human-readable console output for development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion
- Exception/stack rendering
- JSON/Console output based on environment
- File transports (error-only and combined) in production
- Default request metadata (service name, environment)
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from devflow_auth.core.config.settings import settings

ERROR_LOG_FILE = "auth-error.log"
COMBINED_LOG_FILE = "auth-combined.log"


def _build_handlers(log_dir: Optional[str]) -> list:
    handlers: list = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        error_handler = logging.FileHandler(path / ERROR_LOG_FILE)
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)
        handlers.append(logging.FileHandler(path / COMBINED_LOG_FILE))
    return handlers


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    log_dir: Optional[str] = None,
) -> None:
    """
    Configures the application's logging system.

    This function sets up structlog with:
    1. ISO format timestamps
    2. Log level inclusion
    3. Exception info rendered into the event (``exc_info=True``)
    4. JSON formatting for production (when LOG_JSON=True)
    5. Console formatting for development
    6. Standard library logger factory, so file handlers receive every event
    7. Logger caching for performance

    Args:
        log_level: Minimum level name, e.g. "INFO".
        json_logs: Render events as JSON instead of the console format.
        log_dir: When given, also write ``auth-error.log`` (errors only) and
            ``auth-combined.log`` into this directory.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _build_handlers(log_dir):
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_request_logger(name: str = "devflow_auth.requests"):
    """Return the logger used for request lifecycle events.

    Every event carries the service name and runtime environment.
    """
    return structlog.get_logger(name).bind(
        service=settings.SERVICE_NAME,
        environment=settings.APP_ENV,
    )


# Create a singleton logger instance for the application
logger = structlog.get_logger()
