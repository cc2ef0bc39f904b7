"""
structlog setup for the ledger service.

Every event carries the service name and environment. Request handlers bind
`request_id` through contextvars, so ledger events logged deep inside a use
case still point back to the HTTP call that caused them.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from venue_inventory.config.settings import Settings, get_settings

# Libraries that log every statement or request at INFO
QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def _renderer(settings: Settings) -> list[Processor]:
    log_format = settings.log_format
    if log_format == "auto":
        log_format = "console" if settings.environment == "development" else "json"
    if log_format == "console":
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging() -> None:
    """Configure structlog and the stdlib root logger from settings."""
    settings = get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_service_context,
        *_renderer(settings),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
