"""
structlog setup for the ledger service.

Events go through the stdlib logging handlers so uvicorn and application
logs share one stream. Request and actor context bound through contextvars
is merged into every event, so ledger events logged deep inside a unit of
work still say who asked.
"""

import logging
import sys
from enum import Enum
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from src.config.settings import Settings, get_settings

# Chatty libraries kept at WARNING regardless of log_level
_QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


class AppContext:
    """Stamps every event with the service name, version and environment."""

    def __init__(self, settings: Settings):
        self._fields = {
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    def __call__(self, logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in self._fields.items():
            event_dict.setdefault(key, value)
        return event_dict


def enum_values(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Log status and direction enums by value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _renderers(settings: Settings) -> list[Processor]:
    json_logs = settings.log_json if settings.log_json is not None else (
        settings.environment != "development"
    )
    if json_logs:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        enum_values,
        AppContext(settings),
        *_renderers(settings),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(request_id: str, user_id: str | None = None) -> None:
    """Start a fresh log context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, user_id=user_id)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
