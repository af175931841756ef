# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for the syllabus import service.

All modules log through ``logging.getLogger(__name__)``; setup_logging()
routes those records through structlog so that request context (request
id, user id) and parse run context appear on every line. Output is JSON
outside development and colored console text in development.

Example:
    >>> from src.utils.logging import setup_logging, parse_run_context
    >>> setup_logging(get_settings())
    >>> with parse_run_context("run-123"):
    ...     logger.info("Staging %d items", 14)
"""

import logging
import sys
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from src.core.config.settings import Settings

SERVICE_NAME = "syllabus-import"

# Keys whose values never reach log output
SENSITIVE_KEYS = frozenset({"api_key", "authorization", "password", "token"})

# Library loggers and the level they are held at
LIBRARY_LOG_LEVELS = {
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "asyncpg": logging.WARNING,
    "alembic": logging.INFO,
    "asyncio": logging.WARNING,
}


def redact_sensitive(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values bound under sensitive keys."""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = "***"
    return event_dict


def add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_name,
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(settings: "Settings") -> Processor:
    if settings.is_development or settings.debug:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Application settings (log_level, environment, debug).
    """
    log_level = logging.getLevelName(settings.log_level.upper())
    shared = _shared_processors()

    final_processors: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if not (settings.is_development or settings.debug):
        final_processors.append(structlog.processors.format_exc_info)
    final_processors.append(_renderer(settings))

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared, processors=final_processors)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(max(level, log_level))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for key-value style logging."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind request-scoped fields (request_id, user_id) to later log lines."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound fields. Called at the end of every request."""
    structlog.contextvars.clear_contextvars()


def parse_run_context(parse_run_id: str) -> AbstractContextManager[Any]:
    """Bind parse_run_id for the duration of a with-block.

    The previous value, if any, is restored on exit.
    """
    return structlog.contextvars.bound_contextvars(parse_run_id=parse_run_id)
