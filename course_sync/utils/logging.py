# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Logging setup for the sync service.

Orchestration events are emitted through structlog so each line of a sync
run carries the record it belongs to. Lower layers (store, content client,
uploader) use plain stdlib loggers, which share the configured level.

Example:
    >>> from course_sync.utils.logging import setup_logging, get_logger
    >>> from course_sync.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("course_sync_completed", course_title="Science", language="Hindi")
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from course_sync.core.config.settings import Settings

QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sqlalchemy",
    "asyncio",
    "dramatiq",
)


def _renderers(settings: "Settings") -> list[Processor]:
    if settings.is_development or settings.debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the stdlib root logger.

    Development and debug runs render readable console lines; any other
    environment renders one JSON object per event.

    Args:
        settings: Application settings (log_level, environment, debug).
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        *_renderers(settings),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    logging.getLogger("course_sync").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return the structlog logger for a module."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Attach fields to every following event of the current context.

    The orchestrator binds the record id, course title and language before
    processing a record and clears them afterwards.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop every field bound with bind_context."""
    structlog.contextvars.clear_contextvars()
