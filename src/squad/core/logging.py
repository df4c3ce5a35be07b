"""Structured logging configuration.

Every module obtains its logger with ``structlog.get_logger(__name__)`` and
logs snake_case event names with keyword context. Task runs bind ``task_id``
and ``agent_id`` into contextvars via ``task_log_context`` so that provider
and tool logs emitted during a run carry them without threading the ids
through every call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from src.squad.config import Environment, Settings, get_settings


def configure_structlog(settings: Settings | None = None) -> None:
    """Configure structlog: JSON lines in production, console output elsewhere."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.ENVIRONMENT == Environment.production
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def task_log_context(task_id: str, agent_id: str) -> Iterator[None]:
    """Bind task identifiers for every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(task_id=task_id, agent_id=agent_id):
        yield
