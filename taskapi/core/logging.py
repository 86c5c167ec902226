"""
Structured logging with structlog.
Challenge: One log format for app and third-party libraries, per-request correlation ids.
Design: configure_logging() runs once in create_app(); modules call get_logger(__name__).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from taskapi.config import Settings, get_settings


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Keep the name bound by get_logger(); PrintLogger itself has no .name."""
    event_dict.setdefault("logger", getattr(logger, "name", None) or "taskapi")
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Console output in debug/console mode, JSON lines otherwise."""
    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.debug or settings.log_format == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Third-party libraries (uvicorn, sqlalchemy) log through stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(logger_name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    # Bound lazily, so module-level loggers pick up configure_logging() settings
    return structlog.get_logger(logger=name or "taskapi")


def bind_correlation_id(correlation_id: str) -> None:
    """Attach a correlation id to every log entry of the current request."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Drop request context so it does not leak into the next request."""
    structlog.contextvars.clear_contextvars()
