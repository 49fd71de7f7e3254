"""
Structured log output for the workqueue logger namespace.

Library modules log through plain stdlib loggers under "workqueue". An
application that wants those records rendered by structlog calls
setup_logging(); nothing outside the "workqueue" namespace is touched, so the
application's own root handlers, levels and structlog configuration stay as
they were.
"""

import logging
import sys
from typing import IO, Any

import structlog
from opentelemetry import trace

from workqueue.config import Settings, get_settings

LOGGER_NAMESPACE = "workqueue"

# Name given to the handler setup_logging installs, so a repeated call
# replaces it instead of stacking a second one
_HANDLER_NAME = "workqueue-structlog"


def add_span_ids(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Stamp records emitted inside a valid span with its trace and span ids."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict.setdefault("trace_id", trace.format_trace_id(ctx.trace_id))
        event_dict.setdefault("span_id", trace.format_span_id(ctx.span_id))
    return event_dict


def _processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        add_span_ids,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]


def build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """
    Build a stdlib formatter that renders both stdlib and structlog records.

    Args:
        log_format: "json" for one JSON object per line, anything else for
            the coloured console renderer.
    """
    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(settings: Settings | None = None, *, stream: IO[str] | None = None) -> logging.Logger:
    """
    Route the "workqueue" logger namespace through structlog.

    Installs one handler on the "workqueue" logger and stops its records from
    propagating to the root logger. Calling it again swaps the handler.

    Args:
        settings: Settings to read log level and format from. Defaults to
            the cached environment settings.
        stream: Where to write. Defaults to stdout.

    Returns:
        The configured "workqueue" logger.
    """
    settings = settings or get_settings()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(build_formatter(settings.log_format))

    logger = logging.getLogger(LOGGER_NAMESPACE)
    for existing in logger.handlers[:]:
        if existing.get_name() == _HANDLER_NAME:
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.propagate = False
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger writing to the stdlib logger called name.

    Records are rendered by whatever handler that stdlib logger reaches; use
    a name under "workqueue" to get the setup_logging() output.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            *_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every following log record in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
