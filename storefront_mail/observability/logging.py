"""
Structured logging setup using structlog.

Modules log through ``logging.getLogger(__name__)`` with ``extra=``; the
standard library records are rendered by the same structlog processor chain
as native structlog loggers.
"""

import logging
import sys
from typing import Any

import structlog
from opentelemetry import trace

from storefront_mail.config import Settings, get_settings

# Keys whose values never reach the log output
REDACTED_KEYS = frozenset({"password", "email_pass", "authorization", "token", "api_secret_key"})

# Third-party loggers kept at WARNING
NOISY_LOGGERS = ("uvicorn.access", "aiosmtplib", "httpx")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the current trace and span ids, when a span is recording."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask SMTP credentials and bearer tokens passed as log fields."""
    for key in REDACTED_KEYS.intersection(event_dict):
        if event_dict[key] is not None:
            event_dict[key] = "***"
    return event_dict


def setup_logging(settings: Settings | None = None) -> None:
    """
    Route all logging through structlog.

    Args:
        settings: Settings providing ``log_level`` and ``log_format``
            (``json`` or ``console``). Defaults to the cached settings.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ExtraAdder(),
        redact_secrets,
    ]

    if settings.log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs: Any) -> None:
    """
    Bind fields to every later log record in the current task.

    The queue runs each job body in its own task, so fields bound there do
    not leak into other jobs.
    """
    structlog.contextvars.bind_contextvars(**kwargs)
