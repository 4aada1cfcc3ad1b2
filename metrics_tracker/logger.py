"""
Metrics Tracker Logging Module

Structured logging for the tracker client. Supports JSON and text
rendering. Sensitive keys are masked because Cloud Foundry service bindings
carry credentials.

Loggers are wrapped with their own processor chain, so the process-wide
structlog configuration and the host's root logger are never touched.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

LOGGER_NAME = "metrics_tracker"

SENSITIVE_KEYS = {"password", "secret", "token", "api_key", "credential"}

_log_format = "json"
_json_renderer = structlog.processors.JSONRenderer()
_console_renderer = structlog.dev.ConsoleRenderer(colors=False)


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to log events."""
    event_dict["timestamp"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return event_dict


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service context if available."""
    if "service" not in event_dict:
        event_dict["service"] = "metrics-tracker"
    return event_dict


def censor_sensitive_data(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove or mask sensitive data from logs."""
    for key in list(event_dict.keys()):
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def render_event(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> str:
    """Render with whichever format setup_logging() selected last."""
    if _log_format == "json":
        event_dict = structlog.processors.format_exc_info(logger, method_name, event_dict)
        return _json_renderer(logger, method_name, event_dict)
    return _console_renderer(logger, method_name, event_dict)


PROCESSORS: list[Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    add_timestamp,
    add_service_context,
    censor_sensitive_data,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
    render_event,
]


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    console_output: bool = False,
) -> None:
    """
    Set up the tracker's logging.

    Only the ``metrics_tracker`` stdlib logger is changed. Without console
    output, records propagate to whatever handlers the host has installed.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ('json' or 'text')
        console_output: Whether to write to stdout instead of propagating
    """
    global _log_format
    _log_format = log_format.lower()

    tracker_logger = logging.getLogger(LOGGER_NAME)
    tracker_logger.setLevel(getattr(logging, level.upper()))
    tracker_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        tracker_logger.addHandler(console_handler)
    tracker_logger.propagate = not console_output


def get_logger(name: Optional[str] = None, **context: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
        **context: Additional context to bind to the logger

    Returns:
        A structlog logger backed by the stdlib logger of the same name
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name or LOGGER_NAME),
        processors=PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )
    if context:
        logger = logger.bind(**context)
    return logger
