"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__)),
and Logfire captures and enriches these logs once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("mutation_committed", extra={"task_id": 7})

Structured logging utilities:
    log_with_context(logger, "info", "Message", task_id=7, signature="page=1")
"""

import logging

import logfire
from fastapi import FastAPI

from housekeeping_sync.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="housekeeping-sync",
        service_version="0.1.0",
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span around a fetch or mutation.

    Usage:
        with span("mutation_executor.execute"):
            ...
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (task_id, signature, seq, ...)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_task_context(
    logger: logging.Logger,
    level: str,
    message: str,
    task_id: int | None = None,
    **extra: object,
) -> None:
    """Log a message tagged with the task it concerns.

    Usage:
        log_with_task_context(logger, "warning", "mutation_rolled_back", task_id=7, kind="remote_failure")
    """
    context = {"task_id": task_id, **extra} if task_id is not None else extra
    log_with_context(logger, level, message, **context)
