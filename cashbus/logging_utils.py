"""
Structured logging utilities for CashBus.

Provides context management and structured logging helpers so that every
line written while a claim is being escalated carries the claim reference.

Usage:
    from cashbus.logging_utils import get_logger, add_log_context

    logger = get_logger(__name__)

    with add_log_context(claim_reference=claim.short_reference):
        logger.info("Sending reminder")
"""

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

from django.http import HttpRequest


_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

# Fields StructuredLogFormatter renders ahead of the message when present
CONTEXT_FIELDS = [
    "request_id",
    "user_id",
    "method",
    "path",
    "run_id",
    "timeline_id",
    "claim_reference",
    "stage",
    "task_name",
]


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that automatically includes context in log records.

    Context comes from the current ContextVar, so it follows the thread or
    async task that set it.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        context = _log_context.get({})

        extra = kwargs.get("extra", {})
        extra.update(context)
        kwargs["extra"] = extra

        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a logger with automatic context injection.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextualLoggerAdapter: Logger with context support
    """
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def set_log_context(**kwargs: Any) -> None:
    """Merge key-value pairs into the context of all subsequent log messages."""
    current_context = _log_context.get({}).copy()
    current_context.update(kwargs)
    _log_context.set(current_context)


def clear_log_context() -> None:
    _log_context.set({})


def get_log_context() -> Dict[str, Any]:
    return _log_context.get({}).copy()


class add_log_context:
    """
    Context manager to temporarily add log context.

    Usage:
        with add_log_context(timeline_id=12, stage="final_notice"):
            logger.info("Processing")  # Includes timeline_id and stage
        # Context is restored after the block
    """

    def __init__(self, **kwargs: Any):
        self.new_context = kwargs
        self.previous_context: Optional[Dict[str, Any]] = None

    def __enter__(self):
        self.previous_context = get_log_context()
        set_log_context(**self.new_context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_context is not None:
            _log_context.set(self.previous_context)
        else:
            clear_log_context()


def extract_request_context(request: HttpRequest) -> Dict[str, Any]:
    """
    Extract logging context from an HTTP request.

    Args:
        request: Django HTTP request

    Returns:
        Dict[str, Any]: Context dictionary with request information
    """
    from cashbus.middleware import get_request_id

    context = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    if hasattr(request, "user") and request.user.is_authenticated:
        context["user_id"] = request.user.id

    context["method"] = request.method
    context["path"] = request.path

    return context


class StructuredLogFormatter(logging.Formatter):
    """
    Log formatter that outputs structured (key=value) logs.

    Example output:
        2026-03-01 09:00:02 INFO run_id=4f1c timeline_id=12 stage=first_reminder message="Stage sent"
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        parts = [f"{timestamp} {record.levelname} logger={record.name}"]

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                if isinstance(value, str) and " " in value:
                    parts.append(f'{field}="{value}"')
                else:
                    parts.append(f"{field}={value}")

        msg = record.getMessage()
        if " " in msg or "=" in msg:
            parts.append(f'message="{msg}"')
        else:
            parts.append(f"message={msg}")

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)

        if record.exc_text:
            parts.append(f"\n{record.exc_text}")

        return " ".join(parts)
