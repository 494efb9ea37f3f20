"""Structured logging utilities with booking context support."""

import logging
import threading
import uuid
from typing import Any, Dict, Optional, cast

# Thread-local storage for log context
_thread_local = threading.local()

# Field names whose values are never written to logs
SENSITIVE_FIELDS = {
    "password",
    "token",
    "api_key",
    "secret",
    "access_token",
    "refresh_token",
    "credentials",
    "auth",
    "authorization",
}


def generate_correlation_id() -> str:
    """
    Generate a unique correlation ID for tracking a calculation or commit.

    Returns:
        UUID string to use as correlation ID
    """
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """
    Get the current correlation ID from thread-local context.

    Returns:
        Current correlation ID or None if not set
    """
    context = getattr(_thread_local, "context", None)
    if context:
        return context.get("correlation_id")
    return None


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields currently attached to log records."""
    return dict(getattr(_thread_local, "context", {}))


class LogContext:
    """
    Context manager for adding structured fields to log records.

    Fields are stored in thread-local storage and copied onto every record
    by the filter installed in configure_logging().

    Example:
        with LogContext(booking_id="bk-1", operation="calculate"):
            logger.info("Calculating charges")
            # Record carries booking_id and operation fields
    """

    def __init__(self, **kwargs):
        self.fields = kwargs
        self.previous_context: Optional[Dict[str, Any]] = None

    def __enter__(self):
        if not hasattr(_thread_local, "context"):
            _thread_local.context = {}

        self.previous_context = _thread_local.context.copy()
        _thread_local.context.update(self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_context is not None:
            _thread_local.context = self.previous_context
        else:
            _thread_local.context = {}


def booking_context(booking_id: str, operation: str) -> LogContext:
    """Log context for one engine operation against a booking.

    A fresh correlation id is attached unless one is already active, so
    nested operations (a commit retrying a failed half) share the id of the
    outer call.
    """
    correlation_id = get_correlation_id() or generate_correlation_id()
    return LogContext(
        booking_id=booking_id, operation=operation, correlation_id=correlation_id
    )


class _ContextFilter(logging.Filter):
    """Logging filter that adds context fields to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(_thread_local, "context"):
            for key, value in _thread_local.context.items():
                setattr(record, key, value)
        return True


def sanitize_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sanitize sensitive fields in a dictionary.

    Recursively redacts values whose key matches a sensitive field name,
    e.g. the Authorization header of an outgoing API request.

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    if not isinstance(data, dict):
        return data

    sanitized: Dict[str, Any] = {}

    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
            sanitized[key] = "***REDACTED***" if value is not None else None
        elif isinstance(value, dict):
            sanitized[key] = sanitize_sensitive_data(cast(Dict[str, Any], value))
        else:
            sanitized[key] = value

    return sanitized
