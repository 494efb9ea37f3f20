"""
Error classification utilities for distinguishing retryable from fatal errors.
"""

import logging
import socket
import threading
from enum import Enum
from typing import Any, Dict, Optional

import requests.exceptions

from flight_billing.services.gateways import GatewayError

logger = logging.getLogger(__name__)


class ErrorType(Enum):
    """Classification of error types."""

    RETRYABLE = "retryable"  # 429, 5xx, network errors
    FATAL = "fatal"  # 4xx except 429
    UNKNOWN = "unknown"


def _status_code(exception: Exception) -> Optional[int]:
    if isinstance(exception, GatewayError):
        return exception.status_code
    if isinstance(exception, requests.exceptions.HTTPError):
        response = exception.response
        if response is not None:
            return response.status_code
    return None


class ErrorClassifier:
    """
    Classifies remote call errors into retryable and fatal.

    Understands requests exceptions and GatewayError. A GatewayError raised
    with ``transient=True`` is retryable whatever its status code.
    """

    def __init__(self):
        self._stats: Dict[str, int] = {
            "retryable": 0,
            "fatal": 0,
            "unknown": 0,
            "total": 0,
        }
        self._lock = threading.Lock()

    def _count(self, error_type: ErrorType) -> ErrorType:
        with self._lock:
            self._stats["total"] += 1
            self._stats[error_type.value] += 1
        return error_type

    def classify(self, exception: Exception) -> ErrorType:
        """
        Classify an exception into retryable, fatal, or unknown.

        Args:
            exception: The exception to classify

        Returns:
            ErrorType classification
        """
        if isinstance(exception, GatewayError) and exception.transient:
            return self._count(ErrorType.RETRYABLE)

        status_code = _status_code(exception)
        if status_code is not None:
            if status_code == 429 or 500 <= status_code < 600:
                return self._count(ErrorType.RETRYABLE)
            if 400 <= status_code < 500:
                return self._count(ErrorType.FATAL)

        if isinstance(
            exception,
            (
                socket.timeout,
                requests.exceptions.ConnectionError,
                requests.exceptions.Timeout,
            ),
        ):
            return self._count(ErrorType.RETRYABLE)

        return self._count(ErrorType.UNKNOWN)

    def is_retryable(self, exception: Exception) -> bool:
        return self.classify(exception) == ErrorType.RETRYABLE

    def get_error_description(self, exception: Exception) -> str:
        """
        Get a human-readable error description.

        Args:
            exception: The exception to describe

        Returns:
            Error description string
        """
        error_type = self.classify(exception)
        status_code = _status_code(exception)

        if status_code == 429:
            return f"Rate limit error (HTTP 429) - {error_type.value}"
        if status_code is not None and 500 <= status_code < 600:
            return f"Server error (HTTP {status_code}) - {error_type.value}"
        if status_code is not None and 400 <= status_code < 500:
            return f"Client error (HTTP {status_code}) - {error_type.value}"

        if isinstance(exception, (socket.timeout, requests.exceptions.Timeout)):
            return f"Network timeout error - {error_type.value}"

        if isinstance(exception, requests.exceptions.ConnectionError):
            return f"Network connection error - {error_type.value}"

        return f"{type(exception).__name__}: {str(exception)} - {error_type.value}"

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            return self._stats.copy()

    def reset_statistics(self):
        with self._lock:
            self._stats = {"retryable": 0, "fatal": 0, "unknown": 0, "total": 0}
