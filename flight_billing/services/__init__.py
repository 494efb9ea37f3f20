"""
Remote collaborators of the flight billing engine.

This package provides:
- Gateway interfaces and errors for the rate source, invoice item store
  and completion commit
- An HTTP client of the billing API with retry and circuit breaker
- A time-bounded rate cache and the rate resolver built on it
- A static in-process rate source for previews and tests
"""

from .error_classifier import ErrorClassifier, ErrorType
from .gateways import (
    CompletionGateway,
    GatewayError,
    InvoiceItemStore,
    NotFoundError,
    RateSource,
    VersionConflictError,
)
from .http_gateway import HttpBillingGateway
from .rate_cache import RateCache
from .rate_resolver import RateResolver
from .rate_sources import RateFileError, StaticRateSource
from .retry_handler import CircuitBreakerError, RetryExhaustedException, RetryHandler

__all__ = [
    "CircuitBreakerError",
    "CompletionGateway",
    "ErrorClassifier",
    "ErrorType",
    "GatewayError",
    "HttpBillingGateway",
    "InvoiceItemStore",
    "NotFoundError",
    "RateCache",
    "RateFileError",
    "RateResolver",
    "RateSource",
    "RetryExhaustedException",
    "RetryHandler",
    "StaticRateSource",
    "VersionConflictError",
]
