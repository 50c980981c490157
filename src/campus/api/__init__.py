"""Campus controller API modules.

This package provides the transport layer for the wireless controller's
management API.

Classes:
    CampusClient: HTTP client with retry, rate limit handling and circuit breaker
    TokenManager: Controller login with token caching

Exceptions:
    CampusError: Base exception for all controller errors
    ConfigurationError: Missing or invalid configuration
    AuthenticationError: Login failures
    APIError: API request failures
    NetworkError: Network connectivity issues
    WorkflowError: WLAN workflow rejected before it started

Resilience:
    CircuitBreaker: Fail fast while the controller is down
    process_in_batches: Ordered, batch-bounded concurrent processing
"""
from .auth import CachedToken, TokenManager
from .client import CampusClient
from .exceptions import (
    APIError,
    AuthenticationError,
    CampusError,
    CircuitOpenError,
    ConfigurationError,
    ConnectionError,
    InvalidCredentialsError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ServiceRequestValidationError,
    SiteConfigurationError,
    TimeoutError,
    TokenExpiredError,
    TokenFetchError,
    ValidationError,
    WorkflowError,
)
from .resilience import (
    CircuitBreaker,
    CircuitState,
    chunk,
    process_in_batches,
    with_fallback,
    with_timeout,
)

__all__ = [
    # Transport
    "CampusClient",
    "TokenManager",
    "CachedToken",
    # Exceptions
    "CampusError",
    "ConfigurationError",
    "AuthenticationError",
    "TokenFetchError",
    "TokenExpiredError",
    "InvalidCredentialsError",
    "APIError",
    "RateLimitError",
    "NotFoundError",
    "ValidationError",
    "ServerError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "CircuitOpenError",
    "WorkflowError",
    "ServiceRequestValidationError",
    "SiteConfigurationError",
    # Resilience
    "CircuitBreaker",
    "CircuitState",
    "with_fallback",
    "with_timeout",
    "chunk",
    "process_in_batches",
]
