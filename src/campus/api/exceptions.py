#!/usr/bin/env python3
"""Exception Hierarchy for the Campus wireless controller integration.

Every error raised by the controller client, the token manager and the
WLAN assignment workflow derives from CampusError, so callers can catch
the whole family with one except clause while still distinguishing the
cases that matter.

Design Principles:
    - Exceptions keep their context (original error, timestamp, details)
    - Each exception declares whether a retry could help
    - Workflow errors are only raised before anything has been mutated

Exception Hierarchy:
    CampusError (base)
    ├── ConfigurationError (unrecoverable - fix config)
    ├── AuthenticationError (may be recoverable - refresh token)
    │   ├── TokenFetchError
    │   ├── TokenExpiredError
    │   └── InvalidCredentialsError
    ├── APIError (may be recoverable - retry)
    │   ├── RateLimitError
    │   ├── NotFoundError
    │   ├── ValidationError
    │   └── ServerError
    ├── NetworkError (recoverable - retry)
    │   ├── ConnectionError
    │   └── TimeoutError
    ├── CircuitOpenError (recovers when the circuit closes)
    └── WorkflowError (pre-flight rejection)
        ├── ServiceRequestValidationError
        └── SiteConfigurationError
"""
from datetime import datetime, timezone
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class CampusError(Exception):
    """Base exception for all Campus controller errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "TOKEN_EXPIRED")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether this error might be recoverable with retry
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.insert(0, f"[{self.code}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors (Unrecoverable)
# ============================================

class ConfigurationError(CampusError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


# ============================================
# Authentication Errors
# ============================================

class AuthenticationError(CampusError):
    """Base class for authentication-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class TokenFetchError(AuthenticationError):
    """Raised when a token cannot be fetched from the controller."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        attempts: int = 1,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if status_code:
            details["status_code"] = status_code
        details["attempts"] = attempts
        super().__init__(
            message,
            code="TOKEN_FETCH_ERROR",
            details=details,
            **kwargs,
        )


class TokenExpiredError(AuthenticationError):
    """Raised when the token has expired and refresh failed."""

    def __init__(self, message: str = "Access token has expired", **kwargs):
        super().__init__(message, code="TOKEN_EXPIRED", **kwargs)


class InvalidCredentialsError(AuthenticationError):
    """Raised when controller credentials are rejected."""

    def __init__(
        self,
        message: str = "Invalid controller credentials",
        **kwargs,
    ):
        super().__init__(
            message,
            code="INVALID_CREDENTIALS",
            recoverable=False,
            **kwargs,
        )


# ============================================
# API Errors
# ============================================

class APIError(CampusError):
    """Base class for controller API response errors.

    Attributes:
        status_code: HTTP status code
        endpoint: API endpoint that was called
        response_body: Raw response body (may be truncated)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        endpoint: Optional[str] = None,
        response_body: Optional[str] = None,
        method: str = "GET",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if endpoint:
            details["endpoint"] = endpoint
        if method:
            details["method"] = method
        if response_body:
            details["response_body"] = response_body[:500]

        kwargs.setdefault("recoverable", status_code in (429, 500, 502, 503, 504))
        kwargs.setdefault("code", f"API_ERROR_{status_code}")

        super().__init__(
            message,
            details=details,
            **kwargs,
        )
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_body = response_body
        self.method = method


class RateLimitError(APIError):
    """Raised when the controller rate limit is exceeded (HTTP 429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        kwargs.setdefault("status_code", 429)
        details = kwargs.pop("details", {})
        if retry_after:
            details["retry_after_seconds"] = retry_after
        super().__init__(
            message,
            code="RATE_LIMIT_EXCEEDED",
            details=details,
            **kwargs,
        )
        self.retry_after = retry_after or 60


class NotFoundError(APIError):
    """Raised when a controller resource is not found (HTTP 404)."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        message = f"{resource_type} not found"
        if resource_id:
            message = f"{resource_type} '{resource_id}' not found"

        kwargs.setdefault("status_code", 404)
        details = kwargs.pop("details", {})
        details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message,
            code="NOT_FOUND",
            details=details,
            recoverable=False,
            **kwargs,
        )


class ValidationError(APIError):
    """Raised when the controller rejects a payload (HTTP 400/422)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("status_code", 400)
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field

        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


class ServerError(APIError):
    """Raised when the controller returns a 5xx error."""

    def __init__(
        self,
        message: str = "Server error",
        **kwargs,
    ):
        kwargs.setdefault("status_code", 500)
        super().__init__(
            message,
            code="SERVER_ERROR",
            recoverable=True,
            **kwargs,
        )


# ============================================
# Network Errors (Usually Recoverable)
# ============================================

class NetworkError(CampusError):
    """Base class for network-related errors."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class ConnectionError(NetworkError):
    """Raised when the connection to the controller fails."""

    def __init__(
        self,
        message: str = "Failed to connect to controller",
        host: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if host:
            details["host"] = host
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details=details,
            **kwargs,
        )


class TimeoutError(NetworkError):
    """Raised when a request or a bounded operation times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            code="TIMEOUT_ERROR",
            details=details,
            **kwargs,
        )


# ============================================
# Circuit Breaker
# ============================================

class CircuitOpenError(CampusError):
    """Raised when the circuit breaker is open and requests are rejected.

    Attributes:
        reset_at: When the circuit breaker will attempt to close
    """

    def __init__(
        self,
        message: str = "Circuit breaker is open, requests rejected",
        reset_at: Optional[datetime] = None,
        failure_count: int = 0,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if reset_at:
            details["reset_at"] = reset_at.isoformat()
        details["failure_count"] = failure_count

        super().__init__(
            message,
            code="CIRCUIT_OPEN",
            details=details,
            recoverable=True,
            **kwargs,
        )
        self.reset_at = reset_at
        self.failure_count = failure_count


# ============================================
# Workflow Errors (pre-flight)
# ============================================

class WorkflowError(CampusError):
    """Base class for errors that reject a workflow before it starts.

    Raised only when nothing has been created or assigned yet, so the
    caller can fix the input and resubmit.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None, **kwargs):
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = list(errors)
        kwargs.setdefault("recoverable", False)
        super().__init__(message, details=details, **kwargs)
        self.errors = list(errors or [])


class ServiceRequestValidationError(WorkflowError):
    """Raised when the WLAN definition itself is incomplete."""

    def __init__(self, errors: list[str], **kwargs):
        message = "Invalid WLAN definition: " + "; ".join(errors)
        super().__init__(
            message,
            errors=errors,
            code="INVALID_SERVICE_REQUEST",
            **kwargs,
        )


class SiteConfigurationError(WorkflowError):
    """Raised when one or more site deployment configs are invalid.

    Attributes:
        site_errors: Mapping of site id to the problems found for that site
    """

    def __init__(self, site_errors: dict[str, list[str]], **kwargs):
        flat = [
            f"{site_id}: {error}"
            for site_id, errors in site_errors.items()
            for error in errors
        ]
        message = (
            f"{len(site_errors)} site configuration(s) invalid: " + "; ".join(flat)
        )
        super().__init__(
            message,
            errors=flat,
            code="INVALID_SITE_CONFIGURATION",
            **kwargs,
        )
        self.site_errors = site_errors


# ============================================
# Exports
# ============================================

__all__ = [
    # Base
    "CampusError",
    # Configuration
    "ConfigurationError",
    # Authentication
    "AuthenticationError",
    "TokenFetchError",
    "TokenExpiredError",
    "InvalidCredentialsError",
    # API
    "APIError",
    "RateLimitError",
    "NotFoundError",
    "ValidationError",
    "ServerError",
    # Network
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    # Circuit breaker
    "CircuitOpenError",
    # Workflow
    "WorkflowError",
    "ServiceRequestValidationError",
    "SiteConfigurationError",
]
