#!/usr/bin/env python3
"""HTTP Client for the Campus wireless controller management API.

This module provides the transport used by the controller adapters:

    - Bearer authentication via TokenManager
    - Automatic re-login on 401 responses
    - Rate limit handling on 429 responses (honours Retry-After)
    - Exponential backoff on 5xx and network errors
    - Circuit breaker so a dead controller fails fast
    - Typed exceptions per status code

Design Philosophy:
    This client knows HOW to talk to the controller, but not WHAT to ask
    for. Sites, device groups, profiles and services belong to the
    adapters that compose it.

Usage:
    async with CampusClient(token_manager) as client:
        groups = await client.get("/management/v1/devicegroups/site-1")
        await client.post("/management/v1/profiles/sync", {"profileIds": ids})
"""
import asyncio
import logging
import os
from typing import Any, Optional

import aiohttp

from .auth import TokenManager
from .exceptions import (
    APIError,
    CircuitOpenError,
    ConfigurationError,
    ConnectionError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
    TokenExpiredError,
    ValidationError,
)
from .resilience import CircuitBreaker

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 60
MAX_RATE_LIMIT_WAIT = 120


class CampusClient:
    """Async HTTP client for the controller's /management API.

    Use as an async context manager so the session is always closed:

        async with CampusClient(token_manager) as client:
            data = await client.get("/management/v1/sites/abc")

    Attributes:
        token_manager: TokenManager instance for authentication
        base_url: Controller URL (e.g., "https://controller.example.net")
    """

    def __init__(
        self,
        token_manager: TokenManager,
        base_url: Optional[str] = None,
        verify_ssl: Optional[bool] = None,
        enable_circuit_breaker: bool = True,
        circuit_failure_threshold: int = 5,
        circuit_timeout: float = 60.0,
        max_connections: int = 10,
    ):
        """Initialize the client.

        Args:
            token_manager: TokenManager instance for authentication
            base_url: Controller URL. Defaults to CAMPUS_BASE_URL.
            verify_ssl: Verify the controller certificate. Defaults to
                CAMPUS_VERIFY_SSL (true unless set to "false").
            enable_circuit_breaker: Enable circuit breaker for resilience
            circuit_failure_threshold: Failures before circuit opens
            circuit_timeout: Seconds before circuit attempts to close
            max_connections: Connection pool size

        Raises:
            ConfigurationError: If no base URL is available.
        """
        self.token_manager = token_manager
        self.base_url = (base_url or os.getenv("CAMPUS_BASE_URL", "")).rstrip("/")
        if verify_ssl is None:
            verify_ssl = os.getenv("CAMPUS_VERIFY_SSL", "true").lower() != "false"
        self.verify_ssl = verify_ssl
        self.max_connections = max_connections

        if not self.base_url:
            raise ConfigurationError(
                "Base URL is required. Provide base_url parameter or set CAMPUS_BASE_URL environment variable.",
                missing_keys=["CAMPUS_BASE_URL"],
            )

        self._session: Optional[aiohttp.ClientSession] = None

        self._circuit_breaker: Optional[CircuitBreaker] = None
        if enable_circuit_breaker:
            self._circuit_breaker = CircuitBreaker(
                failure_threshold=circuit_failure_threshold,
                timeout=circuit_timeout,
                name="campus_controller",
            )

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "CampusClient":
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections,
                ssl=None if self.verify_ssl else False,
            ),
            timeout=aiohttp.ClientTimeout(
                total=REQUEST_TIMEOUT_SECONDS,
                connect=10,
            ),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    # ----------------------------------------
    # Low-Level Request Methods
    # ----------------------------------------

    async def _get_auth_headers(self) -> dict[str, str]:
        token = await self.token_manager.get_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None,
    ) -> Any:
        """Make a single HTTP request (no retry logic).

        Returns:
            Parsed JSON response (dict or list), or None for an empty body

        Raises:
            APIError: If response status is not 2xx
            RuntimeError: If called outside of async context manager
            ConnectionError: If connection to controller fails
            TimeoutError: If request times out
        """
        if not self._session:
            raise RuntimeError(
                "CampusClient must be used as async context manager: "
                "async with CampusClient(...) as client:"
            )

        url = f"{self.base_url}{endpoint}"

        try:
            headers = await self._get_auth_headers()

            async with self._session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json_body,
            ) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    raise self._create_api_error(
                        status=response.status,
                        method=method,
                        endpoint=endpoint,
                        response_body=error_text,
                        retry_after=response.headers.get("Retry-After"),
                    )

                body = await response.text()
                if not body.strip():
                    return None
                return await response.json(content_type=None)

        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to {self.base_url}",
                host=self.base_url,
                cause=e,
            )

        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Request to {endpoint} timed out",
                timeout_seconds=REQUEST_TIMEOUT_SECONDS,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Network error during {method} {endpoint}: {e}",
                cause=e,
            )

    def _create_api_error(
        self,
        status: int,
        method: str,
        endpoint: str,
        response_body: str,
        retry_after: Optional[str] = None,
    ) -> Exception:
        """Create the exception matching a failed response's status code."""
        if status == 401:
            return TokenExpiredError(
                "Access token expired or invalid",
                details={"endpoint": endpoint},
            )

        if status == 404:
            return NotFoundError(
                resource_type="Resource",
                resource_id=endpoint,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status == 429:
            wait = 60
            if retry_after and retry_after.isdigit():
                wait = min(int(retry_after), MAX_RATE_LIMIT_WAIT)
            return RateLimitError(
                f"Rate limit exceeded for {endpoint}",
                retry_after=wait,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status in (400, 422):
            return ValidationError(
                f"Validation failed for {method} {endpoint}",
                status_code=status,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        if status >= 500:
            return ServerError(
                f"Server error ({status}) for {method} {endpoint}",
                status_code=status,
                endpoint=endpoint,
                method=method,
                response_body=response_body,
            )

        return APIError(
            f"{method} {endpoint} failed",
            status_code=status,
            endpoint=endpoint,
            method=method,
            response_body=response_body,
        )

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None,
        max_retries: int = 3,
    ) -> Any:
        """Make an HTTP request with automatic retry and circuit breaker.

        Resilience logic:
            - Circuit breaker: Fail fast if the controller is down
            - 401 Unauthorized: Invalidate token, log in again, retry
            - 429 Rate Limited: Wait for Retry-After, retry
            - 5xx Server Errors: Exponential backoff retry
            - Network errors: Exponential backoff retry

        Raises:
            CircuitOpenError: If circuit breaker is open
            APIError: If request fails after all retries
            NetworkError: If network error persists after retries
        """
        if self._circuit_breaker and self._circuit_breaker.is_open:
            if not self._circuit_breaker._should_attempt():
                raise CircuitOpenError(
                    "Circuit breaker is open for the controller API",
                    failure_count=self._circuit_breaker.failure_count,
                )

        last_error: Optional[Exception] = None
        backoff_delay = 1.0

        for attempt in range(1, max_retries + 1):
            try:
                result = await self._request(method, endpoint, params, json_body)

                if self._circuit_breaker:
                    await self._circuit_breaker._on_success()

                return result

            except TokenExpiredError as e:
                last_error = e
                logger.warning(f"Token rejected, logging in again (attempt {attempt})")
                self.token_manager.invalidate()
                continue

            except RateLimitError as e:
                last_error = e
                if attempt == max_retries:
                    break
                logger.warning(
                    f"Rate limited, waiting {e.retry_after}s (attempt {attempt}/{max_retries})"
                )
                await asyncio.sleep(e.retry_after)
                continue

            except ServerError as e:
                last_error = e
                if attempt < max_retries:
                    logger.warning(
                        f"Server error {e.status_code}, retrying in {backoff_delay}s "
                        f"(attempt {attempt}/{max_retries})"
                    )
                    await asyncio.sleep(backoff_delay)
                    backoff_delay = min(backoff_delay * 2, 60.0)
                    continue

                if self._circuit_breaker:
                    await self._circuit_breaker._on_failure(e)
                raise

            except NetworkError as e:
                last_error = e
                if attempt < max_retries:
                    logger.warning(
                        f"Network error: {e}. Retrying in {backoff_delay}s "
                        f"(attempt {attempt}/{max_retries})"
                    )
                    await asyncio.sleep(backoff_delay)
                    backoff_delay = min(backoff_delay * 2, 60.0)
                    continue

                if self._circuit_breaker:
                    await self._circuit_breaker._on_failure(e)
                raise

            except (NotFoundError, ValidationError):
                raise

            except APIError as e:
                if e.recoverable and attempt < max_retries:
                    last_error = e
                    logger.warning(
                        f"API error (recoverable): {e}. Retrying in {backoff_delay}s"
                    )
                    await asyncio.sleep(backoff_delay)
                    backoff_delay = min(backoff_delay * 2, 60.0)
                    continue

                if self._circuit_breaker:
                    await self._circuit_breaker._on_failure(e)
                raise

        if self._circuit_breaker and last_error:
            await self._circuit_breaker._on_failure(last_error)

        if last_error:
            raise last_error

        raise APIError(
            "Request failed after all retries",
            status_code=0,
            endpoint=endpoint,
            method=method,
        )

    @property
    def circuit_status(self) -> Optional[dict[str, Any]]:
        """Get circuit breaker status for health reporting."""
        if self._circuit_breaker:
            return self._circuit_breaker.get_status()
        return None

    # ----------------------------------------
    # High-Level Request Methods
    # ----------------------------------------

    async def get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        return await self._request_with_retry("GET", endpoint, params=params)

    async def post(
        self,
        endpoint: str,
        json_body: Optional[Any] = None,
        params: Optional[dict] = None,
    ) -> Any:
        return await self._request_with_retry("POST", endpoint, params=params, json_body=json_body)
