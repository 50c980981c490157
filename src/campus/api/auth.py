#!/usr/bin/env python3
"""Access Token Management for the Campus wireless controller.

The controller issues bearer tokens from its login endpoint
(``/management/v1/oauth2/token``) in exchange for an operator's user name
and password. This module caches that token and refreshes it before it
expires.

Features:
    - Token caching with a dynamic expiration buffer (10% of TTL, max 5min)
    - Refresh serialized with asyncio.Lock so concurrent callers share one login
    - Exponential backoff on transient failures (1s, 2s, 4s)
    - Typed exceptions for bad credentials, network and server errors

Security Notes:
    - Tokens are cached in memory only
    - Credentials come from the environment (CAMPUS_USERNAME / CAMPUS_PASSWORD)
    - Logs show a SHA-256 token id, never the token itself

Example:
    >>> manager = TokenManager()
    >>> token = await manager.get_token()
"""
import asyncio
import hashlib
import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp
from dotenv import load_dotenv

from .exceptions import (
    ConfigurationError,
    ConnectionError,
    InvalidCredentialsError,
    NetworkError,
    TimeoutError,
    TokenFetchError,
)

load_dotenv()

logger = logging.getLogger(__name__)

TOKEN_PATH = "/management/v1/oauth2/token"


@dataclass
class CachedToken:
    """Container for a cached controller access token.

    Attributes:
        access_token: The bearer token string.
        expires_at: Unix timestamp when the token expires.
        token_type: Token type, typically "Bearer".
        expires_in: Original TTL in seconds (for dynamic buffer calculation).
    """
    access_token: str
    expires_at: float
    token_type: Optional[str] = "Bearer"
    expires_in: int = 7200

    MAX_BUFFER_SECONDS = 300
    MIN_BUFFER_SECONDS = 30

    @property
    def token_id(self) -> str:
        """Safe identifier for logging (SHA-256 hash, first 8 chars)."""
        return hashlib.sha256(self.access_token.encode()).hexdigest()[:8]

    @property
    def _buffer_seconds(self) -> float:
        base_buffer = self.expires_in * 0.1
        buffer = max(self.MIN_BUFFER_SECONDS, min(base_buffer, self.MAX_BUFFER_SECONDS))
        # ±10% jitter so several workers don't refresh in lockstep
        jitter = buffer * random.uniform(-0.1, 0.1)
        return buffer + jitter

    @property
    def is_expired(self) -> bool:
        return time.time() >= (self.expires_at - self._buffer_seconds)

    @property
    def time_remaining(self) -> float:
        return max(0, self.expires_at - time.time())


class TokenManager:
    """Controller token manager with automatic refresh.

    Attributes:
        username: Controller operator login (env: CAMPUS_USERNAME).
        password: Controller operator password (env: CAMPUS_PASSWORD).
        token_url: Login endpoint (env: CAMPUS_TOKEN_URL, defaults to
            CAMPUS_BASE_URL + /management/v1/oauth2/token).
        verify_ssl: Whether to verify the controller certificate.

    Example:
        >>> manager = TokenManager()
        >>> token = await manager.get_token()  # Logs in
        >>> token = await manager.get_token()  # Returns cached token
    """
    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        token_url: Optional[str] = None,
        verify_ssl: Optional[bool] = None,
    ):
        self.username = username or os.getenv("CAMPUS_USERNAME")
        self.password = password or os.getenv("CAMPUS_PASSWORD")
        self.token_url = token_url or os.getenv("CAMPUS_TOKEN_URL")
        if not self.token_url and os.getenv("CAMPUS_BASE_URL"):
            self.token_url = os.getenv("CAMPUS_BASE_URL").rstrip("/") + TOKEN_PATH
        if verify_ssl is None:
            verify_ssl = os.getenv("CAMPUS_VERIFY_SSL", "true").lower() != "false"
        self.verify_ssl = verify_ssl

        missing = []
        if not self.username:
            missing.append("CAMPUS_USERNAME")
        if not self.password:
            missing.append("CAMPUS_PASSWORD")
        if not self.token_url:
            missing.append("CAMPUS_BASE_URL")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_keys=missing,
            )

        self._cached_token: Optional[CachedToken] = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Get a valid access token, logging in again when needed.

        Raises:
            TokenFetchError: If a token cannot be obtained after retries
            InvalidCredentialsError: If the controller rejects the login
        """
        if self._cached_token and not self._cached_token.is_expired:
            return self._cached_token.access_token

        async with self._lock:
            if self._cached_token and not self._cached_token.is_expired:
                return self._cached_token.access_token

            self._cached_token = await self._fetch_token()
            return self._cached_token.access_token

    async def _fetch_token(self, max_retries: int = 3) -> CachedToken:
        """Log in to the controller, retrying transient failures.

        Raises:
            TokenFetchError: If token cannot be fetched after retries
            InvalidCredentialsError: If credentials are invalid (401)
        """
        payload = {
            "grantType": "password",
            "userId": self.username,
            "password": self.password,
        }

        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            try:
                connector = aiohttp.TCPConnector(ssl=None if self.verify_ssl else False)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        self.token_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=30),
                    ) as response:
                        if response.status == 200:
                            data = await response.json()

                            access_token = data.get("access_token")
                            if not access_token:
                                raise TokenFetchError(
                                    "Token response missing access_token",
                                    status_code=200,
                                    attempts=attempt,
                                    details={"response_keys": list(data.keys())},
                                )

                            expires_in = int(data.get("expires_in", 7200))
                            token = CachedToken(
                                access_token=access_token,
                                expires_at=time.time() + expires_in,
                                token_type=data.get("token_type", "Bearer"),
                                expires_in=expires_in,
                            )
                            logger.info(
                                f"Token fetched (id={token.token_id}), expires in {expires_in}s"
                            )
                            return token

                        error_text = await response.text()

                        if response.status in (401, 403):
                            raise InvalidCredentialsError(
                                "Controller rejected the login",
                                details={"response": error_text[:200]},
                            )

                        if response.status == 400:
                            raise TokenFetchError(
                                f"Invalid login request: {error_text[:200]}",
                                status_code=400,
                                attempts=attempt,
                            )

                        last_error = TokenFetchError(
                            f"Login endpoint returned HTTP {response.status}",
                            status_code=response.status,
                            attempts=attempt,
                            details={"response": error_text[:200]},
                        )
                        logger.warning(
                            f"Token fetch attempt {attempt}/{max_retries} failed: "
                            f"HTTP {response.status}"
                        )

            except aiohttp.ClientConnectionError as e:
                last_error = ConnectionError(
                    f"Failed to connect to controller: {e}",
                    host=self.token_url,
                    cause=e,
                )
                logger.warning(
                    f"Token fetch attempt {attempt}/{max_retries} failed: "
                    f"Connection error - {e}"
                )

            except asyncio.TimeoutError as e:
                last_error = TimeoutError(
                    "Login request timed out",
                    timeout_seconds=30,
                    cause=e,
                )
                logger.warning(
                    f"Token fetch attempt {attempt}/{max_retries} failed: Timeout"
                )

            except aiohttp.ClientError as e:
                last_error = NetworkError(
                    f"Network error during login: {e}",
                    cause=e,
                )
                logger.warning(
                    f"Token fetch attempt {attempt}/{max_retries} failed: {e}"
                )

            if attempt < max_retries:
                wait_time = 2 ** (attempt - 1)
                logger.debug(f"Waiting {wait_time}s before retry")
                await asyncio.sleep(wait_time)

        raise TokenFetchError(
            f"Failed to fetch token after {max_retries} attempts",
            attempts=max_retries,
            cause=last_error,
        )

    def invalidate(self):
        """Drop the cached token."""
        self._cached_token = None

    @property
    def token_info(self) -> Optional[dict]:
        """Describe the cached token without exposing it."""
        if not self._cached_token:
            return None
        return {
            "token_id": self._cached_token.token_id,
            "is_expired": self._cached_token.is_expired,
            "time_remaining_seconds": self._cached_token.time_remaining,
            "expires_in_original": self._cached_token.expires_in,
        }
