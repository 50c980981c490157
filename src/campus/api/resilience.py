#!/usr/bin/env python3
"""Resilience Patterns for the Campus controller integration.

This module provides the patterns the client and the WLAN workflows use
to survive transient controller failures:
    - Circuit breaker around the HTTP client
    - Graceful degradation (fallback, bounded wait)
    - Ordered batch processing with per-batch concurrency

Example:
    circuit = CircuitBreaker(failure_threshold=5, timeout=60)
    result = await circuit.call(fetch_data)

    results = await process_in_batches(profiles, assign_one, batch_size=5)
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, Sequence, TypeVar

from .exceptions import CircuitOpenError, TimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# ============================================
# Circuit Breaker
# ============================================

class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation, requests pass through
    OPEN = "open"          # Failing, requests rejected immediately
    HALF_OPEN = "half_open"  # Testing if controller recovered


class CircuitBreaker:
    """Circuit breaker to stop hammering a controller that is down.

    State Transitions:
        CLOSED -> OPEN: When failure_count >= failure_threshold
        OPEN -> HALF_OPEN: When timeout expires
        HALF_OPEN -> CLOSED: When success_threshold requests succeed
        HALF_OPEN -> OPEN: When a test request fails

    Example:
        circuit = CircuitBreaker(failure_threshold=5, timeout=60)

        try:
            result = await circuit.call(fetch_data)
        except CircuitOpenError:
            result = None
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: float = 60.0,
        success_threshold: int = 2,
        name: str = "default",
    ):
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.success_threshold = success_threshold
        self.name = name

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == CircuitState.OPEN

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def _should_attempt(self) -> bool:
        if self._state == CircuitState.CLOSED:
            return True

        if self._state == CircuitState.OPEN:
            if self._last_failure_time:
                elapsed = (
                    datetime.now(timezone.utc) - self._last_failure_time
                ).total_seconds()
                if elapsed >= self.timeout:
                    return True
            return False

        return True

    async def call(
        self,
        func: Callable[..., Awaitable[T]],
        *args,
        **kwargs,
    ) -> T:
        """Execute function through the circuit breaker.

        Raises:
            CircuitOpenError: If circuit is open and timeout hasn't passed
            Any exception from func (after updating circuit state)
        """
        async with self._lock:
            if not self._should_attempt():
                reset_at = None
                if self._last_failure_time:
                    reset_at = self._last_failure_time + timedelta(seconds=self.timeout)

                raise CircuitOpenError(
                    f"Circuit breaker '{self.name}' is open",
                    reset_at=reset_at,
                    failure_count=self._failure_count,
                )

            if self._state == CircuitState.OPEN:
                logger.info(f"Circuit '{self.name}' transitioning to HALF_OPEN")
                self._state = CircuitState.HALF_OPEN
                self._success_count = 0

        try:
            result = await func(*args, **kwargs)
            await self._on_success()
            return result

        except Exception as e:
            await self._on_failure(e)
            raise

    async def _on_success(self):
        async with self._lock:
            self._failure_count = 0

            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    logger.info(
                        f"Circuit '{self.name}' closing after "
                        f"{self._success_count} successes"
                    )
                    self._state = CircuitState.CLOSED
                    self._success_count = 0

    async def _on_failure(self, exception: Exception):
        async with self._lock:
            self._failure_count += 1
            self._last_failure_time = datetime.now(timezone.utc)

            if self._state == CircuitState.HALF_OPEN:
                logger.warning(
                    f"Circuit '{self.name}' reopening after test failure: {exception}"
                )
                self._state = CircuitState.OPEN

            elif self._state == CircuitState.CLOSED:
                if self._failure_count >= self.failure_threshold:
                    logger.warning(
                        f"Circuit '{self.name}' opening after "
                        f"{self._failure_count} failures"
                    )
                    self._state = CircuitState.OPEN

    def reset(self):
        """Manually reset the circuit breaker to closed state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time = None
        logger.info(f"Circuit '{self.name}' manually reset")

    def get_status(self) -> dict[str, Any]:
        """Get circuit breaker status for health reporting."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "success_count": self._success_count,
            "failure_threshold": self.failure_threshold,
            "timeout_seconds": self.timeout,
            "last_failure_at": (
                self._last_failure_time.isoformat()
                if self._last_failure_time
                else None
            ),
        }


# ============================================
# Graceful Degradation Helpers
# ============================================

async def with_fallback(
    primary: Callable[..., Awaitable[T]],
    fallback: Callable[..., Awaitable[T]],
    *args,
    log_error: bool = True,
    **kwargs,
) -> T:
    """Try primary function, fall back to fallback on error.

    Both functions receive the same arguments.

    Example:
        results = await with_fallback(
            sync_all_at_once,
            sync_one_by_one,
            profile_ids,
        )
    """
    try:
        return await primary(*args, **kwargs)
    except Exception as e:
        if log_error:
            logger.warning(f"Primary function failed, using fallback: {e}")
        return await fallback(*args, **kwargs)


async def with_timeout(
    func: Callable[..., Awaitable[T]],
    timeout_seconds: Optional[float],
    *args,
    **kwargs,
) -> T:
    """Execute async function with an upper bound on its duration.

    Args:
        func: Async function to execute
        timeout_seconds: Maximum execution time; None or 0 means unbounded
        *args: Arguments for func
        **kwargs: Keyword arguments for func

    Raises:
        TimeoutError: If func does not finish in time
    """
    if not timeout_seconds:
        return await func(*args, **kwargs)

    try:
        return await asyncio.wait_for(
            func(*args, **kwargs),
            timeout=timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        raise TimeoutError(
            f"Operation did not complete within {timeout_seconds}s",
            timeout_seconds=timeout_seconds,
            cause=e,
        ) from e


# ============================================
# Batch Processing
# ============================================

def chunk(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split a sequence into consecutive chunks of at most `size` items."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for i in range(0, len(items), size):
        yield items[i:i + size]


async def process_in_batches(
    items: Sequence[T],
    processor: Callable[[T], Awaitable[R]],
    batch_size: int,
    on_batch_complete: Optional[Callable[[int, list[R]], None]] = None,
) -> list[R]:
    """Process items in sequential batches, concurrently within a batch.

    Batch N+1 starts only after every item of batch N has finished, which
    caps the number of in-flight controller calls at `batch_size`.

    The processor is expected to capture its own failures into its return
    value. An exception escaping it propagates and stops later batches.

    Args:
        items: Items to process
        processor: Async function applied to each item
        batch_size: Maximum number of items processed at once
        on_batch_complete: Optional callback(batch_number, batch_results)

    Returns:
        Results in the same order as input items
    """
    results: list[R] = []
    for batch_number, batch in enumerate(chunk(items, batch_size), start=1):
        batch_results = await asyncio.gather(*(processor(item) for item in batch))
        results.extend(batch_results)
        if on_batch_complete:
            on_batch_complete(batch_number, list(batch_results))
    return results


# ============================================
# Exports
# ============================================

__all__ = [
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitState",
    # Graceful Degradation
    "with_fallback",
    "with_timeout",
    # Batch Processing
    "chunk",
    "process_in_batches",
]
