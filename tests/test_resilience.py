#!/usr/bin/env python3
"""Tests for resilience patterns.

Tests cover:
    - Circuit breaker state transitions (CLOSED -> OPEN -> HALF_OPEN -> CLOSED)
    - Fallback and bounded-wait helpers
    - Ordered batch processing with per-batch concurrency
"""
import asyncio

import pytest

from campus.api.exceptions import CircuitOpenError, ServerError, TimeoutError
from campus.api.resilience import (
    CircuitBreaker,
    CircuitState,
    chunk,
    process_in_batches,
    with_fallback,
    with_timeout,
)


async def always_fails():
    raise ServerError("fail", status_code=500)


# ============================================
# Circuit Breaker State Transition Tests
# ============================================

class TestCircuitBreaker:
    """Test circuit breaker state machine transitions."""

    def test_initial_state_is_closed(self):
        circuit = CircuitBreaker(failure_threshold=3)

        assert circuit.state == CircuitState.CLOSED
        assert not circuit.is_open
        assert circuit.failure_count == 0

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self):
        circuit = CircuitBreaker(failure_threshold=3, timeout=60.0)

        for i in range(2):
            with pytest.raises(ServerError):
                await circuit.call(always_fails)
            assert circuit.state == CircuitState.CLOSED
            assert circuit.failure_count == i + 1

        with pytest.raises(ServerError):
            await circuit.call(always_fails)

        assert circuit.is_open

    @pytest.mark.asyncio
    async def test_open_rejects_without_calling(self):
        circuit = CircuitBreaker(failure_threshold=1, timeout=60.0)
        calls = 0

        async def tracked():
            nonlocal calls
            calls += 1
            raise ServerError("fail", status_code=500)

        with pytest.raises(ServerError):
            await circuit.call(tracked)
        with pytest.raises(CircuitOpenError) as exc_info:
            await circuit.call(tracked)

        assert calls == 1
        assert exc_info.value.details["failure_count"] == 1

    @pytest.mark.asyncio
    async def test_half_open_closes_after_successes(self):
        circuit = CircuitBreaker(failure_threshold=1, timeout=0.1, success_threshold=2)

        async def ok():
            return "ok"

        with pytest.raises(ServerError):
            await circuit.call(always_fails)
        await asyncio.sleep(0.15)

        assert await circuit.call(ok) == "ok"
        assert circuit.state == CircuitState.HALF_OPEN
        assert await circuit.call(ok) == "ok"
        assert circuit.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_reopens_on_failure(self):
        circuit = CircuitBreaker(failure_threshold=1, timeout=0.1)

        with pytest.raises(ServerError):
            await circuit.call(always_fails)
        await asyncio.sleep(0.15)
        with pytest.raises(ServerError):
            await circuit.call(always_fails)

        assert circuit.state == CircuitState.OPEN

    def test_manual_reset(self):
        circuit = CircuitBreaker(failure_threshold=1)
        circuit._state = CircuitState.OPEN
        circuit._failure_count = 10

        circuit.reset()

        assert circuit.state == CircuitState.CLOSED
        assert circuit.get_status()["failure_count"] == 0


# ============================================
# Graceful Degradation Tests
# ============================================

class TestWithFallback:
    @pytest.mark.asyncio
    async def test_primary_result(self):
        async def primary(x):
            return x * 2

        async def fallback(x):
            return -1

        assert await with_fallback(primary, fallback, 4) == 8

    @pytest.mark.asyncio
    async def test_fallback_gets_same_arguments(self):
        seen = []

        async def primary(ids, names):
            raise ServerError("batch rejected", status_code=500)

        async def fallback(ids, names):
            seen.append((ids, names))
            return "fallback"

        result = await with_fallback(primary, fallback, ["p1"], {"p1": "Lobby"})

        assert result == "fallback"
        assert seen == [(["p1"], {"p1": "Lobby"})]

    @pytest.mark.asyncio
    async def test_fallback_error_propagates(self):
        async def fallback():
            raise ValueError("also broken")

        with pytest.raises(ValueError):
            await with_fallback(always_fails, fallback)


class TestWithTimeout:
    @pytest.mark.asyncio
    async def test_completes_in_time(self):
        async def quick(value):
            return value

        assert await with_timeout(quick, 1.0, "done") == "done"

    @pytest.mark.asyncio
    async def test_raises_timeout_error(self):
        async def slow():
            await asyncio.sleep(1)

        with pytest.raises(TimeoutError) as exc_info:
            await with_timeout(slow, 0.05)

        assert exc_info.value.code == "TIMEOUT_ERROR"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [None, 0])
    async def test_unbounded(self, limit):
        async def slowish():
            await asyncio.sleep(0.01)
            return "done"

        assert await with_timeout(slowish, limit) == "done"


# ============================================
# Batch Processing Tests
# ============================================

class TestChunk:
    def test_chunks(self):
        assert list(chunk([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert list(chunk([], 3)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunk([1], 0))


class TestProcessInBatches:
    @pytest.mark.asyncio
    async def test_results_keep_input_order(self):
        async def slower_for_small(n):
            await asyncio.sleep(0.01 * (5 - n))
            return n * 10

        results = await process_in_batches([1, 2, 3, 4], slower_for_small, batch_size=4)

        assert results == [10, 20, 30, 40]

    @pytest.mark.asyncio
    async def test_batches_run_one_after_another(self):
        in_flight = 0
        peak = []

        async def track(n):
            nonlocal in_flight
            in_flight += 1
            peak.append(in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return n

        await process_in_batches(list(range(7)), track, batch_size=3)

        assert peak == [1, 2, 3, 1, 2, 3, 1]

    @pytest.mark.asyncio
    async def test_batch_callback(self):
        batches = []

        async def identity(n):
            return n

        await process_in_batches(
            [1, 2, 3, 4, 5],
            identity,
            batch_size=2,
            on_batch_complete=lambda number, results: batches.append((number, results)),
        )

        assert batches == [(1, [1, 2]), (2, [3, 4]), (3, [5])]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        async def never(n):
            raise AssertionError("should not be called")

        assert await process_in_batches([], never, batch_size=5) == []
