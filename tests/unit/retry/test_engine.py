"""
Unit tests for RetryStrategy.

The backoff sleep is patched out (see the no_sleep fixture), so delays are
asserted through the AsyncMock's calls rather than wall-clock time. Operations that
must hang wait on an Event, since asyncio.sleep itself is patched.
"""

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from llm_safety.llm.exceptions import (
    CompletionAuthenticationError,
    CompletionServiceUnavailableError,
    CompletionTimeoutError,
)
from llm_safety.retry.engine import RetryStrategy
from llm_safety.retry.exceptions import CircuitOpenError
from llm_safety.retry.policy import RetryPolicy

POLICY = RetryPolicy(max_retries=3, initial_delay_ms=100, max_delay_ms=1000, jitter_factor=0.0)


class TestExecuteWithRetry:
    @pytest.mark.asyncio
    async def test_first_attempt_success(self, no_sleep):
        """Test a first-attempt success does not sleep."""
        operation = AsyncMock(return_value="ok")

        result = await RetryStrategy(POLICY).execute_with_retry(operation)

        assert result == "ok"
        operation.assert_awaited_once()
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recovers_after_transient_errors(self, no_sleep):
        """Test transient errors are retried until success."""
        operation = AsyncMock(
            side_effect=[CompletionServiceUnavailableError("down"), CompletionServiceUnavailableError("down"), "ok"]
        )

        result = await RetryStrategy(POLICY).execute_with_retry(operation)

        assert result == "ok"
        assert operation.await_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [0.1, 0.2]

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(self, no_sleep):
        """Test the last error is re-raised once attempts run out."""
        errors = [CompletionServiceUnavailableError(f"down {n}") for n in range(4)]
        operation = AsyncMock(side_effect=errors)

        with pytest.raises(CompletionServiceUnavailableError) as exc_info:
            await RetryStrategy(POLICY).execute_with_retry(operation)

        assert exc_info.value is errors[-1]
        assert operation.await_count == POLICY.max_attempts
        assert no_sleep.await_count == POLICY.max_retries

    @pytest.mark.asyncio
    async def test_non_retryable_aborts_immediately(self, no_sleep):
        """Test a terminal error is raised without retry."""
        operation = AsyncMock(side_effect=CompletionAuthenticationError("bad key"))

        with pytest.raises(CompletionAuthenticationError):
            await RetryStrategy(POLICY).execute_with_retry(operation)

        operation.assert_awaited_once()
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_open_breaker_not_retried(self, no_sleep):
        """Test CircuitOpenError is not retried."""
        operation = AsyncMock(side_effect=CircuitOpenError("completion", retry_after_s=30))

        with pytest.raises(CircuitOpenError):
            await RetryStrategy(POLICY).execute_with_retry(operation)

        operation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_zero_retries_single_attempt(self, no_sleep):
        """Test max_retries=0 makes a single attempt."""
        operation = AsyncMock(side_effect=CompletionServiceUnavailableError("down"))

        with pytest.raises(CompletionServiceUnavailableError):
            await RetryStrategy(POLICY.with_changes(max_retries=0)).execute_with_retry(operation)

        operation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_becomes_transient_error(self, no_sleep):
        """Test a per-attempt timeout is retried as CompletionTimeoutError."""
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            if calls == 1:
                await asyncio.Event().wait()
            return "ok"

        result = await RetryStrategy(POLICY).execute_with_retry(operation, timeout_s=0.01)

        assert result == "ok"
        assert calls == 2

    @pytest.mark.asyncio
    async def test_timeout_exhaustion_raises_completion_timeout(self, no_sleep):
        """Test repeated timeouts end in CompletionTimeoutError."""
        async def operation():
            await asyncio.Event().wait()

        with pytest.raises(CompletionTimeoutError):
            await RetryStrategy(POLICY.with_changes(max_retries=1)).execute_with_retry(operation, timeout_s=0.01)

    @pytest.mark.asyncio
    async def test_cancellation_propagates_without_retry(self, no_sleep):
        """Test cancellation propagates with no further attempts."""
        operation = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await RetryStrategy(POLICY).execute_with_retry(operation)

        operation.assert_awaited_once()
        no_sleep.assert_not_awaited()


class TestDelays:
    def test_jitter_within_bounds(self):
        """Test jittered delays stay within the jitter factor."""
        strategy = RetryStrategy(RetryPolicy(initial_delay_ms=1000, jitter_factor=0.1), rng=random.Random(7))

        for _ in range(50):
            delay = strategy.compute_delay_ms(0)
            assert 1000 <= delay <= 1100

    def test_with_policy_does_not_mutate(self):
        """Test with_policy returns a new strategy."""
        strategy = RetryStrategy(POLICY)

        changed = strategy.with_policy(max_retries=1)

        assert changed.get_policy().max_retries == 1
        assert strategy.get_policy().max_retries == 3
