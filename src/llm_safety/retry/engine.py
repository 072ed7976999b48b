"""
Retry strategy with exponential backoff.

Wraps one fallible async operation. Transient errors are retried with
backoff up to ``max_retries`` times; any other error aborts immediately.
After the last attempt fails, that attempt's error is re-raised unchanged.

The backoff sleep is the only place the safety layer suspends a caller.
Cancellation (asyncio.CancelledError) is never caught: it propagates out of
the operation or the sleep with no further attempts.

Usage:
    strategy = RetryStrategy(RetryPolicy(max_retries=3))
    response = await strategy.execute_with_retry(lambda: client.call(prompt, text), timeout_s=30)
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from llm_safety.llm.exceptions import CompletionTimeoutError
from llm_safety.monitoring.metrics import llm_retries_total
from llm_safety.retry.classifier import is_retryable
from llm_safety.retry.policy import RetryPolicy

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryStrategy:
    """
    Bounded retry loop over a zero-argument coroutine factory.

    The policy is immutable; with_policy() returns a new strategy instead of
    mutating this one, so one instance can be shared by concurrent calls.
    """

    def __init__(self, policy: Optional[RetryPolicy] = None, rng: Optional[random.Random] = None):
        """
        Args:
            policy: Backoff configuration (defaults to RetryPolicy())
            rng: Random source for jitter (tests pass a seeded one)
        """
        self._policy = policy or RetryPolicy()
        self._rng = rng or random.Random()

    def get_policy(self) -> RetryPolicy:
        return self._policy

    def with_policy(self, **overrides) -> "RetryStrategy":
        """New strategy with some policy fields replaced."""
        return RetryStrategy(self._policy.with_changes(**overrides), rng=self._rng)

    def is_retryable(self, error: BaseException) -> bool:
        return is_retryable(error, self._policy.transient_errors)

    def compute_delay_ms(self, attempt: int) -> float:
        """Capped backoff for ``attempt`` (0-based) times 1 + uniform(0, jitter)."""
        base = self._policy.delay_for_attempt(attempt)
        return base * (1 + self._rng.uniform(0, self._policy.jitter_factor))

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        timeout_s: Optional[float] = None,
        operation_name: str = "operation",
    ) -> T:
        """
        Run ``operation`` until it succeeds, fails terminally, or attempts
        run out.

        Args:
            operation: Called once per attempt; must return a fresh awaitable
            timeout_s: Per-attempt timeout. Expiry becomes a (transient)
                CompletionTimeoutError
            operation_name: Label for logs

        Raises:
            Exception: The first non-retryable error, or the last error once
                attempts are exhausted
            asyncio.CancelledError: Propagated untouched
        """
        max_attempts = self._policy.max_attempts

        for attempt in range(max_attempts):
            try:
                if timeout_s is not None:
                    result = await asyncio.wait_for(operation(), timeout=timeout_s)
                else:
                    result = await operation()
            except asyncio.TimeoutError as e:
                error: Exception = CompletionTimeoutError(
                    f"{operation_name} timed out after {timeout_s}s",
                    details={"attempt": attempt + 1, "timeout_s": timeout_s},
                )
                error.__cause__ = e
            except Exception as e:
                error = e
            else:
                if attempt > 0:
                    llm_retries_total.labels(outcome="recovered").inc()
                    logger.info(
                        "Operation recovered after retry",
                        operation=operation_name,
                        attempts=attempt + 1,
                    )
                return result

            if not self.is_retryable(error):
                llm_retries_total.labels(outcome="aborted").inc()
                logger.warning(
                    "Non-retryable error, aborting",
                    operation=operation_name,
                    attempt=attempt + 1,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                raise error

            if attempt + 1 >= max_attempts:
                llm_retries_total.labels(outcome="exhausted").inc()
                logger.warning(
                    "Retry attempts exhausted",
                    operation=operation_name,
                    attempts=max_attempts,
                    error=str(error),
                    error_type=type(error).__name__,
                )
                raise error

            delay_ms = self.compute_delay_ms(attempt)
            llm_retries_total.labels(outcome="retried").inc()
            logger.warning(
                "Transient error, retrying",
                operation=operation_name,
                attempt=attempt + 1,
                max_attempts=max_attempts,
                delay_ms=round(delay_ms),
                error=str(error),
                error_type=type(error).__name__,
            )
            await asyncio.sleep(delay_ms / 1000.0)

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError("unreachable")
