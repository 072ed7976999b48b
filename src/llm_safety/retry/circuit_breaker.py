"""
Circuit breaker for the completion call.

State machine:
    CLOSED --failure_threshold failures--> OPEN
    OPEN --reset_timeout since last failure, next call--> HALF_OPEN (trial call runs)
    HALF_OPEN --success_threshold successes--> CLOSED
    HALF_OPEN --any failure--> OPEN

While OPEN, calls are rejected with CircuitOpenError without invoking the
wrapped operation. The lock serialises state mutation only; it is never held
across an await.
"""

import asyncio
import threading
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from llm_safety.models.enums import CircuitState
from llm_safety.models.outcomes import CircuitBreakerState
from llm_safety.monitoring.metrics import circuit_breaker_state
from llm_safety.retry.exceptions import CircuitOpenError

logger = structlog.get_logger(__name__)

T = TypeVar("T")
StateListener = Callable[[str, CircuitState, CircuitState], None]


class CircuitBreaker:
    """
    Failure-count circuit breaker owned by one protected operation class.
    """

    def __init__(
        self,
        name: str = "completion",
        failure_threshold: int = 5,
        success_threshold: int = 2,
        reset_timeout_ms: int = 60000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Label for logs and the state gauge
            failure_threshold: Failures that open the breaker
            success_threshold: HALF_OPEN successes that close it
            reset_timeout_ms: Cooldown after the last failure before a trial call
            clock: Monotonic seconds source (tests inject a fake clock)
        """
        if failure_threshold < 1 or success_threshold < 1:
            raise ValueError("thresholds must be >= 1")
        if reset_timeout_ms < 0:
            raise ValueError("reset_timeout_ms must be >= 0")

        self.name = name
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.reset_timeout_ms = reset_timeout_ms
        self._clock = clock

        self._status = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_at: Optional[float] = None
        self._last_failure_time: Optional[datetime] = None

        self._listeners: list[StateListener] = []
        self._lock = threading.Lock()

        circuit_breaker_state.labels(name=name).set(CircuitState.get_ordinal(CircuitState.CLOSED))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` through the breaker.

        Raises:
            CircuitOpenError: Breaker is OPEN and the cooldown has not elapsed
            Exception: Whatever the operation raised (recorded as a failure)
            asyncio.CancelledError: Operation cancelled mid-flight, e.g. by an
                enclosing timeout (recorded as a failure)
        """
        self._admit()
        try:
            result = await operation()
        except (Exception, asyncio.CancelledError):
            self._record_failure()
            raise
        self._record_success()
        return result

    def _admit(self) -> None:
        transition = None
        with self._lock:
            if self._status == CircuitState.OPEN:
                remaining_s = self._remaining_cooldown_s()
                if remaining_s > 0:
                    logger.debug("Circuit open, rejecting call", breaker=self.name, retry_after_s=remaining_s)
                    raise CircuitOpenError(
                        self.name,
                        retry_after_s=remaining_s,
                        details={"failure_count": self._failure_count},
                    )
                self._success_count = 0
                transition = self._set_status(CircuitState.HALF_OPEN)
        self._notify(transition)

    def _record_success(self) -> None:
        transition = None
        with self._lock:
            self._failure_count = 0
            if self._status == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._success_count = 0
                    transition = self._set_status(CircuitState.CLOSED)
        self._notify(transition)

    def _record_failure(self) -> None:
        transition = None
        with self._lock:
            self._failure_count += 1
            self._last_failure_at = self._clock()
            self._last_failure_time = datetime.now(timezone.utc)

            if self._status == CircuitState.HALF_OPEN:
                self._success_count = 0
                transition = self._set_status(CircuitState.OPEN)
            elif self._status == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
                transition = self._set_status(CircuitState.OPEN)
        self._notify(transition)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def get_state(self) -> CircuitBreakerState:
        """Copy of the current state."""
        with self._lock:
            return CircuitBreakerState(
                status=self._status,
                failure_count=self._failure_count,
                success_count=self._success_count,
                last_failure_time=self._last_failure_time,
            )

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._status == CircuitState.OPEN

    def reset(self) -> None:
        """Force CLOSED and clear counters."""
        with self._lock:
            self._failure_count = 0
            self._success_count = 0
            self._last_failure_at = None
            self._last_failure_time = None
            transition = self._set_status(CircuitState.CLOSED)
        logger.info("Circuit breaker reset", breaker=self.name)
        self._notify(transition)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state-change listener: listener(name, old, new).

        Returns:
            Callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remaining_cooldown_s(self) -> float:
        if self._last_failure_at is None:
            return 0.0
        elapsed_s = self._clock() - self._last_failure_at
        return self.reset_timeout_ms / 1000.0 - elapsed_s

    def _set_status(self, new: CircuitState) -> Optional[tuple[CircuitState, CircuitState]]:
        """Caller holds the lock. Returns (old, new) when the state changed."""
        old = self._status
        if old == new:
            return None
        self._status = new
        circuit_breaker_state.labels(name=self.name).set(CircuitState.get_ordinal(new))
        log = logger.warning if new == CircuitState.OPEN else logger.info
        log(
            "Circuit breaker state change",
            breaker=self.name,
            from_state=old.value,
            to_state=new.value,
            failure_count=self._failure_count,
        )
        return old, new

    def _notify(self, transition: Optional[tuple[CircuitState, CircuitState]]) -> None:
        if transition is None:
            return
        with self._lock:
            listeners = list(self._listeners)
        old, new = transition
        for listener in listeners:
            try:
                listener(self.name, old, new)
            except Exception as e:
                logger.error(
                    "Circuit breaker listener failed",
                    breaker=self.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    def __repr__(self) -> str:
        return f"CircuitBreaker(name={self.name!r}, status={self._status.value})"
