"""
Retry policy.

Stateless backoff configuration, reusable across calls.
"""

from dataclasses import dataclass, field, replace

from llm_safety.config import Settings

DEFAULT_TRANSIENT_ERRORS = (
    "RATE_LIMIT_EXCEEDED",
    "SERVICE_UNAVAILABLE",
    "TIMEOUT",
    "GATEWAY_TIMEOUT",
    "CONNECTION_ERROR",
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff with multiplicative jitter.

    Attributes:
        max_retries: Retries after the first attempt (attempts = max_retries + 1)
        initial_delay_ms: Delay before the first retry
        max_delay_ms: Delay ceiling (applied before jitter)
        backoff_multiplier: Growth factor per attempt
        jitter_factor: Upper bound of the uniform jitter fraction
        transient_errors: Error tags considered transient
    """

    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 60000
    backoff_multiplier: float = 2.0
    jitter_factor: float = 0.1
    transient_errors: tuple[str, ...] = field(default=DEFAULT_TRANSIENT_ERRORS)

    def __post_init__(self) -> None:
        """Validate policy invariants."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError("max_delay_ms must be >= initial_delay_ms")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if not 0.0 <= self.jitter_factor <= 1.0:
            raise ValueError("jitter_factor must be between 0 and 1")
        # Lists from settings/overrides are frozen into a tuple
        object.__setattr__(self, "transient_errors", tuple(self.transient_errors))

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for_attempt(self, attempt: int) -> float:
        """
        Un-jittered delay in ms after the failure of attempt ``attempt``
        (0-based): min(initial * multiplier^attempt, max).
        """
        return min(self.initial_delay_ms * self.backoff_multiplier**attempt, self.max_delay_ms)

    def with_changes(self, **overrides) -> "RetryPolicy":
        return replace(self, **overrides)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.RETRY_MAX_RETRIES,
            initial_delay_ms=settings.RETRY_INITIAL_DELAY_MS,
            max_delay_ms=settings.RETRY_MAX_DELAY_MS,
            backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
            jitter_factor=settings.RETRY_JITTER_FACTOR,
            transient_errors=tuple(settings.RETRY_TRANSIENT_ERRORS),
        )
