"""
Retry-layer exceptions.

CircuitOpenError is raised by a breaker that rejects a call without invoking
the wrapped operation. It is never retried: the retry classifier honours
``retryable = False``, so an open breaker sends the call straight to the
fallback chain.
"""

from typing import Any, Optional


class CircuitOpenError(Exception):
    """
    Service unavailable, retry after T.

    Attributes:
        breaker_name: Name of the rejecting breaker
        retry_after_s: Seconds until the breaker admits a trial call
    """

    code = "CIRCUIT_OPEN"
    retryable = False

    def __init__(
        self,
        breaker_name: str,
        retry_after_s: float,
        details: Optional[dict[str, Any]] = None,
    ):
        self.breaker_name = breaker_name
        self.retry_after_s = max(retry_after_s, 0.0)
        self.message = (
            f"Circuit breaker '{breaker_name}' is open: service unavailable, "
            f"retry after {self.retry_after_s:.1f}s"
        )
        self.details = details or {}
        super().__init__(self.message)
