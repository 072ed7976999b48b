"""
Retry layer: backoff retry strategy, error classifier and circuit breaker.

Components:
- RetryPolicy: Immutable backoff configuration
- RetryStrategy: Bounded retry loop with jittered exponential backoff
- is_retryable: Transient/terminal error classifier
- CircuitBreaker: CLOSED/OPEN/HALF_OPEN failure state machine
- CircuitOpenError: Rejection raised by an open breaker
"""

from llm_safety.retry.circuit_breaker import CircuitBreaker
from llm_safety.retry.classifier import is_retryable, is_retryable_status
from llm_safety.retry.engine import RetryStrategy
from llm_safety.retry.exceptions import CircuitOpenError
from llm_safety.retry.policy import DEFAULT_TRANSIENT_ERRORS, RetryPolicy

__all__ = [
    "RetryPolicy",
    "RetryStrategy",
    "DEFAULT_TRANSIENT_ERRORS",
    "is_retryable",
    "is_retryable_status",
    "CircuitBreaker",
    "CircuitOpenError",
]
