"""
Per-call outcome models: circuit breaker state snapshots and fallback outcomes.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from llm_safety.models.enums import CircuitState, FallbackTier


class CircuitBreakerState(BaseModel):
    """
    Snapshot of a breaker's state.

    The live state is owned by one CircuitBreaker instance; this model is the
    copy handed out by get_state().
    """

    status: CircuitState = CircuitState.CLOSED
    failure_count: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0, description="Only meaningful in HALF_OPEN")
    last_failure_time: Optional[datetime] = None


class FallbackOutcome(BaseModel):
    """
    Result of running the fallback chain for one call.

    tier is None when every tier failed or was unconfigured.
    """

    tier: Optional[FallbackTier] = None
    result: Any = None
    original_error: str = ""
    tier_errors: dict[str, str] = Field(
        default_factory=dict, description="Tier value -> failure reason"
    )
    quality: Optional[str] = Field(default=None, description="high | medium | low")

    @property
    def success(self) -> bool:
        return self.tier is not None
