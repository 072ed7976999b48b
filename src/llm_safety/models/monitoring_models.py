"""
Monitoring data models.

MetricsSnapshot is one recorded outcome (success, fallback or failure).
LLMMetrics is the aggregate derived from a window of snapshots on read.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from llm_safety.models.enums import Trend


class MetricsSnapshot(BaseModel):
    """One row per completed safety call."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    prompt_id: str
    success: bool
    latency_ms: float = Field(default=0.0, ge=0)
    tokens_used: int = Field(default=0, ge=0)
    cost: float = Field(default=0.0, ge=0)
    fallback_used: bool = False
    fallback_tier: Optional[str] = None
    hallucinations: int = Field(default=0, ge=0)
    validation_failed: bool = False
    error: Optional[str] = Field(default=None, description="Reason for fallback/failure")
    tier_errors: dict[str, str] = Field(
        default_factory=dict, description="Per-tier failure reasons of the fallback chain"
    )


class MonitorThresholds(BaseModel):
    """Alert thresholds for the monitor."""

    min_success_rate: float = Field(default=0.9, ge=0.0, le=1.0)
    max_hallucination_rate: float = Field(default=20.0, ge=0.0, description="Per 1000 calls")
    max_latency_ms: float = Field(default=10000.0, ge=0.0)


class MetricAlerts(BaseModel):
    """Alert flags derived from the aggregate metrics."""

    success_rate_dropped: bool = False
    hallucination_rate_increased: bool = False
    latency_increased: bool = False
    cost_increased: bool = False
    circuit_breaker_open: bool = False

    def any(self) -> bool:
        return any(self.model_dump().values())


class LLMMetrics(BaseModel):
    """Aggregate metrics over the snapshot window."""

    call_count: int = 0

    # Success rates
    success_rate: float = 0.0
    hallucination_rate: float = Field(default=0.0, description="Per 1000 calls")
    validation_failure_rate: float = 0.0
    fallback_rate: float = 0.0

    # Performance
    average_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    p99_latency_ms: float = 0.0
    max_latency_ms: float = 0.0

    # Cost
    cost_per_call: float = 0.0
    total_tokens_used: int = 0
    total_cost: float = 0.0

    # Trends
    success_rate_trend: Trend = Trend.STABLE
    latency_trend: Trend = Trend.STABLE
    cost_trend: Trend = Trend.STABLE

    alerts: MetricAlerts = Field(default_factory=MetricAlerts)


class HealthStatus(BaseModel):
    """Alerts reduced to a boolean plus a human-readable issue list."""

    healthy: bool
    issues: list[str] = Field(default_factory=list)
