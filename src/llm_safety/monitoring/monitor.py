"""
In-process call monitor.

Keeps an append-only log of MetricsSnapshot rows, capped to the most recent
``window`` entries (oldest evicted first), and derives aggregate metrics,
trends and alerts on read. Nothing runs on a timer.

Every recorded outcome is also exported to the Prometheus collectors in
llm_safety.monitoring.metrics.
"""

import math
import threading
from collections import deque
from typing import Any, Callable, Iterable, Optional, Protocol

import structlog

from llm_safety.models.enums import Trend
from llm_safety.models.monitoring_models import (
    HealthStatus,
    LLMMetrics,
    MetricAlerts,
    MetricsSnapshot,
    MonitorThresholds,
)
from llm_safety.monitoring.metrics import (
    hallucinations_total,
    llm_calls_total,
    llm_latency_seconds,
    llm_tokens_total,
)

logger = structlog.get_logger(__name__)

STABLE_CHANGE = 0.05


class BreakerLike(Protocol):
    name: str

    @property
    def is_open(self) -> bool: ...


def percentile(sorted_values: list[float], q: float) -> float:
    """Value at index floor(n * q) of an ascending list (0 when empty)."""
    if not sorted_values:
        return 0.0
    index = min(math.floor(len(sorted_values) * q), len(sorted_values) - 1)
    return sorted_values[index]


def classify_trend(recent_mean: float, prior_mean: float, maximize: bool) -> Trend:
    """
    Compare two window means.

    A relative change under 5% is stable. With a zero prior mean the trend is
    stable when the recent mean is also zero, otherwise it follows the sign
    of the change.
    """
    if prior_mean == 0:
        if recent_mean == 0:
            return Trend.STABLE
        change = math.copysign(1.0, recent_mean)
    else:
        change = (recent_mean - prior_mean) / abs(prior_mean)
        if abs(change) < STABLE_CHANGE:
            return Trend.STABLE

    improving = change > 0 if maximize else change < 0
    return Trend.IMPROVING if improving else Trend.DEGRADING


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


class LLMMonitor:
    """
    Rolling metrics over safety-call outcomes.

    Thread-safe: one lock guards the snapshot log. Aggregation works on a
    copy taken under the lock.
    """

    def __init__(
        self,
        enabled: bool = True,
        window: int = 1000,
        trend_window: int = 100,
        thresholds: Optional[MonitorThresholds] = None,
        export_prometheus: bool = True,
    ):
        if window < 1 or trend_window < 1:
            raise ValueError("window sizes must be >= 1")
        self.enabled = enabled
        self.window = window
        self.trend_window = trend_window
        self.thresholds = thresholds or MonitorThresholds()
        self.export_prometheus = export_prometheus

        self._snapshots: deque[MetricsSnapshot] = deque(maxlen=window)
        self._breakers: list[BreakerLike] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_success(
        self,
        prompt_id: str,
        latency_ms: float,
        tokens: int = 0,
        cost: float = 0.0,
        hallucinations: int = 0,
    ) -> None:
        self._record(
            MetricsSnapshot(
                prompt_id=prompt_id,
                success=True,
                latency_ms=latency_ms,
                tokens_used=tokens,
                cost=cost,
                hallucinations=hallucinations,
            ),
            outcome="success",
        )

    def record_fallback(
        self,
        prompt_id: str,
        reason: str,
        tier: str,
        latency_ms: float = 0.0,
        validation_failed: bool = False,
        hallucinations: int = 0,
        tier_errors: Optional[dict[str, str]] = None,
    ) -> None:
        """A call answered by the fallback chain counts as a success."""
        logger.warning("Fallback activated", prompt_id=prompt_id, reason=reason, tier=tier)
        self._record(
            MetricsSnapshot(
                prompt_id=prompt_id,
                success=True,
                latency_ms=latency_ms,
                fallback_used=True,
                fallback_tier=tier,
                hallucinations=hallucinations,
                validation_failed=validation_failed,
                error=reason,
                tier_errors=tier_errors or {},
            ),
            outcome="fallback",
        )

    def record_failure(
        self,
        prompt_id: str,
        error: str,
        latency_ms: float = 0.0,
        validation_failed: bool = False,
        tier_errors: Optional[dict[str, str]] = None,
    ) -> None:
        self._record(
            MetricsSnapshot(
                prompt_id=prompt_id,
                success=False,
                latency_ms=latency_ms,
                validation_failed=validation_failed,
                error=error,
                tier_errors=tier_errors or {},
            ),
            outcome="failure",
        )

    def _record(self, snapshot: MetricsSnapshot, outcome: str) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._snapshots.append(snapshot)

        if self.export_prometheus:
            llm_calls_total.labels(prompt_id=snapshot.prompt_id, outcome=outcome).inc()
            llm_latency_seconds.labels(prompt_id=snapshot.prompt_id, outcome=outcome).observe(
                snapshot.latency_ms / 1000.0
            )
            if snapshot.tokens_used:
                llm_tokens_total.labels(prompt_id=snapshot.prompt_id).inc(snapshot.tokens_used)
            if snapshot.hallucinations:
                hallucinations_total.labels(prompt_id=snapshot.prompt_id).inc(snapshot.hallucinations)

    def attach_breaker(self, breaker: BreakerLike) -> None:
        """Feed a breaker's state into the circuit_breaker_open alert."""
        with self._lock:
            self._breakers.append(breaker)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def get_metrics(self, prompt_id: Optional[str] = None) -> LLMMetrics:
        with self._lock:
            snapshots = [s for s in self._snapshots if prompt_id is None or s.prompt_id == prompt_id]
            breakers = list(self._breakers)

        breaker_open = any(b.is_open for b in breakers)
        if not snapshots:
            return LLMMetrics(alerts=MetricAlerts(circuit_breaker_open=breaker_open))

        count = len(snapshots)
        success_rate = sum(1 for s in snapshots if s.success) / count
        hallucination_rate = sum(s.hallucinations for s in snapshots) / count * 1000
        validation_failure_rate = sum(1 for s in snapshots if s.validation_failed) / count
        fallback_rate = sum(1 for s in snapshots if s.fallback_used) / count

        latencies = sorted(s.latency_ms for s in snapshots)
        average_latency = _mean(latencies)
        total_cost = sum(s.cost for s in snapshots)

        recent = snapshots[-self.trend_window:]
        prior = snapshots[-2 * self.trend_window:-self.trend_window]

        success_trend = self._trend(recent, prior, lambda s: 1.0 if s.success else 0.0, maximize=True)
        latency_trend = self._trend(recent, prior, lambda s: s.latency_ms, maximize=False)
        cost_trend = self._trend(recent, prior, lambda s: s.cost, maximize=False)

        alerts = MetricAlerts(
            success_rate_dropped=success_rate < self.thresholds.min_success_rate,
            hallucination_rate_increased=hallucination_rate > self.thresholds.max_hallucination_rate,
            latency_increased=average_latency > self.thresholds.max_latency_ms,
            cost_increased=cost_trend == Trend.DEGRADING,
            circuit_breaker_open=breaker_open,
        )

        return LLMMetrics(
            call_count=count,
            success_rate=success_rate,
            hallucination_rate=hallucination_rate,
            validation_failure_rate=validation_failure_rate,
            fallback_rate=fallback_rate,
            average_latency_ms=average_latency,
            p95_latency_ms=percentile(latencies, 0.95),
            p99_latency_ms=percentile(latencies, 0.99),
            max_latency_ms=latencies[-1],
            cost_per_call=total_cost / count,
            total_tokens_used=sum(s.tokens_used for s in snapshots),
            total_cost=total_cost,
            success_rate_trend=success_trend,
            latency_trend=latency_trend,
            cost_trend=cost_trend,
            alerts=alerts,
        )

    @staticmethod
    def _trend(
        recent: list[MetricsSnapshot],
        prior: list[MetricsSnapshot],
        value: Callable[[MetricsSnapshot], float],
        maximize: bool,
    ) -> Trend:
        if not recent or not prior:
            return Trend.STABLE
        return classify_trend(_mean(map(value, recent)), _mean(map(value, prior)), maximize)

    def get_metrics_per_prompt(self) -> dict[str, LLMMetrics]:
        with self._lock:
            prompt_ids = list(dict.fromkeys(s.prompt_id for s in self._snapshots))
        return {prompt_id: self.get_metrics(prompt_id) for prompt_id in prompt_ids}

    def check_health(self) -> HealthStatus:
        metrics = self.get_metrics()
        alerts = metrics.alerts
        issues: list[str] = []

        if alerts.success_rate_dropped:
            issues.append(f"Success rate dropped to {metrics.success_rate * 100:.1f}%")
        if alerts.hallucination_rate_increased:
            issues.append(
                f"Hallucination rate increased to {metrics.hallucination_rate:.2f} per 1000 calls"
            )
        if alerts.latency_increased:
            issues.append(f"Average latency increased to {metrics.average_latency_ms:.0f}ms")
        if alerts.cost_increased:
            issues.append("Cost per call increasing")
        if alerts.circuit_breaker_open:
            issues.append("Circuit breaker open")

        return HealthStatus(healthy=not issues, issues=issues)

    def export(self) -> dict[str, Any]:
        """Snapshots plus aggregate metrics, JSON-compatible."""
        with self._lock:
            snapshots = [s.model_dump(mode="json") for s in self._snapshots]
        return {"snapshots": snapshots, "metrics": self.get_metrics().model_dump(mode="json")}

    def clear(self) -> None:
        with self._lock:
            self._snapshots.clear()

    @property
    def snapshot_count(self) -> int:
        with self._lock:
            return len(self._snapshots)
