"""
Unit tests for LLMMonitor aggregation, trends and alerts.
"""

from unittest.mock import MagicMock

import pytest

from llm_safety.models.enums import Trend
from llm_safety.models.monitoring_models import MonitorThresholds
from llm_safety.monitoring.monitor import LLMMonitor, classify_trend, percentile


@pytest.fixture
def monitor() -> LLMMonitor:
    return LLMMonitor(export_prometheus=False)


class TestClassifyTrend:
    def test_latency_halved_is_improving(self):
        """Test lower latency is an improving trend."""
        assert classify_trend(500, 1000, maximize=False) == Trend.IMPROVING

    def test_latency_doubled_is_degrading(self):
        """Test higher latency is a degrading trend."""
        assert classify_trend(2000, 1000, maximize=False) == Trend.DEGRADING

    @pytest.mark.parametrize("recent", [960, 1040, 1000])
    def test_small_change_is_stable(self, recent):
        """Test changes under 5% are stable."""
        assert classify_trend(recent, 1000, maximize=False) == Trend.STABLE

    def test_success_rate_is_maximized(self):
        """Test a higher success rate is improving."""
        assert classify_trend(0.95, 0.8, maximize=True) == Trend.IMPROVING
        assert classify_trend(0.5, 0.8, maximize=True) == Trend.DEGRADING

    def test_zero_prior(self):
        """Test trends against a zero prior mean."""
        assert classify_trend(0, 0, maximize=False) == Trend.STABLE
        assert classify_trend(0.01, 0, maximize=False) == Trend.DEGRADING
        assert classify_trend(0.01, 0, maximize=True) == Trend.IMPROVING


def test_percentile():
    """Test the floor(n * q) percentile rule."""
    values = sorted(float(n) for n in range(1, 101))

    assert percentile(values, 0.95) == 96.0
    assert percentile(values, 0.99) == 100.0
    assert percentile([], 0.95) == 0.0
    assert percentile([7.0], 0.99) == 7.0


class TestLLMMonitor:
    def test_empty_metrics(self, monitor):
        """Test metrics with no snapshots are zero."""
        metrics = monitor.get_metrics()

        assert metrics.call_count == 0
        assert metrics.success_rate == 0.0

    def test_aggregates(self, monitor):
        """Test rates, latencies, tokens and cost are aggregated."""
        monitor.record_success("p", latency_ms=100, tokens=50, cost=0.01, hallucinations=1)
        monitor.record_success("p", latency_ms=300, tokens=150, cost=0.03)
        monitor.record_fallback("p", reason="timeout", tier="tier3", latency_ms=200, validation_failed=True)
        monitor.record_failure("p", error="exhausted", latency_ms=400)

        metrics = monitor.get_metrics()

        assert metrics.call_count == 4
        assert metrics.success_rate == 0.75
        assert metrics.fallback_rate == 0.25
        assert metrics.validation_failure_rate == 0.25
        assert metrics.hallucination_rate == 250.0
        assert metrics.average_latency_ms == 250.0
        assert metrics.max_latency_ms == 400
        assert metrics.total_tokens_used == 200
        assert metrics.total_cost == pytest.approx(0.04)
        assert metrics.cost_per_call == pytest.approx(0.01)

    def test_latency_trend_over_windows(self):
        """Test the recent window is compared with the prior window."""
        monitor = LLMMonitor(trend_window=100, export_prometheus=False)
        for _ in range(100):
            monitor.record_success("p", latency_ms=1000)
        for _ in range(100):
            monitor.record_success("p", latency_ms=500)

        metrics = monitor.get_metrics()

        assert metrics.latency_trend == Trend.IMPROVING
        assert metrics.success_rate_trend == Trend.STABLE

    def test_trend_stable_without_prior_window(self, monitor):
        """Test trends are stable until a prior window exists."""
        monitor.record_success("p", latency_ms=100)

        assert monitor.get_metrics().latency_trend == Trend.STABLE

    def test_cost_trend_raises_alert(self):
        """Test a rising cost trend raises the cost alert."""
        monitor = LLMMonitor(trend_window=2, export_prometheus=False)
        for cost in (0.01, 0.01, 0.05, 0.05):
            monitor.record_success("p", latency_ms=10, cost=cost)

        metrics = monitor.get_metrics()

        assert metrics.cost_trend == Trend.DEGRADING
        assert metrics.alerts.cost_increased

    def test_threshold_alerts(self):
        """Test success, hallucination and latency thresholds."""
        monitor = LLMMonitor(
            thresholds=MonitorThresholds(min_success_rate=0.9, max_hallucination_rate=10, max_latency_ms=100),
            export_prometheus=False,
        )
        monitor.record_success("p", latency_ms=500, hallucinations=1)
        monitor.record_failure("p", error="x", latency_ms=500)

        alerts = monitor.get_metrics().alerts

        assert alerts.success_rate_dropped
        assert alerts.hallucination_rate_increased
        assert alerts.latency_increased
        assert alerts.any()

    def test_breaker_alert(self, monitor):
        """Test an attached open breaker raises its alert."""
        breaker = MagicMock()
        breaker.is_open = True
        monitor.attach_breaker(breaker)

        assert monitor.get_metrics().alerts.circuit_breaker_open
        assert "Circuit breaker open" in monitor.check_health().issues

    def test_window_evicts_oldest(self):
        """Test the snapshot log keeps only the newest entries."""
        monitor = LLMMonitor(window=3, export_prometheus=False)
        monitor.record_failure("p", error="old")
        for _ in range(3):
            monitor.record_success("p", latency_ms=1)

        assert monitor.snapshot_count == 3
        assert monitor.get_metrics().success_rate == 1.0

    def test_per_prompt(self, monitor):
        """Test metrics can be split per prompt."""
        monitor.record_success("a", latency_ms=1)
        monitor.record_failure("b", error="x")

        per_prompt = monitor.get_metrics_per_prompt()

        assert set(per_prompt) == {"a", "b"}
        assert per_prompt["a"].success_rate == 1.0
        assert monitor.get_metrics("b").success_rate == 0.0

    def test_disabled_monitor_records_nothing(self):
        """Test a disabled monitor records nothing."""
        monitor = LLMMonitor(enabled=False, export_prometheus=False)
        monitor.record_success("p", latency_ms=1)

        assert monitor.snapshot_count == 0

    def test_health(self, monitor):
        """Test health issues follow the raised alerts."""
        monitor.record_success("p", latency_ms=10)
        assert monitor.check_health().healthy

        for _ in range(3):
            monitor.record_failure("p", error="x")
        health = monitor.check_health()

        assert not health.healthy
        assert health.issues == ["Success rate dropped to 25.0%"]

    def test_export_and_clear(self, monitor):
        """Test export is JSON-compatible and clear empties the log."""
        monitor.record_fallback("p", reason="down", tier="tier4")

        exported = monitor.export()

        assert exported["snapshots"][0]["fallback_tier"] == "tier4"
        assert exported["metrics"]["call_count"] == 1

        monitor.clear()
        assert monitor.snapshot_count == 0

    def test_prometheus_export(self):
        """Test recorded outcomes reach the Prometheus collectors."""
        from llm_safety.monitoring.metrics import llm_calls_total

        counter = llm_calls_total.labels(prompt_id="prom-test", outcome="success")
        before = counter._value.get()

        LLMMonitor().record_success("prom-test", latency_ms=5, tokens=10)

        assert counter._value.get() == before + 1
