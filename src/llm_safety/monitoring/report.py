"""
Human-readable metrics report.
"""

from llm_safety.models.monitoring_models import HealthStatus, LLMMetrics


class MetricsFormatter:
    """Plain-text rendering of LLMMetrics and HealthStatus."""

    @staticmethod
    def format_metrics(metrics: LLMMetrics) -> str:
        alerts = metrics.alerts
        alert_lines = [
            line
            for flag, line in (
                (alerts.success_rate_dropped, "  [!] Success rate dropped"),
                (alerts.hallucination_rate_increased, "  [!] Hallucination rate increased"),
                (alerts.latency_increased, "  [!] Latency increased"),
                (alerts.cost_increased, "  [!] Cost increasing"),
                (alerts.circuit_breaker_open, "  [!] Circuit breaker OPEN"),
            )
            if flag
        ] or ["  All systems normal"]

        lines = [
            "LLM Metrics Report",
            "==================",
            "",
            "Success Metrics:",
            f"  Calls:                 {metrics.call_count}",
            f"  Success Rate:          {metrics.success_rate * 100:.1f}%",
            f"  Hallucination Rate:    {metrics.hallucination_rate:.2f} per 1000",
            f"  Validation Failures:   {metrics.validation_failure_rate * 100:.1f}%",
            f"  Fallback Usage:        {metrics.fallback_rate * 100:.1f}%",
            "",
            "Performance Metrics:",
            f"  Average Latency:       {metrics.average_latency_ms:.0f}ms",
            f"  P95 Latency:           {metrics.p95_latency_ms:.0f}ms",
            f"  P99 Latency:           {metrics.p99_latency_ms:.0f}ms",
            f"  Max Latency:           {metrics.max_latency_ms:.0f}ms",
            "",
            "Cost Metrics:",
            f"  Cost per Call:         ${metrics.cost_per_call:.4f}",
            f"  Total Tokens Used:     {metrics.total_tokens_used}",
            f"  Total Cost:            ${metrics.total_cost:.2f}",
            "",
            "Trends:",
            f"  Success Rate:          {metrics.success_rate_trend.value}",
            f"  Latency:               {metrics.latency_trend.value}",
            f"  Cost:                  {metrics.cost_trend.value}",
            "",
            "Alerts:",
            *alert_lines,
        ]
        return "\n".join(lines)

    @staticmethod
    def format_health(health: HealthStatus) -> str:
        status = "HEALTHY" if health.healthy else "ISSUES DETECTED"
        return "\n".join([f"Status: {status}", *(f"  - {issue}" for issue in health.issues)])

    @classmethod
    def format_report(cls, metrics: LLMMetrics, health: HealthStatus | None = None) -> str:
        """Metrics report, followed by the health block when given."""
        report = cls.format_metrics(metrics)
        if health is not None:
            report = f"{report}\n\n{cls.format_health(health)}"
        return report
