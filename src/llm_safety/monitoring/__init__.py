"""Monitoring for the LLM call-safety layer.

Rolling in-process metrics (LLMMonitor), cost estimation, the text report
formatter, and the Prometheus collectors exported alongside them.
"""

from llm_safety.monitoring.cost import (
    PRICING_TABLE,
    CostEstimator,
    ModelPricing,
    TokenUsage,
    estimate_cost,
    estimate_tokens,
)
from llm_safety.monitoring.metrics import (
    circuit_breaker_state,
    fallback_tier_total,
    hallucinations_total,
    llm_calls_total,
    llm_latency_seconds,
    llm_retries_total,
    llm_tokens_total,
    validation_failures_total,
)
from llm_safety.monitoring.monitor import LLMMonitor, classify_trend, percentile
from llm_safety.monitoring.report import MetricsFormatter

__all__ = [
    "LLMMonitor",
    "MetricsFormatter",
    "classify_trend",
    "percentile",
    "CostEstimator",
    "ModelPricing",
    "PRICING_TABLE",
    "TokenUsage",
    "estimate_tokens",
    "estimate_cost",
    "llm_calls_total",
    "llm_latency_seconds",
    "llm_tokens_total",
    "llm_retries_total",
    "circuit_breaker_state",
    "fallback_tier_total",
    "validation_failures_total",
    "hallucinations_total",
]
