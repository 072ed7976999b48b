"""Prometheus metrics for the LLM call-safety layer.

Collectors are registered in the default prometheus_client registry and
incremented as side effects by the components that own each concern. The
in-process LLMMonitor remains the source of the aggregate report; these
series exist for scraping and alerting.

Alert rules should be configured for:
- llm_calls_total{outcome="failure"} (fallback exhaustion reaching callers)
- fallback_tier_total (sustained degradation)
- circuit_breaker_state (breaker stuck open)
- hallucinations_total (model drift)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Call Outcome Metrics ===

llm_calls_total = Counter(
    "llm_calls_total",
    "Total safety calls by prompt and outcome",
    ["prompt_id", "outcome"],
)
"""
Safety-call outcome counter.

Labels:
- prompt_id: Prompt family identifier
- outcome: success, fallback, failure

Alert thresholds:
- WARN: failure rate > 1% of calls
- CRITICAL: failure rate > 5% of calls
"""

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "End-to-end safety call latency in seconds",
    ["prompt_id", "outcome"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
Safety-call latency histogram, retries and fallback included.

Buckets sized for completion services (0.5s to 120s).
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed (reported or estimated) by prompt",
    ["prompt_id"],
)
"""Token consumption counter, used for cost tracking."""

# === Retry Metrics ===

llm_retries_total = Counter(
    "llm_retries_total",
    "Retry attempts by outcome",
    ["outcome"],
)
"""
Retry attempts counter.

Labels:
- outcome: retried (transient, backing off), exhausted (last attempt failed),
  aborted (non-retryable error), recovered (success after at least one retry)

Alert thresholds:
- WARN: retried rate > 10% of calls
"""

# === Circuit Breaker Metrics ===

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half-open, 2=open)",
    ["name"],
)
"""Current breaker state per protected operation class."""

# === Fallback Metrics ===

fallback_tier_total = Counter(
    "fallback_tier_total",
    "Fallback tier attempts by tier and result",
    ["tier", "success"],
)
"""
Fallback tier attempts.

Labels:
- tier: tier1 (alternate prompt), tier2 (different model), tier3 (template),
  tier4 (cache), exhausted (no tier succeeded)
- success: true, false
"""

# === Validation Metrics ===

validation_failures_total = Counter(
    "validation_failures_total",
    "Output validation failures by layer and error type",
    ["layer", "error_type"],
)
"""
Output validation failures.

Labels:
- layer: parse, schema
- error_type: json_decode_error, not_json_object, missing_required, type_mismatch, etc.
"""

hallucinations_total = Counter(
    "hallucinations_total",
    "Result properties not licensed by the source schema",
    ["prompt_id"],
)
"""Hallucinated property counter. A rising rate indicates model drift."""
