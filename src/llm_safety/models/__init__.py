"""
Data models for the call-safety layer.

Includes:
- Enums (CircuitState, FallbackTier, Trend, UseCase, ValidationLayer)
- Prompt models (PromptVersion, PromptExample, HallucinationGuardrails)
- Completion models (CompletionRequest, CompletionResponse)
- Monitoring models (MetricsSnapshot, LLMMetrics, MetricAlerts, HealthStatus)
- Outcomes (CircuitBreakerState, FallbackOutcome)
- DeterminismConfig (frozen dataclass)
"""

from llm_safety.models.determinism_config import DeterminismConfig
from llm_safety.models.enums import (
    CircuitState,
    FallbackTier,
    Trend,
    UseCase,
    ValidationLayer,
)
from llm_safety.models.llm_models import CompletionRequest, CompletionResponse
from llm_safety.models.monitoring_models import (
    HealthStatus,
    LLMMetrics,
    MetricAlerts,
    MetricsSnapshot,
    MonitorThresholds,
)
from llm_safety.models.outcomes import CircuitBreakerState, FallbackOutcome
from llm_safety.models.prompt_version import (
    HallucinationGuardrails,
    PromptExample,
    PromptVersion,
    parse_semver,
)

__all__ = [
    # Enums
    "CircuitState",
    "FallbackTier",
    "Trend",
    "UseCase",
    "ValidationLayer",
    # Prompt models
    "PromptVersion",
    "PromptExample",
    "HallucinationGuardrails",
    "parse_semver",
    # Completion models
    "CompletionRequest",
    "CompletionResponse",
    # Monitoring
    "MetricsSnapshot",
    "MonitorThresholds",
    "MetricAlerts",
    "LLMMetrics",
    "HealthStatus",
    # Outcomes
    "CircuitBreakerState",
    "FallbackOutcome",
    # Determinism
    "DeterminismConfig",
]
