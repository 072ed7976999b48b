"""
LLM call-safety layer.

Sits between an application and an external text-completion service and
turns a versioned prompt invocation into a validated structured result:
- Prompt registry with semantic versioning and lifecycle (deprecate/retire)
- Bounded retry with exponential backoff and jitter
- Circuit breaker around the completion service
- Four-tier fallback chain (alternate prompt, other model, template, cache)
- Multi-layer output validation (schema, semantic, hallucination)
- Determinism presets and reproducibility diagnostics
- Rolling metrics with trend and alert detection

Architecture: OperationsManager orchestrator + injected completion client
"""

__version__ = "0.1.0"
