"""Integration test fixtures.

End-to-end orchestrator flows run against scripted completion clients, so
no external service is required.
"""

from typing import Optional

import pytest

from llm_safety.fallback.cache import ResultCache
from llm_safety.fallback.chain import FallbackChain
from llm_safety.fallback.templates import StaticTemplateGenerator
from llm_safety.fallback.tiers import CacheTier, TemplateTier
from llm_safety.manager import OperationsManager
from llm_safety.monitoring.monitor import LLMMonitor
from llm_safety.registry.registry import PromptRegistry
from llm_safety.retry.circuit_breaker import CircuitBreaker
from llm_safety.retry.engine import RetryStrategy
from llm_safety.retry.policy import RetryPolicy

from tests.fixtures.builders import GREETING_SCHEMA, ScriptedClient, make_prompt


@pytest.fixture
def registry() -> PromptRegistry:
    registry = PromptRegistry()
    registry.register(make_prompt("greeting", "1.0.0", output_schema=GREETING_SCHEMA))
    return registry


@pytest.fixture
def build_manager(registry, no_sleep):
    """Factory for a manager with template + cache fallback tiers."""

    def build(
        client: ScriptedClient,
        breaker: Optional[CircuitBreaker] = None,
        templates: Optional[dict] = None,
        **kwargs,
    ) -> OperationsManager:
        cache = ResultCache()
        chain = FallbackChain(
            [TemplateTier(StaticTemplateGenerator(templates or {})), CacheTier(cache)],
            cache=cache,
        )
        return OperationsManager(
            registry,
            client,
            retry=RetryStrategy(RetryPolicy(max_retries=2, initial_delay_ms=10, max_delay_ms=100)),
            breaker=breaker,
            fallback=chain,
            monitor=LLMMonitor(export_prometheus=False),
            **kwargs,
        )

    return build
