"""
Fallback tier strategies.

Each tier implements a single async ``execute`` method that either returns a
result or raises. The chain tries tiers in order and stops at the first
result:

    1. AlternatePromptTier: same prompt family, stricter sampling and/or an
       alternate registered version
    2. DifferentModelTier: same semantics on a cheaper/faster model
    3. TemplateTier: static per-prompt template, no completion service
    4. CacheTier: earlier successful result for the same input

Tiers 1 and 2 validate their output and fail on a hard validation failure,
or on hallucinated properties when hallucination_forces_fallback is set.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import structlog

from llm_safety.fallback.cache import ResultCache
from llm_safety.fallback.exceptions import TierFailedError
from llm_safety.fallback.templates import TemplateGenerator
from llm_safety.llm.base_client import BaseCompletionClient
from llm_safety.llm.prompt_renderer import PromptRenderer
from llm_safety.models.enums import FallbackTier
from llm_safety.models.prompt_version import PromptVersion
from llm_safety.registry.registry import PromptRegistry
from llm_safety.retry.circuit_breaker import CircuitBreaker
from llm_safety.validation.pipeline import OutputValidator

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FallbackRequest:
    """
    Everything a tier may need about the failed call.

    Attributes:
        prompt_id: Prompt family
        input: Caller's input mapping
        original_error: Why the primary path failed
        prompt: Resolved prompt version of the primary attempt
        source_schema: Schema licensing result properties (hallucination check)
        context: Caller-supplied context
    """

    prompt_id: str
    input: dict[str, Any]
    original_error: str
    prompt: Optional[PromptVersion] = None
    source_schema: Optional[dict[str, Any]] = None
    context: dict[str, Any] = field(default_factory=dict)


class FallbackTierStrategy(Protocol):
    """Protocol for fallback tiers."""

    tier: FallbackTier

    async def execute(self, request: FallbackRequest) -> Any:
        """
        Produce a result for the request.

        Raises:
            Exception: Any failure; the chain logs it and moves on
        """
        ...


class _CompletionTier:
    """Shared invoke-and-validate path of the tiers that call a model."""

    tier: FallbackTier

    def __init__(
        self,
        client: BaseCompletionClient,
        renderer: PromptRenderer,
        validator: OutputValidator,
        breaker: Optional[CircuitBreaker] = None,
        timeout_s: Optional[float] = None,
        hallucination_forces_fallback: bool = False,
    ):
        self.client = client
        self.renderer = renderer
        self.validator = validator
        self.breaker = breaker
        self.timeout_s = timeout_s
        self.hallucination_forces_fallback = hallucination_forces_fallback

    async def _invoke(self, prompt: PromptVersion, request: FallbackRequest) -> dict[str, Any]:
        rendered = self.renderer.render(prompt, request.input)

        async def call():
            if self.timeout_s is not None:
                return await asyncio.wait_for(self.client.call(prompt, rendered), timeout=self.timeout_s)
            return await self.client.call(prompt, rendered)

        if self.breaker is not None:
            response = await self.breaker.execute(call)
        else:
            response = await call()

        validation = self.validator.validate(
            response.content,
            prompt.output_schema,
            source_schema=request.source_schema,
        )
        if not validation.valid:
            raise TierFailedError(
                self.tier,
                "output failed validation",
                details={"errors": [issue.message for issue in validation.errors]},
            )
        if validation.hallucinations and self.hallucination_forces_fallback:
            raise TierFailedError(
                self.tier,
                f"hallucinated properties: {', '.join(validation.hallucinations)}",
                details={"paths": validation.hallucinations},
            )
        return validation.output


class AlternatePromptTier(_CompletionTier):
    """
    Tier 1: re-invoke the prompt family with stricter sampling.

    Uses ``alternate_version`` from the registry when set, otherwise the
    version the primary attempt used. Temperature is lowered to
    ``temperature`` (never raised).
    """

    tier = FallbackTier.ALTERNATE_PROMPT

    def __init__(
        self,
        registry: PromptRegistry,
        client: BaseCompletionClient,
        renderer: PromptRenderer,
        validator: OutputValidator,
        temperature: float = 0.05,
        alternate_version: Optional[str] = None,
        breaker: Optional[CircuitBreaker] = None,
        timeout_s: Optional[float] = None,
        hallucination_forces_fallback: bool = False,
    ):
        super().__init__(
            client,
            renderer,
            validator,
            breaker=breaker,
            timeout_s=timeout_s,
            hallucination_forces_fallback=hallucination_forces_fallback,
        )
        self.registry = registry
        self.temperature = temperature
        self.alternate_version = alternate_version

    async def execute(self, request: FallbackRequest) -> Any:
        if self.alternate_version is not None:
            base = self.registry.get(request.prompt_id, self.alternate_version)
        else:
            base = request.prompt or self.registry.get(request.prompt_id)
        if base is None:
            raise TierFailedError(self.tier, "no prompt version to fall back to")

        prompt = base.model_copy(update={"temperature": min(base.temperature, self.temperature)})
        logger.info(
            "Fallback tier 1: alternate prompt",
            prompt_id=request.prompt_id,
            version=prompt.version,
            temperature=prompt.temperature,
        )
        return await self._invoke(prompt, request)


class DifferentModelTier(_CompletionTier):
    """
    Tier 2: same prompt against a secondary model.

    ``client`` may be a different completion service; ``model`` replaces
    the prompt's target model.
    """

    tier = FallbackTier.DIFFERENT_MODEL

    def __init__(
        self,
        registry: PromptRegistry,
        client: BaseCompletionClient,
        renderer: PromptRenderer,
        validator: OutputValidator,
        model: str = "gpt-3.5-turbo",
        breaker: Optional[CircuitBreaker] = None,
        timeout_s: Optional[float] = None,
        hallucination_forces_fallback: bool = False,
    ):
        super().__init__(
            client,
            renderer,
            validator,
            breaker=breaker,
            timeout_s=timeout_s,
            hallucination_forces_fallback=hallucination_forces_fallback,
        )
        self.registry = registry
        self.model = model

    async def execute(self, request: FallbackRequest) -> Any:
        base = request.prompt or self.registry.get(request.prompt_id)
        if base is None:
            raise TierFailedError(self.tier, "no prompt version to fall back to")

        prompt = base.model_copy(update={"model": self.model})
        logger.info("Fallback tier 2: different model", prompt_id=request.prompt_id, model=self.model)
        return await self._invoke(prompt, request)


class TemplateTier:
    """Tier 3: generic result from the template generator."""

    tier = FallbackTier.TEMPLATE

    def __init__(self, generator: TemplateGenerator):
        self.generator = generator

    async def execute(self, request: FallbackRequest) -> Any:
        logger.info("Fallback tier 3: template generation", prompt_id=request.prompt_id)
        return self.generator.generate(request.prompt_id, request.input)


class CacheTier:
    """Tier 4: cached result for prompt id + normalised input."""

    tier = FallbackTier.CACHE

    def __init__(self, cache: ResultCache):
        self.cache = cache

    async def execute(self, request: FallbackRequest) -> Any:
        cached = self.cache.get(request.prompt_id, request.input)
        if cached is None:
            raise TierFailedError(self.tier, "cache miss")
        logger.info("Fallback tier 4: cache hit", prompt_id=request.prompt_id)
        return cached
