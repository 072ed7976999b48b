"""
Operations manager: the call-safety orchestrator.

call_with_safety() runs one prompt invocation end to end:

    resolve -> render -> call (retry, breaker) -> validate
        success -> cache + success snapshot -> validated result
        failure -> fallback chain -> fallback snapshot -> fallback result
                                  -> failure snapshot -> FallbackExhausted

A missing prompt is the only error raised before the fallback chain. Every
other failure is absorbed into the chain and recorded to the monitor.
"""

import asyncio
import time
import uuid
from typing import Any, Optional

import structlog

from llm_safety.config import Settings
from llm_safety.fallback.cache import ResultCache
from llm_safety.fallback.chain import FallbackChain
from llm_safety.fallback.exceptions import FallbackExhausted
from llm_safety.fallback.templates import STANDARD_TEMPLATES, StaticTemplateGenerator
from llm_safety.fallback.tiers import (
    AlternatePromptTier,
    CacheTier,
    DifferentModelTier,
    FallbackRequest,
    TemplateTier,
)
from llm_safety.llm.base_client import BaseCompletionClient
from llm_safety.llm.exceptions import CompletionTimeoutError
from llm_safety.llm.prompt_renderer import PromptRenderer
from llm_safety.logging_config import bind_call_context, clear_call_context
from llm_safety.models.llm_models import CompletionResponse
from llm_safety.models.monitoring_models import HealthStatus, LLMMetrics, MonitorThresholds
from llm_safety.models.prompt_version import PromptVersion
from llm_safety.monitoring.cost import CostEstimator, TokenUsage, estimate_tokens
from llm_safety.monitoring.monitor import LLMMonitor
from llm_safety.registry.defaults import create_default_registry
from llm_safety.registry.exceptions import PromptNotFoundError
from llm_safety.registry.redis_client import RedisClient
from llm_safety.registry.registry import PromptRegistry
from llm_safety.registry.storage import (
    InMemoryRegistryStore,
    JsonFileRegistryStore,
    RedisRegistryStore,
    RegistryStore,
)
from llm_safety.retry.circuit_breaker import CircuitBreaker
from llm_safety.retry.engine import RetryStrategy
from llm_safety.retry.policy import RetryPolicy
from llm_safety.validation.exceptions import (
    HallucinationError,
    OutputValidationError,
    ValidationError,
)
from llm_safety.validation.pipeline import OutputValidator, ValidationResult

logger = structlog.get_logger(__name__)


def build_registry_store(settings: Settings) -> RegistryStore:
    """
    Persistence backend named by REGISTRY_BACKEND.

    Raises:
        ValueError: Unknown backend name
    """
    backend = settings.REGISTRY_BACKEND.lower()
    if backend == "memory":
        return InMemoryRegistryStore()
    if backend == "file":
        return JsonFileRegistryStore(settings.REGISTRY_PATH)
    if backend == "redis":
        return RedisRegistryStore(RedisClient.get_sync_client(settings), key=settings.REGISTRY_REDIS_KEY)
    raise ValueError(f"Unknown registry backend: {settings.REGISTRY_BACKEND}")


class OperationsManager:
    """
    Composes registry, retry, breaker, validator, fallback chain and monitor
    around one completion client.

    All collaborators are injected; from_settings() wires the standard set.
    """

    def __init__(
        self,
        registry: PromptRegistry,
        client: BaseCompletionClient,
        *,
        validator: Optional[OutputValidator] = None,
        retry: Optional[RetryStrategy] = None,
        breaker: Optional[CircuitBreaker] = None,
        fallback: Optional[FallbackChain] = None,
        monitor: Optional[LLMMonitor] = None,
        renderer: Optional[PromptRenderer] = None,
        cost_estimator: Optional[CostEstimator] = None,
        timeout_s: Optional[float] = None,
        hallucination_forces_fallback: bool = False,
    ):
        """
        Args:
            registry: Prompt version store
            client: Primary completion service
            validator: Output validator (defaults to OutputValidator())
            retry: Retry strategy (defaults to RetryStrategy())
            breaker: Breaker around each completion attempt (None disables it)
            fallback: Fallback chain (defaults to an empty chain)
            monitor: Outcome recorder (defaults to LLMMonitor())
            renderer: User-template renderer
            cost_estimator: Token pricing
            timeout_s: Per-attempt completion timeout
            hallucination_forces_fallback: Treat hallucinated properties as a
                validation failure instead of a warning
        """
        self.registry = registry
        self.client = client
        self.validator = validator or OutputValidator()
        self.retry = retry or RetryStrategy()
        self.breaker = breaker
        self.fallback = fallback or FallbackChain()
        self.monitor = monitor or LLMMonitor()
        self.renderer = renderer or PromptRenderer()
        self.cost_estimator = cost_estimator or CostEstimator()
        self.timeout_s = timeout_s
        self.hallucination_forces_fallback = hallucination_forces_fallback

        if breaker is not None:
            self.monitor.attach_breaker(breaker)

    @classmethod
    def from_settings(
        cls,
        client: BaseCompletionClient,
        settings: Settings,
        secondary_client: Optional[BaseCompletionClient] = None,
        registry: Optional[PromptRegistry] = None,
    ) -> "OperationsManager":
        """
        Wire the standard stack from settings.

        Tier 1 reuses the primary client and breaker. Tier 2 targets
        FALLBACK_MODEL on ``secondary_client`` (or the primary client) behind
        its own breaker. Tier 3 serves the standard templates; tier 4 reads the
        result cache the manager writes on every success.
        """
        if registry is None:
            registry = create_default_registry(build_registry_store(settings))

        renderer = PromptRenderer()
        validator = OutputValidator(
            warning_penalty=settings.VALIDATION_WARNING_PENALTY,
            min_confidence=settings.VALIDATION_MIN_CONFIDENCE,
        )
        timeout_s = float(settings.COMPLETION_TIMEOUT)

        breaker = None
        secondary_breaker = None
        if settings.BREAKER_ENABLED:
            breaker = CircuitBreaker(
                name="completion",
                failure_threshold=settings.BREAKER_FAILURE_THRESHOLD,
                success_threshold=settings.BREAKER_SUCCESS_THRESHOLD,
                reset_timeout_ms=settings.BREAKER_RESET_TIMEOUT_MS,
            )
            secondary_breaker = CircuitBreaker(
                name="fallback_model",
                failure_threshold=settings.BREAKER_FAILURE_THRESHOLD,
                success_threshold=settings.BREAKER_SUCCESS_THRESHOLD,
                reset_timeout_ms=settings.BREAKER_RESET_TIMEOUT_MS,
            )

        cache = ResultCache(
            max_entries=settings.FALLBACK_CACHE_MAX_ENTRIES,
            ttl_seconds=settings.FALLBACK_CACHE_TTL_SECONDS,
        )
        fallback = FallbackChain(
            tiers=[
                AlternatePromptTier(
                    registry,
                    client,
                    renderer,
                    validator,
                    temperature=settings.FALLBACK_TEMPERATURE,
                    breaker=breaker,
                    timeout_s=timeout_s,
                    hallucination_forces_fallback=settings.HALLUCINATION_FORCES_FALLBACK,
                ),
                DifferentModelTier(
                    registry,
                    secondary_client or client,
                    renderer,
                    validator,
                    model=settings.FALLBACK_MODEL,
                    breaker=secondary_breaker,
                    timeout_s=timeout_s,
                    hallucination_forces_fallback=settings.HALLUCINATION_FORCES_FALLBACK,
                ),
                TemplateTier(StaticTemplateGenerator(STANDARD_TEMPLATES)),
                CacheTier(cache),
            ],
            cache=cache,
        )

        monitor = LLMMonitor(
            enabled=settings.MONITOR_ENABLED,
            window=settings.MONITOR_WINDOW,
            trend_window=settings.MONITOR_TREND_WINDOW,
            thresholds=MonitorThresholds(
                min_success_rate=settings.MONITOR_MIN_SUCCESS_RATE,
                max_hallucination_rate=settings.MONITOR_MAX_HALLUCINATION_RATE,
                max_latency_ms=settings.MONITOR_MAX_LATENCY_MS,
            ),
            export_prometheus=settings.PROMETHEUS_ENABLED,
        )
        if secondary_breaker is not None:
            monitor.attach_breaker(secondary_breaker)

        return cls(
            registry,
            client,
            validator=validator,
            retry=RetryStrategy(RetryPolicy.from_settings(settings)),
            breaker=breaker,
            fallback=fallback,
            monitor=monitor,
            renderer=renderer,
            cost_estimator=CostEstimator(settings.COST_PER_TOKEN),
            timeout_s=timeout_s,
            hallucination_forces_fallback=settings.HALLUCINATION_FORCES_FALLBACK,
        )

    # ------------------------------------------------------------------
    # Safety call
    # ------------------------------------------------------------------

    async def call_with_safety(
        self,
        prompt_id: str,
        input: dict[str, Any],
        version: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Invoke a prompt with retry, breaker, validation and fallback.

        Args:
            prompt_id: Prompt family
            input: Template placeholder values
            version: Exact version (default: highest non-retired)
            context: Caller context; ``source_schema`` overrides the schema
                used for hallucination detection

        Returns:
            Validated result, or the fallback chain's result

        Raises:
            PromptNotFoundError: No matching prompt version
            FallbackExhausted: Primary path and every fallback tier failed
        """
        context = context or {}
        bind_call_context(prompt_id, version, call_id=str(uuid.uuid4()))
        try:
            prompt = self.get_prompt(prompt_id, version)
            source_schema = context.get("source_schema", prompt.output_schema)
            start = time.monotonic()

            try:
                response, rendered = await self._invoke(prompt, input)
                validation = self._validate(prompt, response, source_schema)
            except Exception as e:
                return await self._fall_back(prompt, input, context, source_schema, e, start)

            latency_ms = (time.monotonic() - start) * 1000
            usage = self._token_usage(prompt, rendered, response)
            cost = self.cost_estimator.estimate(response.model or prompt.model, usage)

            self.fallback.cache_result(prompt_id, input, validation.output)
            self.monitor.record_success(
                prompt_id,
                latency_ms=latency_ms,
                tokens=usage.total_tokens,
                cost=cost,
                hallucinations=len(validation.hallucinations),
            )
            logger.info(
                "Safety call succeeded",
                latency_ms=round(latency_ms),
                tokens=usage.total_tokens,
                cost=cost,
                confidence=validation.confidence,
                warnings=len(validation.warnings),
            )
            return validation.output
        finally:
            clear_call_context()

    async def _invoke(self, prompt: PromptVersion, input: dict[str, Any]) -> tuple[CompletionResponse, str]:
        rendered = self.renderer.render(prompt, input)

        async def call() -> CompletionResponse:
            if self.timeout_s is None:
                return await self.client.call(prompt, rendered)
            try:
                return await asyncio.wait_for(self.client.call(prompt, rendered), timeout=self.timeout_s)
            except asyncio.TimeoutError as e:
                raise CompletionTimeoutError(
                    f"completion:{prompt} timed out after {self.timeout_s}s",
                    details={"timeout_s": self.timeout_s},
                ) from e

        # Timeout inside the breaker: an expired attempt is a breaker failure.
        async def attempt() -> CompletionResponse:
            if self.breaker is not None:
                return await self.breaker.execute(call)
            return await call()

        response = await self.retry.execute_with_retry(attempt, operation_name=f"completion:{prompt}")
        return response, rendered

    def _validate(
        self,
        prompt: PromptVersion,
        response: CompletionResponse,
        source_schema: Optional[dict[str, Any]],
    ) -> ValidationResult:
        validation = self.validator.validate(
            response.content,
            prompt.output_schema,
            source_schema=source_schema,
        )
        if not validation.valid:
            raise OutputValidationError(validation, prompt_id=prompt.id)
        if validation.hallucinations:
            logger.warning("Hallucinated properties in result", paths=validation.hallucinations)
            if self.hallucination_forces_fallback:
                raise HallucinationError(validation.hallucinations, prompt_id=prompt.id)
        return validation

    async def _fall_back(
        self,
        prompt: PromptVersion,
        input: dict[str, Any],
        context: dict[str, Any],
        source_schema: Optional[dict[str, Any]],
        error: Exception,
        start: float,
    ) -> Any:
        validation_failed = isinstance(error, ValidationError)
        reason = str(error)
        logger.warning(
            "Primary path failed, entering fallback",
            error=reason,
            error_type=type(error).__name__,
            validation_failed=validation_failed,
        )

        request = FallbackRequest(
            prompt_id=prompt.id,
            input=input,
            original_error=reason,
            prompt=prompt,
            source_schema=source_schema,
            context=context,
        )
        try:
            outcome = await self.fallback.execute(request)
        except FallbackExhausted as exhausted:
            self.monitor.record_failure(
                prompt.id,
                error=reason,
                latency_ms=(time.monotonic() - start) * 1000,
                validation_failed=validation_failed,
                tier_errors=dict(exhausted.outcome.tier_errors),
            )
            raise

        self.monitor.record_fallback(
            prompt.id,
            reason=reason,
            tier=outcome.tier.value,
            latency_ms=(time.monotonic() - start) * 1000,
            validation_failed=validation_failed,
            tier_errors=dict(outcome.tier_errors),
        )
        return outcome.result

    def _token_usage(self, prompt: PromptVersion, rendered: str, response: CompletionResponse) -> TokenUsage:
        """Reported token counts, estimated from text length where missing."""
        prompt_tokens = response.prompt_tokens
        if prompt_tokens is None:
            prompt_tokens = estimate_tokens(prompt.system_prompt + rendered)
        completion_tokens = response.completion_tokens
        if completion_tokens is None:
            completion_tokens = estimate_tokens(response.content)
        return TokenUsage(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)

    # ------------------------------------------------------------------
    # Registry and monitor passthroughs
    # ------------------------------------------------------------------

    def get_prompt(self, prompt_id: str, version: Optional[str] = None) -> PromptVersion:
        """
        Raises:
            PromptNotFoundError: No matching prompt version
        """
        prompt = self.registry.get(prompt_id, version)
        if prompt is None:
            logger.error("Prompt not found", prompt_id=prompt_id, version=version)
            raise PromptNotFoundError(prompt_id, version)
        return prompt

    def register_prompt(self, prompt: PromptVersion) -> None:
        self.registry.register(prompt)

    def get_metrics(self, prompt_id: Optional[str] = None) -> LLMMetrics:
        return self.monitor.get_metrics(prompt_id)

    def check_health(self) -> HealthStatus:
        return self.monitor.check_health()

    async def close(self) -> None:
        await self.client.close()
