"""
Fallback chain.

Invoked only after the primary path failed terminally (retry exhausted,
non-retryable error, open breaker, or hard validation failure). Tiers run
strictly in tier order; the first success wins. Every tier failure is logged
and swallowed; only exhaustion propagates, as FallbackExhausted.
"""

import json
from typing import Any, Optional, Sequence

import structlog

from llm_safety.fallback.cache import ResultCache
from llm_safety.fallback.exceptions import FallbackExhausted
from llm_safety.fallback.tiers import FallbackRequest, FallbackTierStrategy
from llm_safety.models.enums import FallbackTier
from llm_safety.models.outcomes import FallbackOutcome
from llm_safety.monitoring.metrics import fallback_tier_total

logger = structlog.get_logger(__name__)

_TIER_ORDER = list(FallbackTier)


class FallbackResultHandler:
    """Presentation helpers for fallback outcomes."""

    QUALITY = {
        FallbackTier.ALTERNATE_PROMPT: "high",
        FallbackTier.DIFFERENT_MODEL: "medium",
        FallbackTier.TEMPLATE: "low",
        FallbackTier.CACHE: "medium",
    }

    @staticmethod
    def assess_quality(tier: Optional[FallbackTier]) -> str:
        if tier is None:
            return "low"
        return FallbackResultHandler.QUALITY.get(tier, "low")

    @staticmethod
    def format_result(outcome: FallbackOutcome) -> str:
        if outcome.success:
            preview = json.dumps(outcome.result, default=str)[:100]
            return f"Fallback succeeded ({outcome.tier.value}): {preview}..."
        return f"All fallbacks exhausted: {outcome.original_error}"

    @staticmethod
    def suggest_action(outcome: FallbackOutcome) -> str:
        if outcome.success:
            return (
                f"Used fallback ({outcome.tier.value}). Output quality may be reduced. "
                "Consider manual review."
            )
        return "Generation completely failed. Please check logs and retry manually."


class FallbackChain:
    """
    Ordered degradation strategies plus the tier-4 result cache.

    The cache is owned by the chain; the orchestrator writes successful
    primary results through cache_result().
    """

    def __init__(
        self,
        tiers: Sequence[FallbackTierStrategy] = (),
        cache: Optional[ResultCache] = None,
    ):
        seen = [t.tier for t in tiers]
        if len(seen) != len(set(seen)):
            raise ValueError("each fallback tier may be configured once")
        self.tiers = sorted(tiers, key=lambda t: _TIER_ORDER.index(t.tier))
        self.cache = cache

    @property
    def configured_tiers(self) -> list[FallbackTier]:
        return [t.tier for t in self.tiers]

    async def execute(self, request: FallbackRequest) -> FallbackOutcome:
        """
        Run the tiers in order.

        Raises:
            FallbackExhausted: No configured tier produced a result
        """
        tier_errors: dict[str, str] = {}

        for strategy in self.tiers:
            tier = strategy.tier
            try:
                result = await strategy.execute(request)
            except Exception as e:
                tier_errors[tier.value] = str(e)
                fallback_tier_total.labels(tier=tier.value, success="false").inc()
                logger.warning(
                    "Fallback tier failed",
                    prompt_id=request.prompt_id,
                    tier=tier.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            fallback_tier_total.labels(tier=tier.value, success="true").inc()
            outcome = FallbackOutcome(
                tier=tier,
                result=result,
                original_error=request.original_error,
                tier_errors=tier_errors,
                quality=FallbackResultHandler.assess_quality(tier),
            )
            logger.info(
                "Fallback succeeded",
                prompt_id=request.prompt_id,
                tier=tier.value,
                quality=outcome.quality,
                failed_tiers=list(tier_errors),
            )
            return outcome

        for tier in FallbackTier:
            if tier not in self.configured_tiers:
                tier_errors[tier.value] = "not configured"

        outcome = FallbackOutcome(
            tier=None,
            original_error=request.original_error,
            tier_errors=tier_errors,
            quality=FallbackResultHandler.assess_quality(None),
        )
        fallback_tier_total.labels(tier="exhausted", success="false").inc()
        logger.error(
            "All fallback strategies exhausted",
            prompt_id=request.prompt_id,
            original_error=request.original_error,
            tier_errors=tier_errors,
        )
        raise FallbackExhausted(outcome, request.prompt_id)

    # ------------------------------------------------------------------
    # Tier-4 cache
    # ------------------------------------------------------------------

    def cache_result(self, prompt_id: str, input_data: Any, result: Any) -> None:
        if self.cache is not None:
            self.cache.put(prompt_id, input_data, result)

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self.cache) if self.cache is not None else 0
