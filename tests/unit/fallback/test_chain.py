"""
Unit tests for FallbackChain ordering, exhaustion and result handling.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from llm_safety.fallback.cache import ResultCache
from llm_safety.fallback.chain import FallbackChain, FallbackResultHandler
from llm_safety.fallback.exceptions import FallbackExhausted
from llm_safety.fallback.tiers import FallbackRequest
from llm_safety.models.enums import FallbackTier
from llm_safety.models.outcomes import FallbackOutcome


def stub_tier(tier: FallbackTier, result=None, error: Exception | None = None) -> MagicMock:
    strategy = MagicMock()
    strategy.tier = tier
    strategy.execute = AsyncMock(return_value=result, side_effect=error)
    return strategy


REQUEST = FallbackRequest(prompt_id="greeting", input={"name": "Ada"}, original_error="primary failed")


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_tier3_wins_before_tier4(self):
        """Test tiers run in order and the first success wins."""
        tier1 = stub_tier(FallbackTier.ALTERNATE_PROMPT, error=RuntimeError("tier1 down"))
        tier2 = stub_tier(FallbackTier.DIFFERENT_MODEL, error=RuntimeError("tier2 down"))
        tier3 = stub_tier(FallbackTier.TEMPLATE, result={"from": "template"})
        tier4 = stub_tier(FallbackTier.CACHE, result={"from": "cache"})
        chain = FallbackChain([tier4, tier2, tier3, tier1])

        outcome = await chain.execute(REQUEST)

        assert outcome.tier == FallbackTier.TEMPLATE
        assert outcome.result == {"from": "template"}
        assert outcome.quality == "low"
        assert outcome.tier_errors == {"tier1": "tier1 down", "tier2": "tier2 down"}
        tier1.execute.assert_awaited_once_with(REQUEST)
        tier3.execute.assert_awaited_once()
        tier4.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_first_tier_success(self):
        """Test later tiers are not run after a success."""
        tier1 = stub_tier(FallbackTier.ALTERNATE_PROMPT, result={"ok": True})
        tier2 = stub_tier(FallbackTier.DIFFERENT_MODEL, result={"ok": False})

        outcome = await FallbackChain([tier1, tier2]).execute(REQUEST)

        assert outcome.tier == FallbackTier.ALTERNATE_PROMPT
        assert outcome.quality == "high"
        assert outcome.success
        tier2.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhaustion(self):
        """Test FallbackExhausted carries every tier error."""
        chain = FallbackChain(
            [
                stub_tier(FallbackTier.TEMPLATE, error=RuntimeError("no template")),
                stub_tier(FallbackTier.CACHE, error=RuntimeError("cache miss")),
            ]
        )

        with pytest.raises(FallbackExhausted) as exc_info:
            await chain.execute(REQUEST)

        outcome = exc_info.value.outcome
        assert outcome.tier is None
        assert not outcome.success
        assert outcome.original_error == "primary failed"
        assert outcome.tier_errors == {
            "tier3": "no template",
            "tier4": "cache miss",
            "tier1": "not configured",
            "tier2": "not configured",
        }
        assert exc_info.value.prompt_id == "greeting"

    @pytest.mark.asyncio
    async def test_empty_chain_exhausts(self):
        """Test a chain without tiers exhausts immediately."""
        with pytest.raises(FallbackExhausted) as exc_info:
            await FallbackChain().execute(REQUEST)

        assert set(exc_info.value.outcome.tier_errors.values()) == {"not configured"}

    def test_duplicate_tiers_rejected(self):
        """Test each tier may be configured only once."""
        with pytest.raises(ValueError):
            FallbackChain([stub_tier(FallbackTier.CACHE), stub_tier(FallbackTier.CACHE)])

    def test_configured_tiers_sorted(self):
        """Test tiers are ordered by tier number."""
        chain = FallbackChain([stub_tier(FallbackTier.CACHE), stub_tier(FallbackTier.ALTERNATE_PROMPT)])

        assert chain.configured_tiers == [FallbackTier.ALTERNATE_PROMPT, FallbackTier.CACHE]

    def test_cache_helpers(self):
        """Test cache_result, cache_size and clear_cache."""
        chain = FallbackChain(cache=ResultCache())

        chain.cache_result("greeting", {"name": "Ada"}, {"message": "hi"})
        assert chain.cache_size == 1

        chain.clear_cache()
        assert chain.cache_size == 0

    def test_cache_helpers_without_cache(self):
        """Test cache helpers are no-ops without a cache."""
        chain = FallbackChain()

        chain.cache_result("greeting", {}, {})

        assert chain.cache_size == 0


class TestFallbackResultHandler:
    def test_assess_quality(self):
        """Test the quality grade of each tier."""
        assert FallbackResultHandler.assess_quality(FallbackTier.ALTERNATE_PROMPT) == "high"
        assert FallbackResultHandler.assess_quality(FallbackTier.DIFFERENT_MODEL) == "medium"
        assert FallbackResultHandler.assess_quality(FallbackTier.CACHE) == "medium"
        assert FallbackResultHandler.assess_quality(None) == "low"

    def test_format_and_suggest(self):
        """Test the outcome summary and suggested action texts."""
        success = FallbackOutcome(tier=FallbackTier.CACHE, result={"a": 1}, original_error="x")
        failure = FallbackOutcome(original_error="x")

        assert FallbackResultHandler.format_result(success).startswith("Fallback succeeded (tier4)")
        assert FallbackResultHandler.format_result(failure) == "All fallbacks exhausted: x"
        assert "manual review" in FallbackResultHandler.suggest_action(success)
        assert "completely failed" in FallbackResultHandler.suggest_action(failure)
