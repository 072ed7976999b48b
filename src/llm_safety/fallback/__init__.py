"""
Fallback chain: four ordered degradation tiers and the tier-4 result cache.
"""

from llm_safety.fallback.cache import ResultCache, make_cache_key
from llm_safety.fallback.chain import FallbackChain, FallbackResultHandler
from llm_safety.fallback.exceptions import (
    FallbackExhausted,
    TemplateNotAvailableError,
    TierFailedError,
)
from llm_safety.fallback.templates import (
    STANDARD_TEMPLATES,
    StaticTemplateGenerator,
    TemplateGenerator,
)
from llm_safety.fallback.tiers import (
    AlternatePromptTier,
    CacheTier,
    DifferentModelTier,
    FallbackRequest,
    FallbackTierStrategy,
    TemplateTier,
)

__all__ = [
    "FallbackChain",
    "FallbackRequest",
    "FallbackResultHandler",
    "FallbackTierStrategy",
    "AlternatePromptTier",
    "DifferentModelTier",
    "TemplateTier",
    "CacheTier",
    "ResultCache",
    "make_cache_key",
    "TemplateGenerator",
    "StaticTemplateGenerator",
    "STANDARD_TEMPLATES",
    "FallbackExhausted",
    "TemplateNotAvailableError",
    "TierFailedError",
]
