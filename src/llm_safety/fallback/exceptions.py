"""
Fallback-chain exceptions.

Tier failures are raised by a tier and swallowed by the chain. Only
FallbackExhausted leaves the chain, and it is the only error a caller of
call_with_safety sees after the primary path failed.
"""

from typing import Any, Optional

from llm_safety.models.enums import FallbackTier
from llm_safety.models.outcomes import FallbackOutcome


class TierFailedError(Exception):
    """A tier could not produce a result."""

    def __init__(self, tier: FallbackTier, reason: str, details: Optional[dict[str, Any]] = None):
        self.tier = tier
        self.reason = reason
        self.message = f"{tier.value} failed: {reason}"
        self.details = details or {}
        super().__init__(self.message)


class TemplateNotAvailableError(Exception):
    """The template generator has no template for this prompt id."""

    def __init__(self, prompt_id: str):
        self.prompt_id = prompt_id
        self.message = f"No template available for prompt: {prompt_id}"
        self.details = {"prompt_id": prompt_id}
        super().__init__(self.message)


class FallbackExhausted(Exception):
    """
    Every configured tier failed (or none was configured).

    Attributes:
        outcome: FallbackOutcome with tier=None and the per-tier errors
        prompt_id: Prompt the chain ran for
    """

    def __init__(self, outcome: FallbackOutcome, prompt_id: str):
        self.outcome = outcome
        self.prompt_id = prompt_id
        self.message = f"All fallback strategies exhausted for {prompt_id}"
        self.details = {
            "original_error": outcome.original_error,
            "tier_errors": dict(outcome.tier_errors),
        }
        super().__init__(self.message)
