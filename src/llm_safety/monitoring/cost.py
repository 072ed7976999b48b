"""
Token and cost estimation.

Token counts come from the completion service when it reports them and are
otherwise estimated at four characters per token. Cost uses a fixed Decimal
pricing table per model; models missing from the table are charged a flat
per-token rate.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

CHARS_PER_TOKEN = 4
DEFAULT_COST_PER_TOKEN = 0.00001


@dataclass(frozen=True)
class TokenUsage:
    """Prompt/completion token split for one call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a specific model."""

    prompt_cost_per_1k: Decimal  # USD per 1K prompt tokens
    completion_cost_per_1k: Decimal  # USD per 1K completion tokens


# Fixed pricing table - no dynamic fetching
PRICING_TABLE: Dict[str, ModelPricing] = {
    "gpt-4-turbo-2024-04-09": ModelPricing(
        prompt_cost_per_1k=Decimal("0.01"),
        completion_cost_per_1k=Decimal("0.03"),
    ),
    "gpt-4": ModelPricing(
        prompt_cost_per_1k=Decimal("0.03"),
        completion_cost_per_1k=Decimal("0.06"),
    ),
    "gpt-3.5-turbo": ModelPricing(
        prompt_cost_per_1k=Decimal("0.0005"),
        completion_cost_per_1k=Decimal("0.0015"),
    ),
}


def estimate_tokens(text: str) -> int:
    """ceil(len(text) / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class CostEstimator:
    """Prices a call from its token usage."""

    def __init__(
        self,
        cost_per_token: float = DEFAULT_COST_PER_TOKEN,
        pricing: Optional[Dict[str, ModelPricing]] = None,
    ):
        self.cost_per_token = Decimal(str(cost_per_token))
        self.pricing = PRICING_TABLE if pricing is None else pricing

    def estimate(self, model: Optional[str], usage: TokenUsage) -> float:
        """
        Cost in USD, rounded to 1e-6.

        Models without a pricing entry use the flat per-token rate.
        """
        pricing = self.pricing.get(model) if model else None
        if pricing is None:
            cost = Decimal(usage.total_tokens) * self.cost_per_token
        else:
            prompt_cost = (Decimal(usage.prompt_tokens) / Decimal("1000")) * pricing.prompt_cost_per_1k
            completion_cost = (
                Decimal(usage.completion_tokens) / Decimal("1000")
            ) * pricing.completion_cost_per_1k
            cost = prompt_cost + completion_cost
        return float(cost.quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP))


def estimate_cost(
    model: Optional[str],
    tokens: int,
    cost_per_token: float = DEFAULT_COST_PER_TOKEN,
) -> float:
    """Cost of ``tokens`` split evenly between prompt and completion."""
    usage = TokenUsage(prompt_tokens=tokens // 2, completion_tokens=tokens - tokens // 2)
    return CostEstimator(cost_per_token).estimate(model, usage)
