"""
Enumerations for the call-safety layer data models.

All enums are closed sets - no values outside these sets are permitted.
"""

from enum import Enum


class CircuitState(str, Enum):
    """
    Circuit breaker state.

    CLOSED lets calls through, OPEN rejects them without invoking the
    wrapped operation, HALF_OPEN admits trial calls after the cooldown.
    """

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"

    @classmethod
    def get_ordinal(cls, state: "CircuitState") -> int:
        """Gauge value for a state (0=closed, 1=half-open, 2=open)."""
        order = [cls.CLOSED, cls.HALF_OPEN, cls.OPEN]
        return order.index(state)


class FallbackTier(str, Enum):
    """
    Fallback tiers, in the order the chain tries them.
    """

    ALTERNATE_PROMPT = "tier1"
    DIFFERENT_MODEL = "tier2"
    TEMPLATE = "tier3"
    CACHE = "tier4"


class Trend(str, Enum):
    """Direction of a rolling metric (recent window vs prior window)."""

    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"


class UseCase(str, Enum):
    """
    Use cases with a determinism preset.

    Ordered from most deterministic (code) to most creative.
    """

    CODE = "code"
    TESTS = "tests"
    DOCS = "docs"
    EXAMPLES = "examples"
    CREATIVE = "creative"


class ValidationLayer(str, Enum):
    """Output validator layer that produced an issue."""

    PARSE = "parse"
    SCHEMA = "schema"
    SEMANTIC = "semantic"
    HALLUCINATION = "hallucination"
