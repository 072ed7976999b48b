"""
Determinism controls.

Validates and derives sampling configuration. Presets run from the most
deterministic use case (seeded, near-zero temperature) to the most creative.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

import structlog

from llm_safety.models.determinism_config import DeterminismConfig
from llm_safety.models.enums import UseCase

logger = structlog.get_logger(__name__)

PINNED_MODEL = "gpt-4-turbo-2024-04-09"
DEFAULT_TIMEOUT_MS = 30000
MIN_TIMEOUT_MS = 1000
STEP = 0.1
TOP_P_STEP = 0.05

DETERMINISM_PRESETS: Mapping[UseCase, DeterminismConfig] = MappingProxyType(
    {
        UseCase.CODE: DeterminismConfig(
            temperature=0.1, top_p=0.95, seed=42, model=PINNED_MODEL, timeout_ms=DEFAULT_TIMEOUT_MS
        ),
        UseCase.TESTS: DeterminismConfig(
            temperature=0.15, top_p=0.95, seed=42, model=PINNED_MODEL, timeout_ms=DEFAULT_TIMEOUT_MS
        ),
        UseCase.DOCS: DeterminismConfig(
            temperature=0.3, top_p=0.95, seed=42, model=PINNED_MODEL, timeout_ms=DEFAULT_TIMEOUT_MS
        ),
        UseCase.EXAMPLES: DeterminismConfig(
            temperature=0.5, top_p=0.9, model=PINNED_MODEL, timeout_ms=DEFAULT_TIMEOUT_MS
        ),
        UseCase.CREATIVE: DeterminismConfig(
            temperature=0.8, top_p=0.9, model=PINNED_MODEL, timeout_ms=DEFAULT_TIMEOUT_MS
        ),
    }
)


@dataclass(frozen=True)
class DeterminismValidation:
    """Pass/fail with one message per violated bound."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def _clamp(value: float, low: float, high: float) -> float:
    # Rounded so repeated steps do not drift (0.3 - 0.1 - 0.1 - 0.1 == 0.0)
    return round(min(high, max(low, value)), 6)


class DeterminismManager:
    """Stateless helpers over DeterminismConfig."""

    @staticmethod
    def validate(config: DeterminismConfig) -> DeterminismValidation:
        errors: list[str] = []

        if not 0.0 <= config.temperature <= 1.0:
            errors.append("Temperature must be between 0 and 1")
        if config.top_p is not None and not 0.0 <= config.top_p <= 1.0:
            errors.append("top_p must be between 0 and 1")
        if not config.model or not config.model.strip():
            errors.append("Model must be specified")
        if config.timeout_ms is not None and config.timeout_ms < MIN_TIMEOUT_MS:
            errors.append(f"Timeout must be at least {MIN_TIMEOUT_MS}ms")

        if errors:
            logger.debug("Determinism config rejected", errors=errors)
        return DeterminismValidation(valid=not errors, errors=errors)

    @staticmethod
    def get_recommendation(use_case: UseCase | str) -> DeterminismConfig:
        """
        Preset for a use case.

        Raises:
            ValueError: Unknown use case
        """
        return DETERMINISM_PRESETS[UseCase(use_case)]

    @staticmethod
    def make_more_deterministic(config: DeterminismConfig) -> DeterminismConfig:
        top_p = _clamp(config.top_p + TOP_P_STEP, 0.0, 1.0) if config.top_p else 0.95
        return config.with_changes(
            temperature=_clamp(config.temperature - STEP, 0.0, 1.0),
            top_p=top_p,
        )

    @staticmethod
    def make_more_creative(config: DeterminismConfig) -> DeterminismConfig:
        top_p = _clamp(config.top_p - TOP_P_STEP, 0.5, 1.0) if config.top_p else 0.85
        return config.with_changes(
            temperature=_clamp(config.temperature + STEP, 0.0, 1.0),
            top_p=top_p,
        )

    @staticmethod
    def get_reproducibility_score(config: DeterminismConfig) -> float:
        """
        Heuristic stability estimate in [0, 1].

        (1 - temperature) + 0.1 when a seed is set, capped at 1. Reporting
        only; nothing branches on it.
        """
        seed_bonus = 0.1 if config.seed is not None else 0.0
        return _clamp((1.0 - config.temperature) + seed_bonus, 0.0, 1.0)
