"""
Determinism management: sampling presets, config validation and offline
reproducibility diagnostics.
"""

from llm_safety.determinism.manager import (
    DETERMINISM_PRESETS,
    DeterminismManager,
    DeterminismValidation,
)
from llm_safety.determinism.reproducibility import (
    ModelVersionManager,
    ReproducibilityTest,
    ReproducibilityTester,
    ReproducibilityTestResult,
    RunObservation,
    levenshtein_distance,
    similarity,
)

__all__ = [
    "DETERMINISM_PRESETS",
    "DeterminismManager",
    "DeterminismValidation",
    "ReproducibilityTester",
    "ReproducibilityTest",
    "ReproducibilityTestResult",
    "RunObservation",
    "ModelVersionManager",
    "levenshtein_distance",
    "similarity",
]
