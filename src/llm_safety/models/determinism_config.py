"""
Sampling configuration for reproducibility.

DeterminismConfig holds the sampling parameters of one call. Construction
accepts out-of-range values; DeterminismManager.validate() reports every
violation.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class DeterminismConfig:
    """
    Sampling parameters pinned for a use case.

    Attributes:
        temperature: 0 = deterministic, 1 = creative
        model: Pinned model identifier
        top_p: Nucleus sampling threshold
        seed: Random seed (if the model supports it)
        timeout_ms: Maximum time to wait for a response
    """

    temperature: float
    model: str
    top_p: Optional[float] = None
    seed: Optional[int] = None
    timeout_ms: Optional[int] = None

    def with_changes(self, **changes) -> "DeterminismConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def timeout_s(self) -> Optional[float]:
        return self.timeout_ms / 1000.0 if self.timeout_ms else None

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "model": self.model,
            "top_p": self.top_p,
            "seed": self.seed,
            "timeout_ms": self.timeout_ms,
        }
