"""
Offline reproducibility diagnostics and model version pinning.

ReproducibilityTester runs the same input N times under one config through
an injected async runner and reports how often the outputs agree. It is a
diagnostic, not part of the live call path.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

from llm_safety.determinism.manager import DETERMINISM_PRESETS, DeterminismManager
from llm_safety.models.determinism_config import DeterminismConfig
from llm_safety.models.enums import UseCase

logger = structlog.get_logger(__name__)

PASS_THRESHOLD_PERCENT = 80.0


@dataclass(frozen=True)
class RunObservation:
    """One runner result when the runner knows its own latency/cost."""

    output: str
    latency_ms: Optional[float] = None
    cost: float = 0.0


RunResult = Union[str, RunObservation]
Runner = Callable[[str, Any, DeterminismConfig], Awaitable[RunResult]]


@dataclass(frozen=True)
class ReproducibilityTest:
    prompt_id: str
    input: Any
    config: DeterminismConfig
    expected_output: Optional[str] = None
    tolerance: float = 0.95
    runs: int = 5


@dataclass(frozen=True)
class ReproducibilityTestResult:
    passed: bool
    reproducibility_percent: float
    runs: int
    matches: int
    errors: list[str] = field(default_factory=list)
    average_latency_ms: float = 0.0
    total_cost: float = 0.0


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with a single rolling row."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (char_a != char_b),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized edit similarity: 1 - distance / len(longer)."""
    if a == b:
        return 1.0
    longest = max(len(a), len(b))
    return 1.0 - levenshtein_distance(a, b) / longest


class ReproducibilityTester:
    """
    Measures output stability for a prompt under a config.

    Outputs are compared against the expected output when given, otherwise
    against the first successful run. The test passes when at least 80% of
    runs match within the tolerance.
    """

    def __init__(self, runner: Runner):
        """
        Args:
            runner: async (prompt_id, input, config) -> output text or
                RunObservation
        """
        self._runner = runner
        self._executed: list[ReproducibilityTest] = []
        self._lock = threading.Lock()

    @staticmethod
    def create_test(
        prompt_id: str,
        input: Any,
        expected_output: Optional[str] = None,
        tolerance: float = 0.95,
        runs: int = 5,
        config: Optional[DeterminismConfig] = None,
    ) -> ReproducibilityTest:
        return ReproducibilityTest(
            prompt_id=prompt_id,
            input=input,
            expected_output=expected_output,
            tolerance=tolerance,
            runs=runs,
            config=config or DETERMINISM_PRESETS[UseCase.CODE],
        )

    async def run_test(self, test: ReproducibilityTest) -> ReproducibilityTestResult:
        validation = DeterminismManager.validate(test.config)
        if not validation.valid:
            logger.warning(
                "Reproducibility test skipped, invalid config",
                prompt_id=test.prompt_id,
                errors=validation.errors,
            )
            return ReproducibilityTestResult(
                passed=False,
                reproducibility_percent=0.0,
                runs=0,
                matches=0,
                errors=list(validation.errors),
            )

        outputs: list[str] = []
        latencies: list[float] = []
        total_cost = 0.0
        errors: list[str] = []

        for run in range(1, test.runs + 1):
            started = time.monotonic()
            try:
                result = await self._runner(test.prompt_id, test.input, test.config)
            except Exception as e:
                errors.append(f"Run {run}: {e}")
                logger.warning("Reproducibility run failed", prompt_id=test.prompt_id, run=run, error=str(e))
                continue

            if isinstance(result, RunObservation):
                outputs.append(result.output)
                latencies.append(
                    result.latency_ms
                    if result.latency_ms is not None
                    else (time.monotonic() - started) * 1000
                )
                total_cost += result.cost
            else:
                outputs.append(result)
                latencies.append((time.monotonic() - started) * 1000)

        with self._lock:
            self._executed.append(test)

        if not outputs:
            return ReproducibilityTestResult(
                passed=False, reproducibility_percent=0.0, runs=0, matches=0, errors=errors
            )

        reference = test.expected_output if test.expected_output is not None else outputs[0]
        matches = sum(1 for output in outputs if similarity(output, reference) >= test.tolerance)
        percent = matches / len(outputs) * 100

        result = ReproducibilityTestResult(
            passed=percent >= PASS_THRESHOLD_PERCENT,
            reproducibility_percent=percent,
            runs=len(outputs),
            matches=matches,
            errors=errors,
            average_latency_ms=round(sum(latencies) / len(latencies)),
            total_cost=total_cost,
        )
        logger.info(
            "Reproducibility test finished",
            prompt_id=test.prompt_id,
            passed=result.passed,
            reproducibility_percent=percent,
            runs=result.runs,
        )
        return result

    def get_executed_tests(self) -> list[ReproducibilityTest]:
        with self._lock:
            return list(self._executed)


class ModelVersionManager:
    """Pins a model release per use case."""

    def __init__(self):
        self._pinned: dict[str, str] = {}
        self._lock = threading.Lock()

    def pin(self, use_case: str, model_version: str) -> None:
        with self._lock:
            self._pinned[use_case] = model_version
        logger.info("Model pinned", use_case=use_case, model=model_version)

    def get_pinned(self, use_case: str) -> Optional[str]:
        with self._lock:
            return self._pinned.get(use_case)

    def unpin(self, use_case: str) -> None:
        with self._lock:
            self._pinned.pop(use_case, None)

    def list_pinned(self) -> dict[str, str]:
        with self._lock:
            return dict(self._pinned)

    @staticmethod
    def is_latest(model_version: str, latest_version: str) -> bool:
        return model_version == latest_version

    def migrate(self, use_case: str, new_version: str) -> Optional[str]:
        """Re-pin a use case. Returns the previously pinned version."""
        with self._lock:
            previous = self._pinned.get(use_case)
            self._pinned[use_case] = new_version
        logger.info("Model migrated", use_case=use_case, previous=previous, model=new_version)
        return previous
