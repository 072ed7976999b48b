"""
Unit tests for ReproducibilityTester and ModelVersionManager.
"""

from unittest.mock import AsyncMock

import pytest

from llm_safety.determinism.reproducibility import (
    ModelVersionManager,
    ReproducibilityTester,
    RunObservation,
    levenshtein_distance,
    similarity,
)
from llm_safety.models.determinism_config import DeterminismConfig


def test_levenshtein_distance():
    """Test edit distances on known pairs."""
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_similarity():
    """Test normalised similarity, including empty strings."""
    assert similarity("abcd", "abcd") == 1.0
    assert similarity("abcd", "abce") == pytest.approx(0.75)
    assert similarity("", "") == 1.0


class TestReproducibilityTester:
    @pytest.mark.asyncio
    async def test_identical_outputs_pass(self):
        """Test identical outputs pass with full consistency."""
        runner = AsyncMock(return_value='{"a": 1}')
        tester = ReproducibilityTester(runner)
        test = tester.create_test("p", {"x": 1}, runs=5)

        result = await tester.run_test(test)

        assert result.passed
        assert result.reproducibility_percent == 100.0
        assert result.matches == 5
        assert runner.await_count == 5
        assert tester.get_executed_tests() == [test]

    @pytest.mark.asyncio
    async def test_match_within_tolerance(self):
        """Test near matches count when similarity reaches the tolerance."""
        runner = AsyncMock(side_effect=["abcdefghij", "abcdefghiX", "zzzzzzzzzz", "abcdefghij", "abcdefghij"])
        tester = ReproducibilityTester(runner)

        result = await tester.run_test(tester.create_test("p", {}, tolerance=0.9, runs=5))

        # "abcdefghiX" is exactly 0.9 similar: included
        assert result.matches == 4
        assert result.reproducibility_percent == 80.0
        assert result.passed

    @pytest.mark.asyncio
    async def test_expected_output_is_reference(self):
        """Test runs are compared against the expected output when given."""
        runner = AsyncMock(return_value="actual")
        tester = ReproducibilityTester(runner)

        result = await tester.run_test(tester.create_test("p", {}, expected_output="expected", runs=3))

        assert result.matches == 0
        assert not result.passed

    @pytest.mark.asyncio
    async def test_run_errors_collected(self):
        """Test failed runs are collected without aborting the test."""
        runner = AsyncMock(side_effect=["out", RuntimeError("boom"), "out"])
        tester = ReproducibilityTester(runner)

        result = await tester.run_test(tester.create_test("p", {}, runs=3))

        assert result.errors == ["Run 2: boom"]
        assert result.runs == 2
        assert result.passed

    @pytest.mark.asyncio
    async def test_observations_report_latency_and_cost(self):
        """Test mean latency and total cost are aggregated."""
        runner = AsyncMock(
            side_effect=[RunObservation("x", latency_ms=100, cost=0.01), RunObservation("x", latency_ms=300, cost=0.02)]
        )
        tester = ReproducibilityTester(runner)

        result = await tester.run_test(tester.create_test("p", {}, runs=2))

        assert result.average_latency_ms == 200
        assert result.total_cost == pytest.approx(0.03)

    @pytest.mark.asyncio
    async def test_invalid_config_not_run(self):
        """Test an invalid config fails without invoking the runner."""
        runner = AsyncMock(return_value="x")
        tester = ReproducibilityTester(runner)
        bad = DeterminismConfig(temperature=3.0, model="m")

        result = await tester.run_test(tester.create_test("p", {}, config=bad))

        assert not result.passed
        assert result.errors == ["Temperature must be between 0 and 1"]
        runner.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_runs_failed(self):
        """Test a test with no successful run fails."""
        tester = ReproducibilityTester(AsyncMock(side_effect=RuntimeError("down")))

        result = await tester.run_test(tester.create_test("p", {}, runs=2))

        assert not result.passed
        assert result.runs == 0
        assert len(result.errors) == 2


class TestModelVersionManager:
    def test_pin_and_unpin(self):
        """Test model pins can be set and removed."""
        manager = ModelVersionManager()
        manager.pin("code", "gpt-4-turbo-2024-04-09")

        assert manager.get_pinned("code") == "gpt-4-turbo-2024-04-09"
        assert manager.list_pinned() == {"code": "gpt-4-turbo-2024-04-09"}

        manager.unpin("code")
        assert manager.get_pinned("code") is None

    def test_migrate_returns_previous(self):
        """Test migrate returns the model it replaced."""
        manager = ModelVersionManager()
        manager.pin("docs", "old")

        assert manager.migrate("docs", "new") == "old"
        assert manager.get_pinned("docs") == "new"

    def test_is_latest(self):
        """Test is_latest compares against the pinned model."""
        assert ModelVersionManager.is_latest("v2", "v2")
        assert not ModelVersionManager.is_latest("v1", "v2")
