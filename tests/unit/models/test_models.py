"""
Unit tests for the shared data models.
"""

import pytest
from pydantic import ValidationError

from llm_safety.models.determinism_config import DeterminismConfig
from llm_safety.models.enums import CircuitState
from llm_safety.models.llm_models import CompletionResponse
from llm_safety.models.monitoring_models import MetricAlerts
from llm_safety.models.prompt_version import parse_semver

from tests.fixtures.builders import make_prompt


@pytest.mark.parametrize(
    "version, expected",
    [("1", (1, 0, 0)), ("1.2", (1, 2, 0)), ("1.2.3", (1, 2, 3)), ("10.0.1", (10, 0, 1))],
)
def test_parse_semver(version, expected):
    """Test semver parsing pads missing parts with zero."""
    assert parse_semver(version) == expected


@pytest.mark.parametrize("version", ["", "v1.0.0", "1.0.0-beta", "1.2.3.4", "a.b"])
def test_parse_semver_rejects(version):
    """Test malformed versions are rejected."""
    with pytest.raises(ValueError):
        parse_semver(version)


class TestPromptVersion:
    def test_invalid_version_rejected(self):
        """Test PromptVersion validates its version string."""
        with pytest.raises(ValidationError):
            make_prompt(version="latest")

    def test_frozen(self):
        """Test prompt versions are immutable."""
        prompt = make_prompt()

        with pytest.raises(ValidationError):
            prompt.version = "2.0.0"

    def test_str_and_retired(self):
        """Test the id@version form and the retired flag."""
        prompt = make_prompt("p", "1.2.0")

        assert str(prompt) == "p@1.2.0"
        assert not prompt.is_retired


def test_circuit_state_ordinal():
    """Test breaker states map to gauge values."""
    assert [CircuitState.get_ordinal(s) for s in (CircuitState.CLOSED, CircuitState.HALF_OPEN, CircuitState.OPEN)] == [
        0,
        1,
        2,
    ]


def test_completion_response_total_tokens():
    """Test total_tokens sums the reported counts."""
    assert CompletionResponse(content="", model="m", prompt_tokens=3).total_tokens == 3
    assert CompletionResponse(content="", model="m").total_tokens is None


def test_metric_alerts_any():
    """Test any() reflects a single raised alert."""
    assert not MetricAlerts().any()
    assert MetricAlerts(latency_increased=True).any()


def test_determinism_config_helpers():
    """Test DeterminismConfig copy helpers."""
    config = DeterminismConfig(temperature=0.1, model="m", timeout_ms=2500)

    assert config.timeout_s == 2.5
    assert config.with_changes(seed=1).seed == 1
    assert config.to_dict()["model"] == "m"
