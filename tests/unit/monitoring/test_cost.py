"""
Unit tests for token and cost estimation.
"""

import pytest

from llm_safety.monitoring.cost import CostEstimator, TokenUsage, estimate_cost, estimate_tokens


def test_estimate_tokens():
    """Test tokens are estimated as ceil(len / 4)."""
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_priced_model():
    """Test a priced model uses its input and output rates."""
    usage = TokenUsage(prompt_tokens=1000, completion_tokens=1000)

    assert CostEstimator().estimate("gpt-4-turbo-2024-04-09", usage) == pytest.approx(0.04)


def test_unknown_model_uses_flat_rate():
    """Test unknown models fall back to the flat rate."""
    usage = TokenUsage(prompt_tokens=60, completion_tokens=40)

    assert CostEstimator(cost_per_token=0.00001).estimate("local-model", usage) == pytest.approx(0.001)


def test_estimate_cost_helper():
    """Test the module-level estimate_cost helper."""
    assert estimate_cost(None, 1000, cost_per_token=0.00001) == pytest.approx(0.01)
