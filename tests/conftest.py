"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from unittest.mock import AsyncMock

import pytest

from llm_safety.config import Settings
from llm_safety.models.prompt_version import PromptVersion

from tests.fixtures.builders import GREETING_SCHEMA, make_prompt


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing."""
    return Settings(
        # === Application ===
        APP_NAME="LLM Safety Layer (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        # === Completion Service ===
        COMPLETION_BASE_URL="http://localhost:11434",
        COMPLETION_TIMEOUT=5,
        # === Retry ===
        RETRY_MAX_RETRIES=2,
        RETRY_INITIAL_DELAY_MS=10,
        RETRY_MAX_DELAY_MS=100,
        # === Registry ===
        REGISTRY_BACKEND="memory",
        REDIS_URL="redis://localhost:6379/0",
        # === Monitoring ===
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def greeting_prompt() -> PromptVersion:
    return make_prompt(output_schema=GREETING_SCHEMA)


@pytest.fixture
def no_sleep(monkeypatch):
    """Replace the retry backoff sleep with an AsyncMock."""
    sleep = AsyncMock()
    monkeypatch.setattr("llm_safety.retry.engine.asyncio.sleep", sleep)
    return sleep
