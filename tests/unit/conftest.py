"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

from unittest.mock import Mock

import pytest

from tests.fixtures.builders import FakeClock


@pytest.fixture
def mock_redis():
    """Mock Redis client for unit tests (sync)."""
    mock = Mock()
    mock.set = Mock(return_value=True)
    mock.get = Mock(return_value=None)
    mock.delete = Mock(return_value=1)
    return mock


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()

