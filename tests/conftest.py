"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from devsetup.adapters.mock import FakeEnvironment, MockRunner


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_env() -> FakeEnvironment:
    """A Linux machine, not root, no sudo, home /home/dev."""
    return FakeEnvironment()


@pytest.fixture
def mock_runner() -> MockRunner:
    """A runner where every command succeeds with empty output."""
    return MockRunner()
