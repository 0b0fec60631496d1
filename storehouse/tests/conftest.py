"""
Test configuration and fixtures for the storehouse test suite.

Most tests run against a MemoryNetwork holding a few chests and one actor
inventory named turtle_1. Call-counting doubles are built with MagicMock.
"""

import os
from collections.abc import Generator

import pytest

os.environ.setdefault("STOREHOUSE_LOG_ENABLED", "false")

from storehouse.config import reset_config  # noqa: E402
from storehouse.tests.fixtures.storage_fixtures import actor, chest_refs, network, router  # noqa: E402,F401


@pytest.fixture(autouse=True)
def reset_config_singleton() -> Generator[None, None, None]:
    """Reset the config cache before and after each test."""
    reset_config()
    yield
    reset_config()
