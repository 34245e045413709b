"""
Fixtures for CLI tests.
"""

import logging
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger():
    """CLI.run reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli_home(fuelup_home, host):
    """fuelup home with host detection pinned to the test host."""
    with patch("fuelup.core.platform._detect_host_triple", return_value=host):
        yield fuelup_home
