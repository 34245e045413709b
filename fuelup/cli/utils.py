"""
Shared helpers for CLI commands.
"""

import logging

from fuelup.core.config import load_config
from fuelup.core.directory import ensure_home_structure
from fuelup.toolchain.installer import ToolchainManager

logger = logging.getLogger(__name__)


def create_manager() -> ToolchainManager:
    """ToolchainManager for the current fuelup home and its config.yaml."""
    home = ensure_home_structure()
    config = load_config(home / "config.yaml")
    return ToolchainManager(home=home, config=config)
