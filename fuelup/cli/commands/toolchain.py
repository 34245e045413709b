"""
Toolchain command implementation.

Installs distributable toolchains, removes toolchains and creates empty
custom toolchains.
"""

import logging

from fuelup.cli.utils import create_manager
from fuelup.core.exceptions import ToolchainNotFoundError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the toolchain command.

    Args:
        args: Parsed command-line arguments with:
            - toolchain_command: install, uninstall or new
            - name: Toolchain descriptor or name

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    handlers = {
        "install": _install,
        "uninstall": _uninstall,
        "new": _new,
    }
    handler = handlers.get(getattr(args, "toolchain_command", None))
    if handler is None:
        print("Error: Specify one of: install, uninstall, new")
        print("Use 'fuelup toolchain --help' for more information")
        return 1

    return handler(args.name)


def _install(name: str) -> int:
    manager = create_manager()
    result = manager.install(name)

    print()
    print(f"Installed toolchain '{result.toolchain}':")
    for cfg in result.installed:
        print(f"  - {cfg.name} {cfg.version}")
    return 0


def _uninstall(name: str) -> int:
    manager = create_manager()
    try:
        removed = manager.uninstall(name)
    except ToolchainNotFoundError as e:
        print(e)
        return 0

    print(f"toolchain '{removed}' uninstalled")
    return 0


def _new(name: str) -> int:
    manager = create_manager()
    path = manager.new(name)

    print(f"New toolchain initialized: {name}")
    logger.debug(f"Toolchain directory: {path}")
    return 0
