"""
Default command implementation.

Prints the default toolchain, or switches it to another installed one.
"""

import logging

from fuelup.cli.utils import create_manager
from fuelup.core.exceptions import ToolchainNotFoundError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the default command.

    Args:
        args: Parsed command-line arguments with:
            - name: Toolchain to switch to, or None to print the current one

    Returns:
        Exit code (0 for success)
    """
    manager = create_manager()

    if not args.name:
        current = manager.get_default()
        if current is None:
            print("No default toolchain detected. Please install or create a toolchain first.")
        else:
            print(f"{current} (default)")
        return 0

    try:
        name = manager.set_default(args.name)
    except ToolchainNotFoundError as e:
        print(e)
        installed = manager.installed_toolchains()
        if installed:
            print("Installed toolchains:")
            for toolchain in installed:
                print(f"  {toolchain}")
        return 0

    print(f"default toolchain set to '{name}'")
    return 0
