"""
fuelup CLI argument parser.

This module implements the command-line interface for fuelup using argparse.
"""

import argparse
import importlib
import logging
import sys
from typing import List, Optional

from fuelup import __version__
from fuelup.core.exceptions import FuelupError

logger = logging.getLogger(__name__)


class CLI:
    """fuelup command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="fuelup",
            description="fuelup - Fuel toolchain manager",
            epilog='Use "fuelup COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument("--version", action="version", version=f"fuelup {__version__}")
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_toolchain_command(subparsers)
        self._add_default_command(subparsers)
        self._add_channel_command(subparsers)

        return parser

    def _add_toolchain_command(self, subparsers):
        """Add 'toolchain' subcommand."""
        parser = subparsers.add_parser(
            "toolchain",
            help="Install, uninstall or create toolchains",
            description="Manage installed toolchains",
        )
        toolchain_subparsers = parser.add_subparsers(
            dest="toolchain_command", metavar="SUBCOMMAND"
        )

        install = toolchain_subparsers.add_parser(
            "install",
            help="Install a distributable toolchain",
            description="Install a distributable toolchain (latest, nightly, nightly-YYYY-MM-DD)",
        )
        install.add_argument("name", metavar="TOOLCHAIN", help="Toolchain to install")

        uninstall = toolchain_subparsers.add_parser(
            "uninstall", help="Remove a toolchain"
        )
        uninstall.add_argument("name", metavar="TOOLCHAIN", help="Toolchain to remove")

        new = toolchain_subparsers.add_parser(
            "new",
            help="Create an empty custom toolchain",
            description="Create a new custom toolchain and set it as the default",
        )
        new.add_argument("name", metavar="NAME", help="Custom toolchain name")

    def _add_default_command(self, subparsers):
        """Add 'default' subcommand."""
        parser = subparsers.add_parser(
            "default",
            help="Show or set the default toolchain",
            description="Print the default toolchain, or switch to TOOLCHAIN",
        )
        parser.add_argument(
            "name", nargs="?", metavar="TOOLCHAIN", help="Toolchain to make the default"
        )

    def _add_channel_command(self, subparsers):
        """Add 'channel' subcommand."""
        parser = subparsers.add_parser(
            "channel", help="Build channel manifests", description="Channel tooling"
        )
        channel_subparsers = parser.add_subparsers(dest="channel_command", metavar="SUBCOMMAND")

        build = channel_subparsers.add_parser(
            "build",
            help="Build a channel manifest",
            description="Build the 'latest' or 'nightly' channel manifest from published releases",
        )
        build.add_argument("channel", choices=["latest", "nightly"], help="Channel to build")
        build.add_argument("out_file", metavar="OUT_FILE", help="Manifest output path")
        build.add_argument("github_run_id", metavar="GITHUB_RUN_ID", help="CI run id")
        build.add_argument(
            "publish_date", metavar="PUBLISH_DATE", help="Value of the manifest's date field"
        )
        build.add_argument(
            "versions",
            nargs="*",
            metavar="NAME=VERSION",
            help="Component versions (required for forc and fuel-core on 'latest')",
        )
        build.add_argument(
            "--date",
            metavar="YYYY-MM-DD",
            help="Build date used to select the nightly release [default: today]",
        )

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except FuelupError as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                logger.debug("Traceback:", exc_info=True)
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(level=level, format=format_str, force=True)

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "toolchain": "fuelup.cli.commands.toolchain",
            "default": "fuelup.cli.commands.default",
            "channel": "fuelup.cli.commands.channel",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
