"""
Channel command implementation.

Builds a channel manifest from published releases and writes it to disk.
"""

import datetime
import logging
from pathlib import Path
from typing import Dict, List

from fuelup.channel.builder import ChannelBuilder, published_by_url
from fuelup.channel.releases import ReleaseClient
from fuelup.components.registry import ComponentRegistry
from fuelup.core.config import load_config
from fuelup.core.directory import get_fuelup_home
from fuelup.core.download import RetryPolicy, create_session
from fuelup.core.exceptions import ChannelError
from fuelup.core.filesystem import atomic_write

logger = logging.getLogger(__name__)


def parse_versions(pairs: List[str], registry: ComponentRegistry) -> Dict[str, str]:
    """
    Parse ``name=version`` arguments.

    Raises:
        ChannelError: If a pair is malformed or names an unknown component
    """
    versions = {}
    for pair in pairs:
        name, sep, version = pair.partition("=")
        if not sep or not name or not version:
            raise ChannelError(f"Invalid component version '{pair}', expected NAME=VERSION")
        if registry.lookup(name) is None:
            raise ChannelError(f"Unrecognized component: {name}")
        versions[name] = version
    return versions


def _parse_build_date(text) -> datetime.date:
    if text is None:
        return datetime.date.today()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError as e:
        raise ChannelError(f"Invalid build date '{text}', expected YYYY-MM-DD") from e


def run(args) -> int:
    """
    Run the channel command.

    Args:
        args: Parsed command-line arguments with:
            - channel_command: build
            - channel, out_file, github_run_id, publish_date, versions, date

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if getattr(args, "channel_command", None) != "build":
        print("Error: Specify a channel subcommand: build")
        return 1

    registry = ComponentRegistry()
    versions = parse_versions(args.versions, registry)
    build_date = _parse_build_date(args.date)

    config = load_config(get_fuelup_home() / "config.yaml")
    session = create_session()
    client = ReleaseClient(
        session=session,
        api_url=config.github_api_url,
        owner=config.github_owner,
        timeout=config.download.timeout,
    )
    builder = ChannelBuilder(
        client,
        session=session,
        policy=RetryPolicy.from_config(config.download),
        timeout=config.download.timeout,
    )

    result = builder.build(
        args.channel,
        registry.list_publishable(),
        date=build_date,
        published_by=published_by_url(args.github_run_id),
        publish_date=args.publish_date,
        versions=versions,
    )

    out_file = Path(args.out_file)
    atomic_write(out_file, result.channel.to_toml())
    print(f"Wrote '{args.channel}' channel to {out_file}")

    if result.skipped:
        print("Skipped targets:")
        for skipped in result.skipped:
            print(f"  {skipped}")
    return 0
