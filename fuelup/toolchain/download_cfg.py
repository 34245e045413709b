"""
Download configuration for a single component.

A DownloadCfg is built either from a Package inside a fetched channel
(the published hash is always carried along) or by looking the version
up directly through the release API (no hash available).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fuelup.channel.model import LATEST, Channel, Package, validate_version
from fuelup.channel.releases import ReleaseClient, tarball_name
from fuelup.components.registry import FUELUP, ComponentRegistry
from fuelup.core.exceptions import ChannelError, NetworkError, ResolutionError
from fuelup.core.platform import TargetTriple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadCfg:
    """A resolved, ready-to-fetch component artifact."""

    name: str
    target: TargetTriple
    version: str
    tarball_name: str
    tarball_url: str
    hash: Optional[str] = None

    @classmethod
    def new(
        cls,
        name: str,
        target: TargetTriple,
        version: Optional[str] = None,
        registry: Optional[ComponentRegistry] = None,
        client: Optional[ReleaseClient] = None,
        channel: Optional[Channel] = None,
    ) -> "DownloadCfg":
        """
        Build a download configuration without a published hash.

        Args:
            name: Component name
            target: Target triple to download for
            version: Version to download, looked up when None
            registry: Component registry
            client: Release API client
            channel: Already fetched 'latest' channel used for version lookup

        Raises:
            ResolutionError: If the component is unknown or its latest
                version cannot be determined
        """
        registry = registry or ComponentRegistry()
        client = client or ReleaseClient()

        component = registry.lookup(name)
        if component is None:
            raise ResolutionError(f"Unrecognized component: {name}")

        if version is None:
            version = get_latest_version(name, registry, client, channel)
        else:
            version = validate_version(version)

        tarball = tarball_name(component.tarball_prefix, version, target)
        return cls(
            name=name,
            target=target,
            version=version,
            tarball_name=tarball,
            tarball_url=client.download_url(component.repository_name, version, tarball),
            hash=None,
        )

    @classmethod
    def from_package(
        cls,
        name: str,
        package: Package,
        target: TargetTriple,
        registry: Optional[ComponentRegistry] = None,
    ) -> Optional["DownloadCfg"]:
        """
        Build a download configuration from a channel package.

        Returns:
            The configuration, always carrying the published hash, or None
            when the package has no artifact for ``target``
        """
        binary = package.lookup_target(target)
        if binary is None:
            return None

        registry = registry or ComponentRegistry()
        component = registry.lookup(name)
        prefix = component.tarball_prefix if component else name

        return cls(
            name=name,
            target=target,
            version=package.version,
            tarball_name=tarball_name(prefix, package.version, target),
            tarball_url=binary.url,
            hash=binary.hash,
        )


def get_latest_version(
    name: str,
    registry: ComponentRegistry,
    client: ReleaseClient,
    channel: Optional[Channel] = None,
) -> str:
    """
    Latest version of a component.

    fuelup itself is always looked up through the release API. Other
    components are looked up in the 'latest' channel when one is given,
    otherwise through their repository's latest release.

    Raises:
        ResolutionError: If the version cannot be determined
    """
    component = registry.lookup(name)
    if component is None:
        raise ResolutionError(f"Unrecognized component: {name}")

    if channel is not None and name != FUELUP:
        package = channel.lookup(name)
        if package is None:
            raise ResolutionError(
                f"'{name}' is not a valid, downloadable package in the '{LATEST}' channel."
            )
        return package.version

    try:
        return client.latest_version(component.repository_name)
    except (ChannelError, NetworkError) as e:
        raise ResolutionError(f"Error getting latest tag for '{name}': {e}") from e
