"""
Channel manifest construction.

Builds the ``latest`` or ``nightly`` channel by enumerating published
release artifacts, hashing each one and recording its URL and digest.
An artifact that cannot be fetched is reported as a SkippedTarget and
left out of the manifest; the rest of the build continues.

Example:
    >>> builder = ChannelBuilder(ReleaseClient())
    >>> result = builder.build(
    ...     "latest",
    ...     ComponentRegistry().list_publishable(),
    ...     date=datetime.date(2023, 1, 11),
    ...     published_by=published_by_url("3912001"),
    ...     versions={"forc": "0.33.1", "fuel-core": "0.15.1"},
    ... )
    >>> for skipped in result.skipped:
    ...     print(skipped)
"""

import datetime
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import requests

from fuelup.channel.model import (
    LATEST,
    NIGHTLY,
    Channel,
    HashedBinary,
    Package,
    validate_version,
)
from fuelup.channel.releases import ReleaseClient, tarball_name
from fuelup.components.registry import FORC, FUEL_CORE, Component
from fuelup.core.download import RetryPolicy, StreamingHasher, download
from fuelup.core.exceptions import ChannelError, NetworkError

logger = logging.getLogger(__name__)

NIGHTLY_RELEASES_REPO = "sway-nightly-binaries"
MANDATORY_LATEST_COMPONENTS = (FORC, FUEL_CORE)


def published_by_url(run_id: str) -> str:
    return f"https://github.com/FuelLabs/fuelup/actions/runs/{run_id}"


@dataclass(frozen=True)
class SkippedTarget:
    """A (component, target) pair left out of a manifest."""

    component: str
    target: str
    url: str
    reason: str

    def __str__(self) -> str:
        return f"{self.component} [{self.target}]: {self.reason}"


@dataclass
class BuildResult:
    """Result of a channel build."""

    channel: Channel
    skipped: List[SkippedTarget] = field(default_factory=list)


def validate_components(channel: str, versions: Dict[str, str]) -> None:
    """
    Check the explicit versions supplied for a channel build.

    Raises:
        ChannelError: If versions are given for 'nightly', mandatory
            versions are missing for 'latest', or the channel is unknown
    """
    if channel == NIGHTLY:
        if versions:
            raise ChannelError("Cannot specify versions when building 'nightly' channel")
    elif channel == LATEST:
        if not all(name in versions for name in MANDATORY_LATEST_COMPONENTS):
            raise ChannelError(
                "You must specify versions for 'forc' and 'fuel-core' "
                "when building 'latest' channel"
            )
    else:
        raise ChannelError(f"Invalid channel '{channel}'")


def parse_nightly_asset(asset_name: str, tarball_prefix: str) -> Optional[Tuple[str, str]]:
    """
    Split a nightly asset name into (version, target).

    Example:
        >>> parse_nightly_asset(
        ...     "fuel-core-0.15.1+nightly.20230111.a5514420e5-x86_64-unknown-linux-gnu.tar.gz",
        ...     "fuel-core",
        ... )
        ('0.15.1+nightly.20230111.a5514420e5', 'x86_64-unknown-linux-gnu')

    Returns:
        None if the asset does not belong to ``tarball_prefix``
    """
    if not asset_name.startswith(tarball_prefix + "-"):
        return None

    remainder = asset_name[len(tarball_prefix) + 1:]
    version, sep, tarball = remainder.partition("-")
    if not sep or not version:
        return None
    target, sep, _ = tarball.partition(".")
    if not sep or not target:
        return None
    return version, target


class ChannelBuilder:
    """
    Builds channel manifests from published releases.

    Attributes:
        client: Release API client
        session: HTTP session used to fetch artifacts for hashing
        policy: Retry policy for artifact fetches
    """

    def __init__(
        self,
        client: ReleaseClient,
        session: Optional[requests.Session] = None,
        policy: Optional[RetryPolicy] = None,
        timeout: float = 30,
    ):
        self.client = client
        self.session = session or client.session
        self.policy = policy or RetryPolicy()
        self.timeout = timeout

    def build(
        self,
        channel: str,
        components: Iterable[Component],
        date: datetime.date,
        published_by: str,
        publish_date: Optional[str] = None,
        versions: Optional[Dict[str, str]] = None,
    ) -> BuildResult:
        """
        Build a channel manifest.

        Args:
            channel: 'latest' or 'nightly'
            components: Publishable components to include
            date: Build date; selects the nightly release tag
            published_by: Value of the manifest's published_by field
            publish_date: Value of the manifest's date field, defaults to ``date``
            versions: Explicit component versions (latest only)

        Returns:
            BuildResult with the channel and every skipped target

        Raises:
            ChannelError: If the request is invalid
            NetworkError: If release metadata cannot be fetched
        """
        versions = dict(versions or {})
        validate_components(channel, versions)

        result = BuildResult(
            channel=Channel(
                published_by=published_by,
                date=publish_date if publish_date is not None else date.isoformat(),
            )
        )

        if channel == NIGHTLY:
            self._write_nightly(result, list(components), date)
        else:
            self._write_latest(result, list(components), versions)

        if result.skipped:
            logger.warning(f"Skipped {len(result.skipped)} target(s) while building '{channel}'")
        return result

    def _hash_artifact(self, url: str) -> str:
        hasher = StreamingHasher()
        download(url, hasher, session=self.session, policy=self.policy, timeout=self.timeout)
        return hasher.finalize()

    def _add_target(
        self, result: BuildResult, component: str, package: Package, target: str, url: str
    ):
        try:
            digest = self._hash_artifact(url)
        except NetworkError as e:
            logger.error(f"Error adding url and hash for target '{target}':\n{e}")
            result.skipped.append(
                SkippedTarget(component=component, target=target, url=url, reason=str(e))
            )
            return

        logger.info(f"url: {url}\nhash: {digest}")
        package.target[target] = HashedBinary(url=url, hash=digest)

    def _write_nightly(
        self, result: BuildResult, components: List[Component], date: datetime.date
    ):
        tag = f"nightly-{date:%Y%m%d}"
        release = self.client.release_by_tag(NIGHTLY_RELEASES_REPO, tag)

        for asset in release.assets:
            for component in components:
                parsed = parse_nightly_asset(asset.name, component.tarball_prefix)
                if parsed is None:
                    continue

                version, target = parsed
                logger.info(f"Writing package info for component '{component.name}'")
                try:
                    validate_version(version)
                except ChannelError as e:
                    logger.warning(f"Skipping asset '{asset.name}': {e}")
                    result.skipped.append(
                        SkippedTarget(
                            component=component.name,
                            target=target,
                            url=asset.browser_download_url,
                            reason=str(e),
                        )
                    )
                    continue

                package = result.channel.pkg.setdefault(component.name, Package(version=version))
                package.version = version
                self._add_target(
                    result, component.name, package, target, asset.browser_download_url
                )

    def _write_latest(
        self, result: BuildResult, components: List[Component], versions: Dict[str, str]
    ):
        for component in components:
            logger.info(f"Writing package info for component '{component.name}'")
            if component.name in versions:
                version = validate_version(versions[component.name])
            else:
                version = self.client.latest_version(component.repository_name)

            package = Package(version=version)
            result.channel.pkg[component.name] = package

            for target in sorted(component.targets):
                logger.info(f"Adding url and hash for target '{target}'")
                tarball = tarball_name(component.tarball_prefix, version, target)
                url = self.client.download_url(component.repository_name, version, tarball)
                self._add_target(result, component.name, package, str(target), url)
