"""
Release API client.

Two read-only endpoints are consumed:

- ``GET /repos/{owner}/{repo}/releases/latest`` returning
  ``{url, tag_name, name}`` where ``tag_name`` is ``v<version>``
- ``GET /repos/{owner}/{repo}/releases/tags/{tag}`` returning
  ``{assets: [{browser_download_url, name}]}``
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import RequestException

from fuelup.channel.model import validate_version
from fuelup.core.config import DEFAULT_GITHUB_API_URL, DEFAULT_GITHUB_OWNER
from fuelup.core.download import create_session
from fuelup.core.exceptions import ChannelError, NetworkError

logger = logging.getLogger(__name__)

GITHUB_URL = "https://github.com"
FORC_BINARIES = "forc-binaries"


def tarball_name(tarball_prefix: str, version: str, target: Any) -> str:
    """
    File name of a component tarball.

    ``forc-binaries`` tarballs carry no version in their name.
    """
    if tarball_prefix == FORC_BINARIES:
        return f"{tarball_prefix}-{target}.tar.gz"
    return f"{tarball_prefix}-{version}-{target}.tar.gz"


@dataclass
class LatestRelease:
    url: str
    tag_name: str
    name: str

    @property
    def version(self) -> str:
        """Version encoded in ``tag_name`` without its ``v`` prefix."""
        if not self.tag_name.startswith("v"):
            raise ChannelError(f"Release tag '{self.tag_name}' is not v-prefixed")
        return validate_version(self.tag_name[len("v"):])


@dataclass
class Asset:
    browser_download_url: str
    name: str


@dataclass
class Release:
    assets: List[Asset] = field(default_factory=list)


class ReleaseClient:
    """
    Queries published releases of a repository owner.

    Example:
        >>> client = ReleaseClient()
        >>> client.latest_version("fuel-core")
        '0.15.1'
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        api_url: str = DEFAULT_GITHUB_API_URL,
        owner: str = DEFAULT_GITHUB_OWNER,
        timeout: float = 30,
    ):
        self.session = session or create_session()
        self.api_url = api_url.rstrip("/")
        self.owner = owner
        self.timeout = timeout

    def _get_json(self, url: str) -> Dict[str, Any]:
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except RequestException as e:
            raise NetworkError(f"Unexpected error: {e}", url=url) from e

        if response.status_code >= 400:
            raise NetworkError(
                f"Unexpected error: HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ChannelError(f"Invalid JSON response from {url}: {e}") from e
        if not isinstance(data, dict):
            raise ChannelError(f"Unexpected response shape from {url}")
        return data

    def latest_release(self, repo: str) -> LatestRelease:
        """Latest published release of ``repo``."""
        url = f"{self.api_url}/repos/{self.owner}/{repo}/releases/latest"
        data = self._get_json(url)
        try:
            return LatestRelease(
                url=data["url"], tag_name=data["tag_name"], name=data["name"]
            )
        except KeyError as e:
            raise ChannelError(f"Release response from {url} is missing {e}") from e

    def latest_version(self, repo: str) -> str:
        """Version of the latest release of ``repo``."""
        return self.latest_release(repo).version

    def release_by_tag(self, repo: str, tag: str) -> Release:
        """Release of ``repo`` tagged ``tag``."""
        url = f"{self.api_url}/repos/{self.owner}/{repo}/releases/tags/{tag}"
        data = self._get_json(url)
        try:
            assets = [
                Asset(browser_download_url=a["browser_download_url"], name=a["name"])
                for a in data.get("assets", [])
            ]
        except (KeyError, TypeError) as e:
            raise ChannelError(f"Malformed asset list from {url}: {e}") from e
        return Release(assets=assets)

    def download_url(self, repo: str, version: str, tarball: str) -> str:
        """Canonical download URL of a release tarball."""
        return f"{GITHUB_URL}/{self.owner}/{repo}/releases/download/v{version}/{tarball}"
