"""
Channel manifest model.

A channel manifest is a TOML document::

    published_by = "https://github.com/FuelLabs/fuelup/actions/runs/1"
    date = "2023-01-11"

    [pkg.forc]
    version = "0.33.1"

    [pkg.forc.target.x86_64-unknown-linux-gnu]
    url = "https://github.com/FuelLabs/sway/releases/download/v0.33.1/forc-binaries-x86_64-unknown-linux-gnu.tar.gz"
    hash = "5a4b..."

Serialization is deterministic: packages and targets are emitted in
sorted order, ``version`` precedes the target tables, and ``url``
precedes ``hash``. Packages without targets emit no target tables.
"""

import datetime
import logging
import re
import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import requests
from packaging.version import Version

from fuelup.core.config import DEFAULT_CHANNEL_BASE_URL
from fuelup.core.download import RetryPolicy, StreamingHasher, download
from fuelup.core.exceptions import ChannelError
from fuelup.core.platform import TargetTriple

logger = logging.getLogger(__name__)

LATEST = "latest"
NIGHTLY = "nightly"
DISTRIBUTABLE_CHANNELS = (LATEST, NIGHTLY)

_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")
_SHA256_HEX = re.compile(r"^[0-9a-fA-F]{64}$")
_SEMVER = re.compile(
    r"^(?P<core>(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*))"
    r"(?:-(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_TOML_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def validate_version(text: str) -> str:
    """
    Check that ``text`` is a semantic version (``MAJOR.MINOR.PATCH``
    with optional pre-release and build metadata).

    Returns:
        ``text`` unchanged, so manifests keep their exact spelling

    Raises:
        ChannelError: If the version is not a semantic version
    """
    if not _SEMVER.fullmatch(text):
        raise ChannelError(f"Invalid version '{text}': not a semantic version")
    return text


@dataclass(frozen=True)
class HashedBinary:
    """Download location of one artifact and its lowercase hex sha256."""

    url: str
    hash: str


@dataclass
class Package:
    """One component's release inside a channel."""

    version: str
    target: Dict[str, HashedBinary] = field(default_factory=dict)

    @property
    def parsed_version(self) -> Version:
        """Release core of the version, without pre-release or build metadata."""
        match = _SEMVER.fullmatch(self.version)
        if not match:
            raise ChannelError(f"Invalid version '{self.version}': not a semantic version")
        return Version(match.group("core"))

    def lookup_target(self, target: TargetTriple) -> Optional[HashedBinary]:
        """Artifact published for ``target``, or None when absent."""
        return self.target.get(str(target))


@dataclass
class Channel:
    """A published release channel."""

    published_by: str = ""
    date: str = ""
    pkg: Dict[str, Package] = field(default_factory=dict)

    def lookup(self, name: str) -> Optional[Package]:
        """Package for component ``name``, or None when absent."""
        return self.pkg.get(name)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_toml(cls, text: str) -> "Channel":
        """
        Parse a channel manifest.

        Raises:
            ChannelError: If the document is not valid TOML or does not
                follow the manifest layout
        """
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ChannelError(f"Invalid channel manifest: {e}") from e

        published_by = _expect_str(data.get("published_by", ""), "published_by")
        date = _expect_str(data.get("date", ""), "date")

        pkg_data = data.get("pkg", {})
        if not isinstance(pkg_data, dict):
            raise ChannelError("'pkg' must be a table")

        pkg = {name: _parse_package(name, entry) for name, entry in pkg_data.items()}
        return cls(published_by=published_by, date=date, pkg=pkg)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_toml(self) -> str:
        """Serialize the channel, header fields included."""
        lines = [
            f"published_by = {_toml_string(self.published_by)}",
            f"date = {_toml_string(self.date)}",
        ]

        for name in sorted(self.pkg):
            package = self.pkg[name]
            pkg_key = f"pkg.{_toml_key(name)}"
            lines += ["", f"[{pkg_key}]", f"version = {_toml_string(package.version)}"]

            for target in sorted(package.target):
                binary = package.target[target]
                lines += [
                    "",
                    f"[{pkg_key}.target.{_toml_key(target)}]",
                    f"url = {_toml_string(binary.url)}",
                    f"hash = {_toml_string(binary.hash)}",
                ]

        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    @classmethod
    def from_dist_channel(
        cls,
        name: str,
        date: Optional[datetime.date] = None,
        session: Optional[requests.Session] = None,
        policy: Optional[RetryPolicy] = None,
        base_url: str = DEFAULT_CHANNEL_BASE_URL,
        timeout: float = 30,
    ) -> Tuple["Channel", str]:
        """
        Fetch and parse a distributable channel.

        Args:
            name: Channel name ('latest' or 'nightly')
            date: Publish date for a dated nightly
            session: HTTP session
            policy: Retry policy for the fetch
            base_url: Base URL channels are published under
            timeout: Request timeout in seconds

        Returns:
            Tuple of (channel, sha256 of the manifest)

        Raises:
            NetworkError: If the manifest cannot be fetched
            ChannelError: If the manifest is malformed
        """
        url = channel_url(name, date, base_url)
        logger.info(f"Fetching channel manifest from {url}")

        hasher = StreamingHasher()
        data = download(url, hasher, session=session, policy=policy, timeout=timeout)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ChannelError(f"Channel manifest at {url} is not UTF-8: {e}") from e

        return cls.from_toml(text), hasher.finalize()


def channel_url(
    name: str,
    date: Optional[datetime.date] = None,
    base_url: str = DEFAULT_CHANNEL_BASE_URL,
) -> str:
    """
    URL a distributable channel manifest is published at.

    Raises:
        ChannelError: If ``name`` is not a distributable channel
    """
    if name not in DISTRIBUTABLE_CHANNELS:
        raise ChannelError(f"Invalid channel '{name}'")

    base_url = base_url.rstrip("/")
    if date is None:
        return f"{base_url}/channel-fuel-{name}.toml"
    return f"{base_url}/channels/{name}/channel-fuel-{name}-{date.isoformat()}.toml"


def _expect_str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ChannelError(f"'{where}' must be a string")
    return value


def _parse_package(name: str, entry: Any) -> Package:
    if not isinstance(entry, dict):
        raise ChannelError(f"'pkg.{name}' must be a table")
    if "version" not in entry:
        raise ChannelError(f"'pkg.{name}' is missing 'version'")

    version = validate_version(_expect_str(entry["version"], f"pkg.{name}.version"))

    targets = entry.get("target", {})
    if not isinstance(targets, dict):
        raise ChannelError(f"'pkg.{name}.target' must be a table")

    parsed = {}
    for target, binary in targets.items():
        where = f"pkg.{name}.target.{target}"
        if not isinstance(binary, dict):
            raise ChannelError(f"'{where}' must be a table")
        missing: List[str] = [k for k in ("url", "hash") if k not in binary]
        if missing:
            raise ChannelError(f"'{where}' is missing {', '.join(missing)}")

        digest = _expect_str(binary["hash"], f"{where}.hash")
        if not _SHA256_HEX.match(digest):
            raise ChannelError(f"'{where}.hash' is not a sha256 hex digest")
        parsed[target] = HashedBinary(url=_expect_str(binary["url"], f"{where}.url"), hash=digest)

    return Package(version=version, target=parsed)


def _toml_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _toml_key(key: str) -> str:
    return key if _BARE_KEY.match(key) else _toml_string(key)
