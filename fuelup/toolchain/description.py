"""
Toolchain descriptor resolution.

Accepted descriptor forms:

- ``latest``
- ``nightly``
- ``nightly-YYYY-MM-DD``
- anything else: a custom toolchain name

Distributable descriptors are bound to the host target triple. Pinning a
target in the descriptor (``nightly-2022-08-31-x86_64-apple-darwin``) is
rejected.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Optional, Union

from fuelup.channel.model import DISTRIBUTABLE_CHANNELS, NIGHTLY
from fuelup.core.exceptions import (
    ResolutionError,
    ToolchainNameCollisionError,
    UnsupportedTargetError,
)
from fuelup.core.platform import TargetTriple

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_DATE_LENGTH = len("YYYY-MM-DD")


@dataclass(frozen=True)
class DistToolchainDescription:
    """A distributable toolchain: channel, optional date and target."""

    name: str
    target: TargetTriple
    date: Optional[datetime.date] = None

    def __str__(self) -> str:
        if self.date is None:
            return f"{self.name}-{self.target}"
        return f"{self.name}-{self.date.isoformat()}-{self.target}"


@dataclass(frozen=True)
class CustomToolchainDescription:
    """A user-created toolchain identified only by its name."""

    name: str

    def __str__(self) -> str:
        return self.name


ToolchainDescription = Union[DistToolchainDescription, CustomToolchainDescription]


def _parse_date(text: str) -> Optional[datetime.date]:
    if len(text) != _DATE_LENGTH:
        return None
    try:
        return datetime.datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        return None


def _is_target(text: str, host: TargetTriple) -> bool:
    return text == str(host) or TargetTriple.is_known(text)


def resolve(descriptor: str, host: Optional[TargetTriple] = None) -> ToolchainDescription:
    """
    Resolve a textual descriptor.

    Args:
        descriptor: Descriptor text
        host: Host target triple, detected when not given

    Returns:
        DistToolchainDescription or CustomToolchainDescription

    Raises:
        UnsupportedTargetError: If a target triple is pinned
        ResolutionError: If a nightly date cannot be parsed or the name is
            not usable as a directory name
        PlatformError: If the host triple cannot be detected
    """
    if descriptor in DISTRIBUTABLE_CHANNELS:
        return DistToolchainDescription(name=descriptor, target=host or TargetTriple.from_host())

    for channel in DISTRIBUTABLE_CHANNELS:
        prefix = channel + "-"
        if not descriptor.startswith(prefix):
            continue

        rest = descriptor[len(prefix):]
        if channel == NIGHTLY:
            return _resolve_dated_nightly(descriptor, rest, host)

        host = host or TargetTriple.from_host()
        if _is_target(rest, host):
            raise UnsupportedTargetError(descriptor, rest)

    _check_directory_name(descriptor)
    return CustomToolchainDescription(name=descriptor)


def _resolve_dated_nightly(
    descriptor: str, rest: str, host: Optional[TargetTriple]
) -> DistToolchainDescription:
    date = _parse_date(rest[:_DATE_LENGTH])
    remainder = rest[_DATE_LENGTH:]

    if date is None:
        host = host or TargetTriple.from_host()
        if _is_target(rest, host):
            raise UnsupportedTargetError(descriptor, rest)
        raise ResolutionError(
            f"Invalid toolchain metadata within input '{descriptor}' - "
            f"Invalid date '{rest[:_DATE_LENGTH]}', expected YYYY-MM-DD"
        )

    if remainder:
        if remainder.startswith("-"):
            raise UnsupportedTargetError(descriptor, remainder[1:])
        raise ResolutionError(
            f"Invalid toolchain metadata within input '{descriptor}' - "
            f"Unexpected trailing input '{remainder}'"
        )

    return DistToolchainDescription(
        name=NIGHTLY, target=host or TargetTriple.from_host(), date=date
    )


def _check_directory_name(name: str):
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ResolutionError(f"Invalid toolchain name '{name}'")


def is_distributable_name(name: str, host: TargetTriple) -> bool:
    """
    Whether ``name`` is, or could be mistaken for, a distributable
    toolchain name: a channel name, optionally followed by a date and/or
    a target triple.
    """
    if name in DISTRIBUTABLE_CHANNELS:
        return True

    for channel in DISTRIBUTABLE_CHANNELS:
        prefix = channel + "-"
        if not name.startswith(prefix):
            continue
        rest = name[len(prefix):]
        if _is_target(rest, host):
            return True
        if channel == NIGHTLY and _parse_date(rest[:_DATE_LENGTH]) is not None:
            return True
    return False


def validate_custom_name(name: str, host: Optional[TargetTriple] = None) -> str:
    """
    Check that ``name`` may be used for a custom toolchain.

    Raises:
        ToolchainNameCollisionError: If it collides with a distributable name
        ResolutionError: If it is not a valid directory name
    """
    _check_directory_name(name)
    if is_distributable_name(name, host or TargetTriple.from_host()):
        raise ToolchainNameCollisionError(name)
    return name


def format_toolchain_with_target(descriptor: str, host: Optional[TargetTriple] = None) -> str:
    """
    Full toolchain directory name for a descriptor.

    Example:
        >>> format_toolchain_with_target("latest", TargetTriple("x86_64-apple-darwin"))
        'latest-x86_64-apple-darwin'
    """
    return str(resolve(descriptor, host))
