"""
Target triple modeling and host detection for fuelup.

A target triple names the platform a pre-built binary runs on, combining
CPU architecture, vendor, operating system and ABI (for example
``x86_64-unknown-linux-gnu`` or ``aarch64-apple-darwin``).

Usage:
    from fuelup.core.platform import TargetTriple

    target = TargetTriple.from_host()
    print(f"Installing binaries for {target}")
"""

import functools
import platform
import re
import subprocess
from dataclasses import dataclass

from fuelup.core.exceptions import PlatformError

_TRIPLE_PATTERN = re.compile(
    r"^(?P<arch>x86_64|aarch64)-(?:unknown-linux-(?:gnu|musl)|apple-darwin)$"
)


@dataclass(frozen=True, order=True)
class TargetTriple:
    """
    Opaque platform identifier string.

    Attributes:
        value: Triple text, e.g. 'x86_64-unknown-linux-gnu'
    """

    value: str

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_host(cls) -> "TargetTriple":
        """
        Detect the target triple of the running host.

        This is the single authoritative host-detection routine; the
        result is cached for the lifetime of the process.

        Raises:
            PlatformError: If the host OS or architecture is unsupported
        """
        return _detect_host_triple()

    @staticmethod
    def is_known(text: str) -> bool:
        """Whether ``text`` has the shape of a target triple fuelup publishes for."""
        return _TRIPLE_PATTERN.match(text) is not None


@functools.lru_cache(maxsize=1)
def _detect_host_triple() -> TargetTriple:
    arch = _detect_architecture()
    system = platform.system().lower()

    if system == "linux":
        return TargetTriple(f"{arch}-unknown-linux-{_detect_linux_abi()}")
    elif system == "darwin":
        return TargetTriple(f"{arch}-apple-darwin")
    raise PlatformError(f"Unsupported operating system: {platform.system()}")


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x86_64' or 'aarch64'

    Raises:
        PlatformError: If the architecture is not supported
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x86_64"
    elif machine in ("aarch64", "arm64"):
        return "aarch64"
    raise PlatformError(f"Unsupported architecture: {platform.machine()}")


def _detect_linux_abi() -> str:
    """
    Detect the Linux C library flavor.

    Returns:
        'musl' when ldd reports musl, otherwise 'gnu'
    """
    try:
        result = subprocess.run(
            ["ldd", "--version"], capture_output=True, text=True, timeout=5
        )
    except (OSError, subprocess.SubprocessError):
        return "gnu"

    output = result.stdout.lower() + result.stderr.lower()
    return "musl" if "musl" in output else "gnu"


def clear_host_cache():
    """
    Clear the host detection cache.

    This forces the next call to TargetTriple.from_host() to re-detect.
    """
    _detect_host_triple.cache_clear()


__all__ = [
    "TargetTriple",
    "clear_host_cache",
]
