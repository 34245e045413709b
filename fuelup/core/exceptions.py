"""
Centralized exception hierarchy for fuelup.

Every error raised by the acquisition-and-installation pipeline derives
from FuelupError so the CLI can report it uniformly.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class FuelupError(Exception):
    """Base exception for all fuelup errors."""

    pass


class ConfigError(FuelupError):
    """Configuration or settings file is malformed."""

    pass


# ============================================================================
# Resolution Exceptions
# ============================================================================


class ResolutionError(FuelupError):
    """Malformed or disallowed toolchain descriptor or name."""

    pass


class UnsupportedTargetError(ResolutionError):
    """Raised when a distributable descriptor pins a target triple."""

    def __init__(self, descriptor: str, target: str):
        self.descriptor = descriptor
        self.target = target
        super().__init__(
            f"Invalid toolchain metadata within input '{descriptor}' - "
            f"You specified target '{target}': specifying a target is not supported yet."
        )


class ToolchainNameCollisionError(ResolutionError):
    """Raised when a custom toolchain name collides with a distributable name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot use distributable toolchain name '{name}' as a custom toolchain name"
        )


class PlatformError(ResolutionError):
    """Host target triple could not be determined."""

    pass


# ============================================================================
# Network Exceptions
# ============================================================================


class NetworkError(FuelupError):
    """Transport failure or unexpected HTTP status."""

    def __init__(
        self, message: str, url: str = "", status_code: Optional[int] = None
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(NetworkError):
    """Artifact kept returning 404 after every retry."""

    pass


# ============================================================================
# Integrity and Filesystem Exceptions
# ============================================================================


class IntegrityError(FuelupError):
    """Downloaded artifact does not match its published sha256 hash."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Attempt to verify sha256 checksum failed:\n"
            f"downloaded file: {actual}\n"
            f"published sha256 hash: {expected}"
        )


class FilesystemError(FuelupError):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Channel and Toolchain Exceptions
# ============================================================================


class ChannelError(FuelupError):
    """Channel manifest is malformed or cannot be built."""

    pass


class ToolchainNotFoundError(FuelupError):
    """Raised when a toolchain directory does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"toolchain '{name}' does not exist")
