"""
Core functionality for fuelup.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_fuelup_home,
    get_toolchains_dir,
    get_tmp_dir,
    ensure_home_structure,
)

from .platform import (
    TargetTriple,
    clear_host_cache,
)

from .exceptions import (
    FuelupError,
    ConfigError,
    ResolutionError,
    UnsupportedTargetError,
    ToolchainNameCollisionError,
    PlatformError,
    NetworkError,
    NotFoundError,
    IntegrityError,
    FilesystemError,
    ArchiveExtractionError,
    InsecureArchiveError,
    ChannelError,
    ToolchainNotFoundError,
)

__all__ = [
    "get_fuelup_home",
    "get_toolchains_dir",
    "get_tmp_dir",
    "ensure_home_structure",
    "TargetTriple",
    "clear_host_cache",
    "FuelupError",
    "ConfigError",
    "ResolutionError",
    "UnsupportedTargetError",
    "ToolchainNameCollisionError",
    "PlatformError",
    "NetworkError",
    "NotFoundError",
    "IntegrityError",
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "ChannelError",
    "ToolchainNotFoundError",
]
