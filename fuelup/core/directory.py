"""
Directory structure management for fuelup.

Directory Structure:
    fuelup home (~/.fuelup/ or %USERPROFILE%\\.fuelup\\, overridable
    with FUELUP_HOME):
        - toolchains/    : One directory per installed or custom toolchain
        - tmp/           : Staging area for downloads and extraction
        - settings.yaml  : Default toolchain pointer
        - config.yaml    : Optional user configuration
"""

import os
from pathlib import Path
from typing import Optional

from fuelup.core.exceptions import FilesystemError

FUELUP_HOME_ENV = "FUELUP_HOME"


def get_fuelup_home() -> Path:
    """
    Get the fuelup home directory path.

    Returns:
        Path: ``$FUELUP_HOME`` when set, otherwise
            - Windows: %USERPROFILE%\\.fuelup
            - Linux/macOS: ~/.fuelup/

    Raises:
        FilesystemError: If USERPROFILE is unset on Windows
    """
    override = os.environ.get(FUELUP_HOME_ENV)
    if override:
        return Path(override)

    if os.name == "nt":  # Windows
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise FilesystemError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine fuelup home directory."
            )
        return Path(user_profile) / ".fuelup"
    return Path.home() / ".fuelup"


def get_toolchains_dir(home: Optional[Path] = None) -> Path:
    """Directory holding every toolchain."""
    return (home or get_fuelup_home()) / "toolchains"


def get_tmp_dir(home: Optional[Path] = None) -> Path:
    """Staging directory for downloads."""
    return (home or get_fuelup_home()) / "tmp"


def ensure_home_structure(home: Optional[Path] = None) -> Path:
    """
    Create the fuelup home directory layout (idempotent).

    Args:
        home: Home directory, defaults to get_fuelup_home()

    Returns:
        The home directory path

    Raises:
        FilesystemError: If a directory cannot be created
    """
    home = home or get_fuelup_home()
    for path in (home, get_toolchains_dir(home), get_tmp_dir(home)):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Failed to create directory {path}: {e}") from e
    return home
