"""
Default toolchain pointer persistence.

The pointer lives in ``<home>/settings.yaml``::

    default_toolchain: latest-x86_64-unknown-linux-gnu

Writes are atomic and serialized with a file lock next to the settings
file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from filelock import FileLock

from fuelup.core.exceptions import ConfigError
from fuelup.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_TOOLCHAIN_KEY = "default_toolchain"


class SettingsFile:
    """
    Reads and writes ``settings.yaml``.

    Attributes:
        path: Path to the settings file
    """

    def __init__(self, path: Path, lock_timeout: float = 30):
        self.path = Path(path)
        self.lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid settings file {self.path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file must be a mapping: {self.path}")
        return data

    def _write(self, data: Dict[str, Any]):
        atomic_write(self.path, yaml.safe_dump(data, sort_keys=True))

    def get_default(self) -> Optional[str]:
        """Name of the default toolchain, or None when unset."""
        value = self._read().get(DEFAULT_TOOLCHAIN_KEY)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"'{DEFAULT_TOOLCHAIN_KEY}' must be a string: {self.path}")
        return value

    def set_default(self, name: Optional[str]):
        """
        Point the default at ``name``, or clear it when ``name`` is None.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.lock:
            data = self._read()
            if name is None:
                data.pop(DEFAULT_TOOLCHAIN_KEY, None)
                logger.debug("Cleared default toolchain")
            else:
                data[DEFAULT_TOOLCHAIN_KEY] = name
                logger.debug(f"Default toolchain set to {name}")
            self._write(data)
