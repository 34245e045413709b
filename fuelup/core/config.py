"""YAML configuration loader for fuelup.

Reads the optional ``config.yaml`` from the fuelup home directory. Every
key is optional and falls back to the built-in defaults below.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from fuelup.core.directory import get_fuelup_home
from fuelup.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_BASE_URL = "https://raw.githubusercontent.com/FuelLabs/fuelup/gh-pages"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_GITHUB_OWNER = "FuelLabs"


@dataclass
class DownloadConfig:
    """Retry and timeout settings for the download engine."""

    max_attempts: int = 4
    retry_delay: float = 3.0
    timeout: float = 30.0


@dataclass
class FuelupConfig:
    """Complete fuelup configuration."""

    channel_base_url: str = DEFAULT_CHANNEL_BASE_URL
    github_api_url: str = DEFAULT_GITHUB_API_URL
    github_owner: str = DEFAULT_GITHUB_OWNER
    download: DownloadConfig = field(default_factory=DownloadConfig)


def load_config(config_path: Optional[Path] = None) -> FuelupConfig:
    """
    Load fuelup configuration.

    Args:
        config_path: Path to config.yaml. Defaults to ``<home>/config.yaml``.

    Returns:
        Parsed configuration (defaults if the file does not exist)

    Raises:
        ConfigError: If the file is not valid YAML or has wrong value types
    """
    if config_path is None:
        config_path = get_fuelup_home() / "config.yaml"

    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return FuelupConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if data is None:
        return FuelupConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_path}")

    return _parse_config(data)


def _parse_config(data: Dict[str, Any]) -> FuelupConfig:
    config = FuelupConfig()

    for key, value in data.items():
        if key in ("channel_base_url", "github_api_url", "github_owner"):
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'{key}' must be a non-empty string")
            setattr(config, key, value.rstrip("/"))
        elif key == "download":
            config.download = _parse_download(value)
        else:
            logger.debug(f"Ignoring unknown config key: {key}")

    return config


def _parse_download(data: Any) -> DownloadConfig:
    if not isinstance(data, dict):
        raise ConfigError("'download' must be a mapping")

    download = DownloadConfig()
    if "max_attempts" in data:
        attempts = data["max_attempts"]
        if not isinstance(attempts, int) or isinstance(attempts, bool) or attempts < 1:
            raise ConfigError("'download.max_attempts' must be a positive integer")
        download.max_attempts = attempts
    for key in ("retry_delay", "timeout"):
        if key in data:
            value = data[key]
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"'download.{key}' must be a non-negative number")
            setattr(download, key, float(value))
    return download
