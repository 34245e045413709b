"""
Component registry.

The registry is a read-only lookup table describing every installable
component: its upstream repository, tarball-name prefix and the target
triples it is published for. It is loaded from the embedded
``components.yaml`` unless another file is given.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

import yaml

from fuelup.core.exceptions import ConfigError
from fuelup.core.platform import TargetTriple

logger = logging.getLogger(__name__)

FORC = "forc"
FUEL_CORE = "fuel-core"
FUELUP = "fuelup"


@dataclass(frozen=True)
class Component:
    """An installable component. Identity is its name."""

    name: str
    repository_name: str
    tarball_prefix: str
    targets: FrozenSet[TargetTriple]
    publish: bool = True

    def supports(self, target: TargetTriple) -> bool:
        return target in self.targets


class ComponentRegistry:
    """
    Lookup table of installable components.

    Example:
        >>> registry = ComponentRegistry()
        >>> forc = registry.lookup("forc")
        >>> print(forc.tarball_prefix)
        forc-binaries
    """

    def __init__(self, data_path: Optional[Path] = None):
        """
        Initialize the registry.

        Args:
            data_path: Optional path to a components YAML file.
                       If None, uses the embedded components.yaml

        Raises:
            ConfigError: If the file cannot be loaded or is malformed
        """
        self.data_path = data_path or Path(__file__).parent / "components.yaml"
        self._components = self._load()
        logger.debug(f"Loaded registry with {len(self._components)} components")

    def _load(self) -> Dict[str, Component]:
        try:
            with open(self.data_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load components file {self.data_path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("components"), dict):
            raise ConfigError(
                f"Invalid components file: missing 'components' mapping\n"
                f"File: {self.data_path}"
            )

        components = {}
        for name, entry in data["components"].items():
            try:
                components[name] = Component(
                    name=name,
                    repository_name=entry["repository_name"],
                    tarball_prefix=entry["tarball_prefix"],
                    targets=frozenset(TargetTriple(t) for t in entry["targets"]),
                    publish=bool(entry.get("publish", True)),
                )
            except (KeyError, TypeError) as e:
                raise ConfigError(f"Invalid entry for component '{name}': {e}") from e
        return components

    def lookup(self, name: str) -> Optional[Component]:
        """Component named ``name``, or None when unknown."""
        return self._components.get(name)

    def list_publishable(self) -> List[Component]:
        """Components included in published channels, in declaration order."""
        return [c for c in self._components.values() if c.publish]

    def names(self) -> List[str]:
        return list(self._components)
