"""
Component registry.

Lists every component fuelup knows how to distribute, with its release
repository, tarball prefix and supported targets.
"""

from .registry import FORC, FUEL_CORE, FUELUP, Component, ComponentRegistry

__all__ = ["FORC", "FUEL_CORE", "FUELUP", "Component", "ComponentRegistry"]
