"""
fuelup CLI module.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
