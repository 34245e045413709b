"""fuelup - toolchain manager for pre-built Fuel binary distributions."""

__version__ = "0.1.0"
