"""
Entry point for running fuelup as a module.

Usage: python -m fuelup [command] [options]
"""

from fuelup.cli.parser import main

if __name__ == "__main__":
    main()
