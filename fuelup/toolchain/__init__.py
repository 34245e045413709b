"""
Toolchain resolution and installation.
"""
