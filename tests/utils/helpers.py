"""
Helper functions for fuelup tests.
"""

import hashlib

from fuelup.channel.model import Channel, HashedBinary, Package


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_channel(packages, published_by="https://example.com/run/1", date="2023-01-11"):
    """
    Build a Channel from ``{name: (version, {target: (url, hash)})}``.
    """
    pkg = {}
    for name, (version, targets) in packages.items():
        pkg[name] = Package(
            version=version,
            target={t: HashedBinary(url=url, hash=h) for t, (url, h) in targets.items()},
        )
    return Channel(published_by=published_by, date=date, pkg=pkg)
