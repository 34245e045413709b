"""
Channel manifests: the data model, the release API client and the builder
that publishes new manifests.
"""

from .model import LATEST, NIGHTLY, Channel, HashedBinary, Package
from .releases import ReleaseClient, tarball_name
from .builder import BuildResult, ChannelBuilder, SkippedTarget

__all__ = [
    "LATEST",
    "NIGHTLY",
    "Channel",
    "HashedBinary",
    "Package",
    "ReleaseClient",
    "tarball_name",
    "BuildResult",
    "ChannelBuilder",
    "SkippedTarget",
]
