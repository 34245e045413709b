"""
Pytest configuration and shared fixtures for fuelup tests.
"""

import io
import tarfile
from typing import Dict

import pytest

from fuelup.core.config import FuelupConfig
from fuelup.core.directory import ensure_home_structure
from fuelup.core.download import RetryPolicy
from fuelup.core.platform import TargetTriple
from fuelup.toolchain.installer import ToolchainManager

HOST = TargetTriple("x86_64-unknown-linux-gnu")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the developer's proxy and fuelup home out of every test."""
    monkeypatch.delenv("http_proxy", raising=False)
    monkeypatch.delenv("FUELUP_HOME", raising=False)


@pytest.fixture
def host():
    """Fixed host target triple."""
    return HOST


@pytest.fixture
def fuelup_home(tmp_path, monkeypatch):
    """Temporary fuelup home, also exported through FUELUP_HOME."""
    home = tmp_path / ".fuelup"
    monkeypatch.setenv("FUELUP_HOME", str(home))
    return ensure_home_structure(home)


@pytest.fixture
def sleeps():
    """Delays requested by the retry policy, in order."""
    return []


@pytest.fixture
def policy(sleeps):
    """Default retry policy that records its sleeps instead of waiting."""
    return RetryPolicy(sleep=sleeps.append)


@pytest.fixture
def make_tarball():
    """
    Factory building an in-memory .tar.gz.

    Example:
        >>> data = make_tarball({"forc-binaries/forc": b"#!/bin/sh"})
    """

    def _make(files: Dict[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            for name, content in files.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mode = 0o755
                tar.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return _make


@pytest.fixture
def manager(fuelup_home, host, policy):
    """ToolchainManager on the temporary home with default configuration."""
    return ToolchainManager(home=fuelup_home, config=FuelupConfig(), policy=policy, host=host)
