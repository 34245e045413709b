"""
Unit tests for filesystem module.
"""

import io
import tarfile

import pytest

from fuelup.core.exceptions import ArchiveExtractionError, InsecureArchiveError
from fuelup.core.filesystem import (
    atomic_write,
    extract_tar_gz,
    safe_rmtree,
    staging_directory,
)


class TestExtractTarGz:
    """Test extract_tar_gz function."""

    def test_extracts_nested_files(self, tmp_path, make_tarball):
        archive = tmp_path / "forc.tar.gz"
        archive.write_bytes(make_tarball({"forc-binaries/forc": b"forc", "forc-binaries/forc-fmt": b"fmt"}))
        destination = tmp_path / "out"

        extract_tar_gz(archive, destination)

        assert (destination / "forc-binaries" / "forc").read_bytes() == b"forc"
        assert (destination / "forc-binaries" / "forc-fmt").read_bytes() == b"fmt"

    def test_rejects_directory_traversal(self, tmp_path, make_tarball):
        """Test members escaping the destination block extraction."""
        archive = tmp_path / "evil.tar.gz"
        archive.write_bytes(make_tarball({"../evil": b"boom"}))
        destination = tmp_path / "out"

        with pytest.raises(InsecureArchiveError):
            extract_tar_gz(archive, destination)

        assert not (tmp_path / "evil").exists()

    @pytest.mark.skipif(not hasattr(tarfile, "data_filter"), reason="tarfile has no extraction filters")
    def test_rejects_symlink_outside_destination(self, tmp_path):
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            link = tarfile.TarInfo("forc-binaries/forc")
            link.type = tarfile.SYMTYPE
            link.linkname = "../../outside"
            tar.addfile(link)
        archive = tmp_path / "evil.tar.gz"
        archive.write_bytes(buffer.getvalue())
        destination = tmp_path / "staging" / "out"

        with pytest.raises(ArchiveExtractionError):
            extract_tar_gz(archive, destination)

        assert not (destination / "forc-binaries" / "forc").is_symlink()

    def test_corrupted_archive(self, tmp_path):
        archive = tmp_path / "broken.tar.gz"
        archive.write_bytes(b"this is not gzip")

        with pytest.raises(ArchiveExtractionError, match="release may not be ready yet"):
            extract_tar_gz(archive, tmp_path / "out")

    def test_missing_archive(self, tmp_path):
        with pytest.raises(ArchiveExtractionError, match="not found"):
            extract_tar_gz(tmp_path / "missing.tar.gz", tmp_path / "out")


class TestAtomicWrite:
    """Test atomic_write function."""

    def test_write_text_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "settings.yaml"

        atomic_write(target, "default_toolchain: latest\n")

        assert target.read_text() == "default_toolchain: latest\n"

    def test_replaces_existing_without_leftovers(self, tmp_path):
        target = tmp_path / "channel.toml"
        target.write_text("old")

        atomic_write(target, b"new")

        assert target.read_bytes() == b"new"
        assert [p.name for p in tmp_path.iterdir()] == ["channel.toml"]


class TestSafeRmtree:
    """Test safe_rmtree function."""

    def test_removes_tree(self, tmp_path):
        tree = tmp_path / "toolchains" / "latest"
        (tree / "bin").mkdir(parents=True)
        (tree / "bin" / "forc").write_text("x")

        safe_rmtree(tree, require_prefix=tmp_path / "toolchains")

        assert not tree.exists()

    def test_refuses_path_outside_prefix(self, tmp_path):
        outside = tmp_path / "elsewhere"
        outside.mkdir()

        with pytest.raises(ValueError, match="Refusing to delete"):
            safe_rmtree(outside, require_prefix=tmp_path / "toolchains")

        assert outside.exists()

    def test_missing_path_is_ignored(self, tmp_path):
        safe_rmtree(tmp_path / "missing")


class TestStagingDirectory:
    """Test staging_directory context manager."""

    def test_removed_after_success(self, tmp_path):
        with staging_directory(tmp_path / "tmp") as staging:
            (staging / "file").write_text("x")
            assert staging.parent == tmp_path / "tmp"

        assert not staging.exists()

    def test_removed_after_failure(self, tmp_path):
        with pytest.raises(RuntimeError):
            with staging_directory(tmp_path / "tmp") as staging:
                (staging / "file").write_text("x")
                raise RuntimeError("install failed")

        assert not staging.exists()
