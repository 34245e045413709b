"""
Unit tests for CLI commands.
"""

from unittest.mock import patch

import pytest

from fuelup.channel.builder import BuildResult, SkippedTarget
from fuelup.channel.model import Channel
from fuelup.cli.commands.channel import parse_versions
from fuelup.cli.parser import CLI
from fuelup.components.registry import ComponentRegistry
from fuelup.core.exceptions import ChannelError
from fuelup.core.settings import SettingsFile
from fuelup.toolchain.download_cfg import DownloadCfg
from fuelup.toolchain.installer import InstallResult
from tests.utils.helpers import build_channel

LATEST = "latest-x86_64-unknown-linux-gnu"


def run_cli(*args):
    return CLI().run(list(args))


def make_toolchain(home, name):
    (home / "toolchains" / name / "bin").mkdir(parents=True)


class TestToolchainCommand:
    """Test 'fuelup toolchain'."""

    def test_new(self, cli_home, capsys):
        assert run_cli("toolchain", "new", "my-toolchain") == 0

        assert "New toolchain initialized: my-toolchain" in capsys.readouterr().out
        assert (cli_home / "toolchains" / "my-toolchain" / "bin").is_dir()
        assert SettingsFile(cli_home / "settings.yaml").get_default() == "my-toolchain"

    def test_new_with_distributable_name_fails(self, cli_home, capsys):
        assert run_cli("toolchain", "new", "latest") == 1

        assert "Cannot use distributable toolchain name 'latest'" in capsys.readouterr().err

    def test_uninstall(self, cli_home, capsys):
        make_toolchain(cli_home, "my-toolchain")

        assert run_cli("toolchain", "uninstall", "my-toolchain") == 0

        assert "toolchain 'my-toolchain' uninstalled" in capsys.readouterr().out
        assert not (cli_home / "toolchains" / "my-toolchain").exists()

    def test_uninstall_missing_is_soft_failure(self, cli_home, capsys):
        assert run_cli("toolchain", "uninstall", "latest") == 0

        assert f"toolchain '{LATEST}' does not exist" in capsys.readouterr().out

    @pytest.mark.parametrize("name", [LATEST, "nightly-2022-08-31-x86_64-unknown-linux-gnu"])
    def test_uninstall_missing_full_name_is_soft_failure(self, cli_home, capsys, name):
        assert run_cli("toolchain", "uninstall", name) == 0

        captured = capsys.readouterr()
        assert f"toolchain '{name}' does not exist" in captured.out
        assert "specifying a target" not in captured.err

    def test_install_prints_components(self, cli_home, capsys, host):
        result = InstallResult(
            toolchain=LATEST,
            installed=[
                DownloadCfg(
                    name="forc",
                    target=host,
                    version="0.33.1",
                    tarball_name="forc-binaries-x86_64-unknown-linux-gnu.tar.gz",
                    tarball_url="https://example.com/forc.tar.gz",
                )
            ],
        )
        with patch("fuelup.cli.commands.toolchain.create_manager") as mock_create:
            mock_create.return_value.install.return_value = result

            assert run_cli("toolchain", "install", "latest") == 0

        mock_create.return_value.install.assert_called_once_with("latest")
        out = capsys.readouterr().out
        assert f"Installed toolchain '{LATEST}'" in out
        assert "forc 0.33.1" in out

    def test_missing_subcommand(self, cli_home):
        assert run_cli("toolchain") == 1


class TestDefaultCommand:
    """Test 'fuelup default'."""

    def test_no_default(self, cli_home, capsys):
        assert run_cli("default") == 0

        assert "No default toolchain detected" in capsys.readouterr().out

    def test_print_default(self, cli_home, capsys):
        make_toolchain(cli_home, "my-toolchain")
        SettingsFile(cli_home / "settings.yaml").set_default("my-toolchain")

        assert run_cli("default") == 0

        assert "my-toolchain (default)" in capsys.readouterr().out

    def test_switch_default(self, cli_home, capsys):
        make_toolchain(cli_home, LATEST)

        assert run_cli("default", "latest") == 0

        assert f"default toolchain set to '{LATEST}'" in capsys.readouterr().out
        assert SettingsFile(cli_home / "settings.yaml").get_default() == LATEST

    def test_switch_to_missing_is_soft_failure(self, cli_home, capsys):
        make_toolchain(cli_home, "my-toolchain")

        assert run_cli("default", "nightly") == 0

        out = capsys.readouterr().out
        assert "toolchain 'nightly-x86_64-unknown-linux-gnu' does not exist" in out
        assert "my-toolchain" in out

    def test_switch_to_missing_full_name_is_soft_failure(self, cli_home, capsys):
        name = "nightly-2022-08-31-x86_64-unknown-linux-gnu"

        assert run_cli("default", name) == 0

        assert f"toolchain '{name}' does not exist" in capsys.readouterr().out


class TestChannelCommand:
    """Test 'fuelup channel build'."""

    def test_writes_manifest(self, cli_home, tmp_path, capsys):
        channel = build_channel({"forc": ("0.33.1", {})}, published_by="https://example.com/run/9")
        out_file = tmp_path / "channel-fuel-latest.toml"

        with patch("fuelup.cli.commands.channel.ChannelBuilder") as mock_builder:
            mock_builder.return_value.build.return_value = BuildResult(
                channel=channel,
                skipped=[SkippedTarget("fuel-core", "x86_64-apple-darwin", "https://example.com/c", "HTTP 500")],
            )

            code = run_cli(
                "channel", "build", "latest", str(out_file), "9", "2023-01-11",
                "forc=0.33.1", "fuel-core=0.15.1", "--date", "2023-01-10",
            )

        assert code == 0
        assert Channel.from_toml(out_file.read_text()) == channel
        kwargs = mock_builder.return_value.build.call_args.kwargs
        assert kwargs["published_by"] == "https://github.com/FuelLabs/fuelup/actions/runs/9"
        assert kwargs["publish_date"] == "2023-01-11"
        assert kwargs["versions"] == {"forc": "0.33.1", "fuel-core": "0.15.1"}
        assert kwargs["date"].isoformat() == "2023-01-10"
        assert "fuel-core [x86_64-apple-darwin]: HTTP 500" in capsys.readouterr().out

    def test_nightly_with_versions_fails(self, cli_home, tmp_path):
        out_file = tmp_path / "channel-fuel-nightly.toml"

        code = run_cli("channel", "build", "nightly", str(out_file), "9", "2023-01-11", "forc=0.33.1")

        assert code == 1
        assert not out_file.exists()

    def test_invalid_build_date(self, cli_home, tmp_path):
        code = run_cli(
            "channel", "build", "nightly", str(tmp_path / "out.toml"), "9", "2023-01-11",
            "--date", "yesterday",
        )

        assert code == 1


class TestParseVersions:
    """Test parse_versions function."""

    def test_pairs(self):
        assert parse_versions(["forc=0.33.1"], ComponentRegistry()) == {"forc": "0.33.1"}

    @pytest.mark.parametrize("pair", ["forc", "forc=", "=0.33.1", "forc-unknown=1.0.0"])
    def test_invalid(self, pair):
        with pytest.raises(ChannelError):
            parse_versions([pair], ComponentRegistry())
