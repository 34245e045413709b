"""
Toolchain installation lifecycle.

This module manages toolchain directories under ``<home>/toolchains``:

1. Resolve a descriptor into per-component download configurations
2. Download each tarball into a private staging directory
3. Verify its sha256 against the published hash
4. Extract it inside the staging directory
5. Relocate the extracted binaries into ``<toolchain>/bin``
6. Remove the staging directory

Nothing under the toolchain directory is touched before a component has
been verified and extracted, so a failed install leaves an existing
toolchain exactly as it was. Components already installed by the same
run stay installed when a later component fails.

Example:
    >>> manager = ToolchainManager()
    >>> result = manager.install("latest")
    >>> print(f"Installed {result.toolchain}")
"""

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

import requests

from fuelup.channel.model import LATEST, Channel
from fuelup.channel.releases import ReleaseClient
from fuelup.components.registry import ComponentRegistry
from fuelup.core.config import FuelupConfig, load_config
from fuelup.core.directory import get_fuelup_home, get_tmp_dir, get_toolchains_dir
from fuelup.core.download import (
    RetryPolicy,
    StreamingHasher,
    create_session,
    download_file,
    verify_digest,
)
from fuelup.core.exceptions import (
    ChannelError,
    FilesystemError,
    FuelupError,
    NetworkError,
    ResolutionError,
    ToolchainNotFoundError,
)
from fuelup.core.filesystem import extract_tar_gz, safe_rmtree, staging_directory
from fuelup.core.platform import TargetTriple
from fuelup.core.settings import SettingsFile
from fuelup.toolchain.description import (
    CustomToolchainDescription,
    DistToolchainDescription,
    resolve,
    validate_custom_name,
)
from fuelup.toolchain.download_cfg import DownloadCfg

logger = logging.getLogger(__name__)


class InstallState(Enum):
    """Lifecycle state of one component install."""

    ABSENT = "absent"
    DOWNLOADING = "downloading"
    VERIFYING = "verifying"
    EXTRACTING = "extracting"
    INSTALLED = "installed"
    FAILED = "failed"


StateCallback = Callable[[str, InstallState], None]


@dataclass
class InstallResult:
    """Result of a toolchain install."""

    toolchain: str
    """Toolchain directory name"""

    installed: List[DownloadCfg] = field(default_factory=list)
    """Components installed, in install order"""

    binaries: List[Path] = field(default_factory=list)
    """Paths of every binary placed in the bin directory"""

    channel_hash: Optional[str] = None
    """sha256 of the channel manifest, None when no channel was consulted"""


def unpack_and_relocate(extracted_dir: Path, bin_dir: Path) -> List[Path]:
    """
    Move binaries out of extracted subdirectories into ``bin_dir``.

    Archives nest their binaries under a version- or platform-named
    folder. Every file in every immediate subdirectory of
    ``extracted_dir`` is copied into ``bin_dir``, replacing a file of the
    same name, and the subdirectory is then removed.

    Returns:
        Paths of the relocated binaries

    Raises:
        FilesystemError: If a file cannot be copied or removed
    """
    bin_dir.mkdir(parents=True, exist_ok=True)
    relocated = []

    try:
        for sub_path in sorted(extracted_dir.iterdir()):
            if not sub_path.is_dir():
                continue

            for bin_file in sorted(sub_path.iterdir()):
                if not bin_file.is_file():
                    logger.debug(f"Skipping non-file entry {bin_file}")
                    continue

                logger.info(f"Unpacking and moving {bin_file.name} to {bin_dir}")
                dst_bin_file = bin_dir / bin_file.name
                if dst_bin_file.exists() or dst_bin_file.is_symlink():
                    dst_bin_file.unlink()
                shutil.copy2(bin_file, dst_bin_file)
                relocated.append(dst_bin_file)

            shutil.rmtree(sub_path)
    except OSError as e:
        raise FilesystemError(f"Failed to relocate binaries into {bin_dir}: {e}") from e

    return relocated


def download_file_and_unpack(
    download_cfg: DownloadCfg,
    dst_dir_path: Path,
    session: Optional[requests.Session] = None,
    policy: Optional[RetryPolicy] = None,
    timeout: float = 30,
    on_state: Optional[StateCallback] = None,
) -> None:
    """
    Download, verify and extract one component tarball into ``dst_dir_path``.

    The tarball is removed once extracted, and also when verification
    fails.

    Raises:
        NetworkError: If the download fails
        IntegrityError: If the digest does not match the published hash
        ArchiveExtractionError: If the tarball cannot be extracted
    """

    def transition(state: InstallState):
        logger.debug(f"{download_cfg.name}: {state.value}")
        if on_state:
            on_state(download_cfg.name, state)

    logger.info(f"Fetching binary from {download_cfg.tarball_url}")
    if download_cfg.hash is None:
        logger.warning(
            f"Downloading component {download_cfg.name} without verifying checksum"
        )

    tarball_path = dst_dir_path / download_cfg.tarball_name
    hasher = StreamingHasher()

    try:
        transition(InstallState.DOWNLOADING)
        try:
            download_file(
                download_cfg.tarball_url,
                tarball_path,
                hasher,
                session=session,
                policy=policy,
                timeout=timeout,
            )
        except NetworkError:
            logger.error(
                f"Failed to download {download_cfg.tarball_name}. "
                "The release may not be ready yet."
            )
            raise

        transition(InstallState.VERIFYING)
        verify_digest(hasher, download_cfg.hash)

        transition(InstallState.EXTRACTING)
        extract_tar_gz(tarball_path, dst_dir_path)
    except FuelupError:
        transition(InstallState.FAILED)
        raise
    finally:
        tarball_path.unlink(missing_ok=True)


class ToolchainManager:
    """
    Creates, installs, removes and switches toolchains.

    Attributes:
        home: fuelup home directory
        toolchains_dir: Directory holding every toolchain
        tmp_dir: Staging directory for downloads
        settings: Default toolchain pointer storage
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        config: Optional[FuelupConfig] = None,
        registry: Optional[ComponentRegistry] = None,
        session: Optional[requests.Session] = None,
        policy: Optional[RetryPolicy] = None,
        client: Optional[ReleaseClient] = None,
        host: Optional[TargetTriple] = None,
        on_state: Optional[StateCallback] = None,
    ):
        self.home = Path(home) if home else get_fuelup_home()
        self.config = config or load_config(self.home / "config.yaml")
        self.toolchains_dir = get_toolchains_dir(self.home)
        self.tmp_dir = get_tmp_dir(self.home)
        self.settings = SettingsFile(self.home / "settings.yaml")
        self.registry = registry or ComponentRegistry()
        self.session = session or create_session()
        self.policy = policy or RetryPolicy.from_config(self.config.download)
        self.client = client or ReleaseClient(
            session=self.session,
            api_url=self.config.github_api_url,
            owner=self.config.github_owner,
            timeout=self.config.download.timeout,
        )
        self.on_state = on_state
        self._host = host

    @property
    def host(self) -> TargetTriple:
        if self._host is None:
            self._host = TargetTriple.from_host()
        return self._host

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def toolchain_dir(self, name: str) -> Path:
        return self.toolchains_dir / name

    def bin_dir(self, name: str) -> Path:
        return self.toolchain_dir(name) / "bin"

    def exists(self, name: str) -> bool:
        return self.toolchain_dir(name).is_dir()

    def installed_toolchains(self) -> List[str]:
        """Sorted names of every toolchain directory."""
        if not self.toolchains_dir.is_dir():
            return []
        return sorted(p.name for p in self.toolchains_dir.iterdir() if p.is_dir())

    def resolve_installed_name(self, name: str) -> str:
        """
        Directory name a user-supplied name refers to.

        An existing directory name is returned as is; otherwise bare
        distributable names are expanded with the host target. Any other
        name, such as a full distributable name with a target, is returned
        unchanged.
        """
        if self.exists(name):
            return name
        try:
            return str(resolve(name, self.host))
        except ResolutionError:
            return name

    # ------------------------------------------------------------------
    # Default pointer
    # ------------------------------------------------------------------

    def get_default(self) -> Optional[str]:
        return self.settings.get_default()

    def set_default(self, name: str) -> str:
        """
        Make an existing toolchain the default.

        Returns:
            The toolchain directory name

        Raises:
            ToolchainNotFoundError: If the toolchain is not installed
        """
        full_name = self.resolve_installed_name(name)
        if not self.exists(full_name):
            raise ToolchainNotFoundError(full_name)
        self.settings.set_default(full_name)
        logger.info(f"default toolchain set to '{full_name}'")
        return full_name

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def download_configs(
        self, description: DistToolchainDescription
    ) -> Tuple[List[DownloadCfg], Optional[str]]:
        """
        Resolve every component of a distributable toolchain.

        Returns:
            Tuple of (download configurations, channel manifest hash)

        Raises:
            NetworkError: If the channel cannot be fetched (except for the
                undated 'latest' channel, which falls back to release lookups)
            ChannelError: If the channel is malformed
        """
        try:
            channel, channel_hash = Channel.from_dist_channel(
                description.name,
                description.date,
                session=self.session,
                policy=self.policy,
                base_url=self.config.channel_base_url,
                timeout=self.config.download.timeout,
            )
        except (NetworkError, ChannelError) as e:
            if description.name != LATEST or description.date is not None:
                raise
            logger.warning(
                f"Failed to get '{LATEST}' channel ({e}); "
                "falling back to the latest published releases"
            )
            return self._latest_release_configs(description.target), None

        cfgs = []
        for component in self.registry.list_publishable():
            package = channel.lookup(component.name)
            if package is None:
                logger.debug(f"'{component.name}' is not part of this channel")
                continue

            cfg = DownloadCfg.from_package(
                component.name, package, description.target, self.registry
            )
            if cfg is None:
                logger.warning(
                    f"'{component.name}' is not available for target {description.target}"
                )
                continue
            cfgs.append(cfg)

        return cfgs, channel_hash

    def _latest_release_configs(self, target: TargetTriple) -> List[DownloadCfg]:
        return [
            DownloadCfg.new(component.name, target, registry=self.registry, client=self.client)
            for component in self.registry.list_publishable()
            if component.supports(target)
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def install(
        self, descriptor: Union[str, DistToolchainDescription]
    ) -> InstallResult:
        """
        Install a distributable toolchain.

        Args:
            descriptor: Descriptor text or an already resolved description

        Returns:
            InstallResult for the toolchain

        Raises:
            ResolutionError: If the descriptor is invalid or names a custom
                toolchain
            NetworkError: If a download fails
            IntegrityError: If an artifact fails verification
            FilesystemError: If extraction or relocation fails
        """
        if isinstance(descriptor, DistToolchainDescription):
            description = descriptor
        else:
            description = resolve(descriptor, self.host)

        if isinstance(description, CustomToolchainDescription):
            raise ResolutionError(
                f"Cannot install custom toolchain '{description.name}'; "
                "custom toolchains are created with 'toolchain new'"
            )

        toolchain = str(description)
        cfgs, channel_hash = self.download_configs(description)

        bin_dir = self.bin_dir(toolchain)
        bin_dir.mkdir(parents=True, exist_ok=True)

        result = InstallResult(toolchain=toolchain, channel_hash=channel_hash)
        for cfg in cfgs:
            try:
                result.binaries.extend(self.install_component(toolchain, cfg))
            except FuelupError as e:
                logger.error(f"Failed to install: {cfg.name} ({e})")
                if result.installed:
                    names = ", ".join(c.name for c in result.installed)
                    logger.info(f"Installed: {names}")
                raise
            result.installed.append(cfg)
            logger.info(f"Installed {cfg.name} {cfg.version}")

        if self.get_default() is None:
            self.settings.set_default(toolchain)
            logger.info(f"default toolchain set to '{toolchain}'")

        return result

    def install_component(self, toolchain: str, cfg: DownloadCfg) -> List[Path]:
        """
        Download, verify and install one component into a toolchain.

        Returns:
            Paths of the installed binaries
        """
        with staging_directory(self.tmp_dir, prefix=f"{toolchain}-{cfg.name}-") as staging:
            download_file_and_unpack(
                cfg,
                staging,
                session=self.session,
                policy=self.policy,
                timeout=self.config.download.timeout,
                on_state=self.on_state,
            )
            binaries = unpack_and_relocate(staging, self.bin_dir(toolchain))

        if self.on_state:
            self.on_state(cfg.name, InstallState.INSTALLED)
        return binaries

    def uninstall(self, name: str) -> str:
        """
        Remove a toolchain directory.

        If it was the default, the default moves to the lexicographically
        first remaining toolchain, or is cleared when none remain.

        Returns:
            The removed toolchain's directory name

        Raises:
            ToolchainNotFoundError: If the toolchain does not exist
        """
        full_name = self.resolve_installed_name(name)
        if not self.exists(full_name):
            raise ToolchainNotFoundError(full_name)

        safe_rmtree(self.toolchain_dir(full_name), require_prefix=self.toolchains_dir)
        logger.debug(f"Removed {self.toolchain_dir(full_name)}")

        if self.get_default() == full_name:
            remaining = self.installed_toolchains()
            new_default = remaining[0] if remaining else None
            self.settings.set_default(new_default)
            if new_default:
                logger.info(f"default toolchain set to '{new_default}'")
            else:
                logger.info("No toolchains remain; default cleared")

        return full_name

    def new(self, name: str) -> Path:
        """
        Create an empty custom toolchain and make it the default.

        Returns:
            Path of the new toolchain directory

        Raises:
            ToolchainNameCollisionError: If ``name`` is a distributable name
            ResolutionError: If the toolchain already exists
        """
        validate_custom_name(name, self.host)
        if self.exists(name):
            raise ResolutionError(f"Toolchain '{name}' already exists")

        self.bin_dir(name).mkdir(parents=True)
        self.settings.set_default(name)
        logger.debug(f"Created custom toolchain {self.toolchain_dir(name)}")
        return self.toolchain_dir(name)
