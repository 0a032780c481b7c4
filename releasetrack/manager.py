"""Installing and updating the releases of tracked repositories."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .archiver import ArchiveError, extract, find_executable
from .client import GitHubClient, GitHubError, Release
from .config import Config, ConfigError, Repo, get_config
from .downloader import DownloadError, download_file
from .matcher import NoAssetError, find_compatible_asset
from .sysinfo import get_info

TOKEN_ENV = "GITHUB_TOKEN"


class ManagerError(Exception):
    """Raised when a repository cannot be added, updated or installed."""


def _split_repo(repo_path: str) -> tuple[str, str]:
    owner, _, name = repo_path.partition("/")
    return owner, name


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        pass


@dataclass
class Manager:
    """Keeps tracked repositories installed at their latest release."""

    cfg: Config
    client: GitHubClient = field(default_factory=GitHubClient)
    config_file: str | os.PathLike[str] | None = None
    os_name: str = ""
    arch: str = ""

    def __post_init__(self) -> None:
        if not self.os_name or not self.arch:
            host_os, host_arch = get_info()
            self.os_name = self.os_name or host_os
            self.arch = self.arch or host_arch

    @property
    def _data_dir(self) -> Path:
        return Path(self.cfg.global_config.data_dir)

    @property
    def _latest_dir(self) -> Path:
        return self._data_dir / "latest"

    def _save(self) -> None:
        self.cfg.save(self.config_file)

    def _repo(self, repo_path: str) -> Repo:
        repo_cfg = self.cfg.repos.get(repo_path)
        if repo_cfg is None:
            raise ManagerError(f"repository '{repo_path}' not tracked")
        return repo_cfg

    def update_repo(self, repo_path: str, force: bool = False) -> None:
        """Install the latest release of ``repo_path`` unless it is already installed."""
        print(f"Checking for updates for {repo_path}...")
        repo_cfg = self._repo(repo_path)
        owner, name = _split_repo(repo_path)

        try:
            latest = self.client.get_latest_release(owner, name, repo_cfg.include_prerelease)
        except GitHubError as exc:
            raise ManagerError(f"failed to get latest release for {repo_path}: {exc}") from exc

        version = latest.tag_name
        install_name = repo_cfg.install_name or name
        marker = f"{install_name}.cmd" if self.os_name == "windows" else install_name
        binary_exists = (self._latest_dir / marker).is_file()

        if not force and version == repo_cfg.current_version and binary_exists:
            print(f"'{repo_path}' is already up-to-date (version {version}).")
            return

        if version != repo_cfg.current_version:
            print(
                f"New version found for {repo_path}: {version} "
                f"(current: {repo_cfg.current_version})"
            )
        else:
            print(f"Reinstalling current version for {repo_path}: {version}")

        self.install_version(repo_path, latest)

    def install_version(self, repo_path: str, release: Release) -> None:
        """Download, unpack and link the executable of ``release``."""
        repo_cfg = self._repo(repo_path)
        version = release.tag_name
        _, name = _split_repo(repo_path)

        try:
            asset = find_compatible_asset(
                release, repo_cfg, self.cfg.global_config, self.os_name, self.arch
            )
        except NoAssetError as exc:
            raise ManagerError(
                f"could not find compatible asset for {repo_path} in version {version}: {exc}"
            ) from exc
        print(f"Found compatible asset: {asset.name}")

        version_dir = self._data_dir / name / "general" / version
        archive_path = version_dir / asset.name
        try:
            version_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise ManagerError(f"could not create version directory: {exc}") from exc

        print(f"Downloading {asset.browser_download_url}...")
        try:
            download_file(asset.browser_download_url, archive_path)
        except (DownloadError, OSError) as exc:
            raise ManagerError(f"failed to download asset: {exc}") from exc

        print(f"Extracting {asset.name}...")
        try:
            extract(archive_path, version_dir)
        except (ArchiveError, OSError) as exc:
            raise ManagerError(f"failed to extract archive: {exc}") from exc

        install_name = repo_cfg.install_name or name
        try:
            executable = find_executable(version_dir, name, install_name)
        except (ArchiveError, OSError) as exc:
            raise ManagerError(
                f"could not find executable in archive for {repo_path}: {exc}"
            ) from exc

        if self.os_name == "windows":
            self._write_shim(install_name, executable)
        else:
            self._link(install_name, executable)

        repo_cfg.current_version = version
        try:
            self._save()
        except (ConfigError, OSError) as exc:
            raise ManagerError(f"failed to save config after update: {exc}") from exc
        print(f"Successfully installed {repo_path} version {version}.")

    def _write_shim(self, install_name: str, executable: str) -> None:
        latest = self._latest_dir
        latest.mkdir(mode=0o755, parents=True, exist_ok=True)
        shim = latest / f"{install_name}.cmd"
        content = f'@echo off\r\n"{executable}" %*\r\n'
        try:
            shim.write_bytes(content.encode("utf-8"))
        except OSError:
            return
        print(f"Created Windows shim: {shim}")

    def _link(self, install_name: str, executable: str) -> None:
        latest = self._latest_dir
        latest.mkdir(mode=0o755, parents=True, exist_ok=True)
        link = latest / install_name
        _remove_quietly(link)
        try:
            link.symlink_to(executable)
        except OSError as exc:
            print(f"Failed to create symlink: {exc}")
        else:
            print(f"Created symlink: {link} -> {executable}")

        try:
            user_bin = Path.home() / ".local" / "bin"
        except (RuntimeError, KeyError):
            return
        try:
            user_bin.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError:
            return
        user_link = user_bin / install_name
        _remove_quietly(user_link)
        try:
            user_link.symlink_to(executable)
        except OSError as exc:
            print(f"Failed to create symlink in ~/.local/bin: {exc}")
        else:
            print(f"Created symlink: {user_link} -> {executable}")

    def add_repo(self, repo_path: str) -> None:
        """Start tracking ``repo_path`` and save the configuration."""
        if repo_path in self.cfg.repos:
            raise ManagerError(f"repository '{repo_path}' is already being tracked")
        self.cfg.repos[repo_path] = Repo(path=repo_path)
        try:
            self._save()
        except (ConfigError, OSError) as exc:
            raise ManagerError(f"failed to save config: {exc}") from exc
        print(f"Successfully added '{repo_path}' to tracked repositories.")


def new_manager(token: str | None = None) -> Manager:
    """Return a manager over the shared configuration.

    A token, given or taken from ``GITHUB_TOKEN``, is exported to the environment
    and used for API requests.
    """
    cfg = get_config()
    token = token or os.environ.get(TOKEN_ENV, "")
    if token:
        os.environ[TOKEN_ENV] = token
    return Manager(cfg, client=GitHubClient(token or None))