"""Commands for tracking repositories: add, list, remove, rollback, update and config."""

from __future__ import annotations

import os
import re
import subprocess
import zipfile
from pathlib import Path

from tabulate import tabulate

from .client import GitHubError
from .config import Config, ConfigError, config_path, data_path, get_config
from .manager import ManagerError, new_manager
from .sysinfo import get_info
from .updater import UpdateError, update_track

_INT_RE = re.compile(r"[+-]?[0-9]+")
LIST_HEADERS = ("#", "Repository", "Current Version", "Pre-release", "Filter")


def _parse_int(text: str) -> int | None:
    return int(text) if _INT_RE.fullmatch(text) else None


def sorted_repos(cfg: Config) -> list[str]:
    """Return the tracked repository paths in the order shown by ``list``."""
    return sorted(cfg.repos)


def repos_from_args(args: list[str], cfg: Config) -> list[str]:
    """Map list numbers to repository paths; no numbers means every repository."""
    keys = sorted_repos(cfg)
    if not args:
        return keys
    repos = []
    for arg in args:
        num = _parse_int(arg)
        if num is None or not 1 <= num <= len(keys):
            print(f"Warning: Invalid repository number '{arg}', skipping.")
            continue
        repos.append(keys[num - 1])
    return repos


def cmd_add(
    repo_path: str,
    token: str | None = None,
    prerelease: bool = False,
    asset_filter: str = "",
    install_name: str = "",
) -> None:
    """Start tracking ``repo_path`` and install its latest release."""
    if len(repo_path.split("/")) != 2:
        print("Error: Invalid repository format. Please use 'owner/repo'.")
        return
    try:
        mgr = new_manager(token or None)
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return
    try:
        mgr.add_repo(repo_path)
    except ManagerError as exc:
        print(f"Error adding repository: {exc}")
        return

    if prerelease or asset_filter or install_name:
        repo = mgr.cfg.repos[repo_path]
        repo.include_prerelease = prerelease
        repo.asset_filter = asset_filter
        repo.install_name = install_name
        try:
            mgr.cfg.save(mgr.config_file)
        except (ConfigError, OSError) as exc:
            print(f"Error saving configuration: {exc}")
            return

    print("\nRunning initial update...")
    try:
        mgr.update_repo(repo_path, True)
    except (ManagerError, OSError) as exc:
        print(f"Error during initial update: {exc}")


def render_list(cfg: Config) -> str:
    """Return the table of tracked repositories."""
    rows = []
    for index, key in enumerate(sorted_repos(cfg), start=1):
        repo = cfg.repos[key]
        rows.append(
            [
                str(index),
                key,
                repo.current_version or "Not installed",
                "true" if repo.include_prerelease else "false",
                repo.asset_filter,
            ]
        )
    return tabulate(rows, headers=LIST_HEADERS, tablefmt="github", disable_numparse=True)


def cmd_list() -> None:
    """Print every tracked repository."""
    try:
        cfg = get_config()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return
    if not cfg.repos:
        print("No repositories are being tracked. Use 'track add <owner/repo>' to add one.")
        return
    print(render_list(cfg))


def cmd_remove(number: str) -> None:
    """Stop tracking the repository at position ``number`` of the list."""
    try:
        cfg = get_config()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return
    num = _parse_int(number)
    if num is None:
        print(f"Error: Invalid number provided '{number}'.")
        return
    keys = sorted_repos(cfg)
    if not 1 <= num <= len(keys):
        print(f"Error: Number {num} is out of bounds.")
        return
    repo_to_remove = keys[num - 1]
    print(f"Removing '{repo_to_remove}' from tracking.")
    del cfg.repos[repo_to_remove]
    try:
        cfg.save()
    except (ConfigError, OSError) as exc:
        print(f"Error saving configuration: {exc}")
    else:
        print("Successfully removed.")


def cmd_rollback(number: str, tag: str) -> None:
    """Install the release tagged ``tag`` of the repository at position ``number``."""
    try:
        mgr = new_manager()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return
    repos = repos_from_args([number], mgr.cfg)
    if len(repos) != 1:
        print("Invalid repository number provided.")
        return
    repo_path = repos[0]
    owner, _, name = repo_path.partition("/")
    try:
        release = mgr.client.get_release_by_tag(owner, name, tag)
    except GitHubError as exc:
        print(f"Failed to roll back {repo_path}: {exc}")
        return
    try:
        mgr.install_version(repo_path, release)
    except (ManagerError, OSError) as exc:
        print(f"Failed to roll back {repo_path}: {exc}")


def check_self_update() -> None:
    """Update the tool itself and report the outcome."""
    print("Checking for updates to track CLI itself...")
    try:
        update_track()
    except (UpdateError, OSError, zipfile.BadZipFile) as exc:
        print(f"track self-update failed: {exc}")
    else:
        print("track CLI was updated successfully!")


def cmd_update(numbers: list[str] | None = None, force: bool = False) -> None:
    """Update the given repositories (all when none are given), then the tool itself."""
    try:
        mgr = new_manager()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        check_self_update()
        return
    if not mgr.cfg.repos:
        print("No repositories to update.")
        check_self_update()
        return

    args = list(numbers or [])
    repos = repos_from_args(args, mgr.cfg)
    if not repos and args:
        print("Invalid repository number provided.")
        return

    for repo_path in repos:
        try:
            mgr.update_repo(repo_path, force)
        except (ManagerError, OSError) as exc:
            print(f"Failed to update {repo_path}: {exc}")
        print("---")

    check_self_update()


def config_file_path() -> Path:
    """Return the location of the configuration file."""
    if get_info()[0] == "windows":
        local = os.environ.get("LOCALAPPDATA", "")
        if not local:
            raise ConfigError("LOCALAPPDATA not set")
        return Path(local) / "track" / "config.json"
    return data_path() / "config.json"


def open_editor(path: str | os.PathLike[str]) -> bool:
    """Open ``path`` in the user's editor and wait; return whether it ran cleanly."""
    if get_info()[0] == "windows":
        editor = "notepad"
    else:
        editor = os.environ.get("EDITOR", "") or "vi"
    try:
        subprocess.run([editor, os.fspath(path)], check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        print(f"Failed to open editor: {exc}")
        return False
    return True


def cmd_config() -> None:
    """Open the configuration file in an editor."""
    try:
        get_config()
    except (ConfigError, OSError) as exc:
        print(f"Error loading config: {exc}")
        return
    try:
        path = config_file_path()
    except (ConfigError, OSError) as exc:
        print(f"Error finding config path: {exc}")
        return
    if not open_editor(path):
        print(f"You can manually edit the config file at: {path}")


__all__ = [
    "LIST_HEADERS",
    "check_self_update",
    "cmd_add",
    "cmd_config",
    "cmd_list",
    "cmd_remove",
    "cmd_rollback",
    "cmd_update",
    "config_file_path",
    "open_editor",
    "render_list",
    "repos_from_args",
    "sorted_repos",
    "config_path",
]