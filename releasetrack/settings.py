"""Commands that change settings, tidy old versions and show release history."""

from __future__ import annotations

import re
import shutil
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path

from tabulate import tabulate

from .client import GitHubError
from .commands import repos_from_args, sorted_repos
from .config import Config, ConfigError, Repo, get_config
from .manager import new_manager

_INT_RE = re.compile(r"[+-]?[0-9]+")

SUPPORTED_FIELDS_MESSAGE = (
    "Supported fields: prerelease, MatcherMode, AssetFilter, AssetExclude, InstallName, "
    "AssetPriority, PreferredArchives, FallbackArch, FallbackOS, debug (global)"
)
RELEASE_HEADERS = ("Tag", "Name", "Published", "Type")

_TEXT_FIELDS = {
    "assetfilter": "asset_filter",
    "assetexclude": "asset_exclude",
    "installname": "install_name",
}
_LIST_FIELDS = {
    "assetpriority": "asset_priority",
    "preferredarchives": "preferred_archives",
    "fallbackarch": "fallback_arch",
    "fallbackos": "fallback_os",
}

_MICROSECOND = 1
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_YEAR = 365 * _DAY
_AGE_UNITS = (
    ("year", _YEAR),
    ("week", _WEEK),
    ("day", _DAY),
    ("hour", _HOUR),
    ("minute", _MINUTE),
    ("second", _SECOND),
    ("millisecond", _MILLISECOND),
    ("microsecond", _MICROSECOND),
)


class SettingError(ValueError):
    """Raised when a setting cannot be applied."""


def _is_debug(args: Sequence[str]) -> bool:
    return len(args) == 2 and args[0].lower() == "debug"


def _check_args(args: Sequence[str]) -> None:
    if _is_debug(args) or len(args) == 3:
        return
    raise SettingError(
        f"accepts 3 arg(s) for repo fields or 2 for global debug, received {len(args)}"
    )


def _parse_bool(value: str, message: str) -> bool:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise SettingError(message)


def _find_repo(cfg: Config, key: str) -> Repo:
    if _INT_RE.fullmatch(key):
        number = int(key)
        keys = sorted_repos(cfg)
        if not 1 <= number <= len(keys):
            raise SettingError("Invalid repo number")
        return cfg.repos[keys[number - 1]]
    repo = cfg.repos.get(key)
    if repo is None:
        raise SettingError("Repository not found")
    return repo


def apply_setting(cfg: Config, args: Sequence[str]) -> None:
    """Apply ``<repo#|repo> <field> <value>`` or ``debug <true|false>`` to ``cfg``."""
    args = list(args)
    _check_args(args)
    if _is_debug(args):
        cfg.global_config.debug = _parse_bool(args[1], "Value must be true or false for debug")
        return

    repo = _find_repo(cfg, args[0])
    field_name = args[1].lower()
    value = args[2]
    if field_name == "prerelease":
        repo.include_prerelease = _parse_bool(value, "Value must be true or false")
    elif field_name == "matchermode":
        repo.matcher_mode = value.lower()
    elif field_name in _TEXT_FIELDS:
        setattr(repo, _TEXT_FIELDS[field_name], value)
    elif field_name in _LIST_FIELDS:
        setattr(repo, _LIST_FIELDS[field_name], value.split(","))
    else:
        raise SettingError(SUPPORTED_FIELDS_MESSAGE)


def cmd_set(args: Sequence[str]) -> None:
    """Change a repository field or the global debug flag and save the configuration.

    A wrong number of arguments raises :class:`SettingError`; other problems are reported.
    """
    _check_args(args)
    try:
        cfg = get_config()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return
    try:
        apply_setting(cfg, args)
    except SettingError as exc:
        print(exc)
        return
    try:
        cfg.save()
    except (ConfigError, OSError) as exc:
        print(f"Error saving config: {exc}")


def tidy(cfg: Config) -> list[Path]:
    """Delete every version directory except the current one; return what was deleted."""
    data_dir = Path(cfg.global_config.data_dir)
    removed: list[Path] = []
    for key in sorted(cfg.repos):
        repo = cfg.repos[key]
        if not repo.current_version:
            continue
        name = key.partition("/")[2]
        repo_dir = data_dir / name / "general"
        try:
            entries = sorted(repo_dir.iterdir())
        except OSError:
            continue
        for entry in entries:
            if entry.is_symlink() or not entry.is_dir():
                continue
            if entry.name == repo.current_version:
                continue
            shutil.rmtree(entry, ignore_errors=True)
            print(f"Deleted old version: {entry}")
            removed.append(entry)
    return removed


def cmd_tidy() -> None:
    """Remove old versions of every tracked repository."""
    try:
        cfg = get_config()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return
    tidy(cfg)
    print("Tidy complete.")


def format_age(delta: timedelta) -> str:
    """Describe ``delta`` by its largest whole unit, such as ``3 days``."""
    micro = abs(delta) // timedelta(microseconds=1)
    for unit, size in _AGE_UNITS:
        count = micro // size
        if count:
            return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
    return "0 seconds"


def _published(published_at: datetime | None, now: datetime) -> str:
    if published_at is None:
        return "unknown"
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    return f"{format_age(now - published_at)} ago"


def cmd_releases(number: str, limit: int = 10) -> None:
    """Show installed versions and recent GitHub releases of a tracked repository."""
    try:
        mgr = new_manager()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}")
        return

    repos = repos_from_args([number], mgr.cfg)
    if not repos:
        print("Invalid repository number provided.")
        return
    repo_path = repos[0]
    repo_cfg = mgr.cfg.repos[repo_path]
    owner, _, name = repo_path.partition("/")

    print(f"Installed versions for {repo_path} (newest first):")
    for version in repo_cfg.version_history:
        print(f" - {version}")
    print()

    try:
        releases = mgr.client.list_releases(owner, name, limit)
    except GitHubError as exc:
        print(f"Could not fetch releases from GitHub: {exc}")
        return

    now = datetime.now(timezone.utc)
    rows = [
        [
            rel.tag_name,
            rel.name,
            _published(rel.published_at, now),
            "Pre-release" if rel.prerelease else "Stable",
        ]
        for rel in releases
    ]
    print(f"Latest {limit} releases from GitHub:")
    print(tabulate(rows, headers=RELEASE_HEADERS, tablefmt="github", disable_numparse=True))