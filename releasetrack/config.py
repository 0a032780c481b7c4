"""Persistent JSON configuration: global settings and tracked repositories."""

from __future__ import annotations

import functools
import json
import os
import sys
import threading
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

CONFIG_FILE_NAME = "config.json"
APP_DIR_NAME = "track"
DEFAULT_BACKUP_COUNT = 3
DEFAULT_EXCLUDED_PATTERNS = ("\\.deb$", "\\.rpm$", "checksums", "\\.sig$", "\\.asc$")

_save_lock = threading.Lock()

_KIND_NAMES = {str: "a string", int: "an integer", bool: "a boolean", list: "a list of strings"}


class ConfigError(Exception):
    """Raised when the configuration cannot be located, read, parsed or written."""


def _opt(kind: type, *, omitempty: bool = False) -> Any:
    meta = {"kind": kind, "omitempty": omitempty}
    if kind is list:
        return field(default_factory=list, metadata=meta)
    return field(default=kind(), metadata=meta)


@dataclass
class GlobalConfig:
    """Settings that apply to every tracked repository."""

    data_dir: str = _opt(str)
    backup_count: int = _opt(int)
    excluded_patterns: list[str] = _opt(list)
    default_asset_priority: list[str] = _opt(list, omitempty=True)
    preferred_archive_types: list[str] = _opt(list, omitempty=True)
    default_prerelease: bool = _opt(bool, omitempty=True)
    default_asset_filter: str = _opt(str, omitempty=True)
    default_install_name: str = _opt(str, omitempty=True)
    matcher_mode: str = _opt(str, omitempty=True)
    debug: bool = _opt(bool, omitempty=True)


@dataclass
class Repo:
    """A tracked repository and its asset selection preferences."""

    path: str = ""
    install_name: str = _opt(str, omitempty=True)
    asset_filter: str = _opt(str, omitempty=True)
    asset_exclude: str = _opt(str, omitempty=True)
    include_prerelease: bool = _opt(bool)
    current_version: str = _opt(str)
    version_history: list[str] = _opt(list)
    asset_priority: list[str] = _opt(list, omitempty=True)
    preferred_archives: list[str] = _opt(list, omitempty=True)
    fallback_arch: list[str] = _opt(list, omitempty=True)
    fallback_os: list[str] = _opt(list, omitempty=True)
    matcher_mode: str = _opt(str, omitempty=True)


def _dump(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        kind = f.metadata.get("kind")
        if kind is None:
            continue
        value = getattr(obj, f.name)
        if f.metadata["omitempty"] and not value:
            continue
        out[f.name] = list(value) if kind is list else value
    return out


def _matches(kind: type, value: Any) -> bool:
    if kind is bool:
        return isinstance(value, bool)
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is list:
        return isinstance(value, list) and all(isinstance(item, str) for item in value)
    return isinstance(value, kind)


def _load(cls: type, raw: Any, where: str, **extra: Any) -> Any:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"failed to parse config file: {where} must be an object")
    values: dict[str, Any] = {}
    for f in fields(cls):
        kind = f.metadata.get("kind")
        if kind is None or f.name not in raw or raw[f.name] is None:
            continue
        value = raw[f.name]
        if not _matches(kind, value):
            raise ConfigError(
                f"failed to parse config file: {where}.{f.name} must be {_KIND_NAMES[kind]}"
            )
        values[f.name] = list(value) if kind is list else value
    return cls(**values, **extra)


@dataclass
class Config:
    """The whole configuration file."""

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    repos: dict[str, Repo] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, with repositories in sorted order."""
        return {
            "global": _dump(self.global_config),
            "repos": {key: _dump(self.repos[key]) for key in sorted(self.repos)},
        }

    def save(self, path: str | os.PathLike[str] | None = None) -> None:
        """Write the configuration as indented JSON to ``path`` or the default location."""
        with _save_lock:
            target = Path(path) if path is not None else config_path()
            text = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
            target.write_text(text, encoding="utf-8")


def parse_config(data: str | bytes) -> Config:
    """Build a :class:`Config` from JSON text."""
    try:
        raw = json.loads(data)
    except ValueError as exc:
        raise ConfigError(f"failed to parse config file: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("failed to parse config file: top level must be an object")
    global_config = _load(GlobalConfig, raw.get("global"), "global")
    raw_repos = raw.get("repos") or {}
    if not isinstance(raw_repos, dict):
        raise ConfigError("failed to parse config file: repos must be an object")
    repos = {
        key: _load(Repo, value, f"repos.{key}", path=key) for key, value in raw_repos.items()
    }
    return Config(global_config=global_config, repos=repos)


def load_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Read the configuration, creating and saving defaults when the file is missing."""
    target = Path(path) if path is not None else config_path()
    if not target.exists():
        cfg = default_config()
        try:
            cfg.save(target)
        except OSError as exc:
            raise ConfigError(f"failed to save default config: {exc}") from exc
        return cfg
    try:
        data = target.read_bytes()
    except OSError as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc
    return parse_config(data)


@functools.lru_cache(maxsize=None)
def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    return load_config()


def _is_windows() -> bool:
    return os.sep == "\\"


def _user_cache_dir() -> Path:
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA", "")
        if not local:
            raise OSError("%LocalAppData% is not defined")
        return Path(local)
    if sys.platform == "darwin":
        home = os.environ.get("HOME", "")
        if not home:
            raise OSError("$HOME is not defined")
        return Path(home, "Library", "Caches")
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    if xdg:
        if not os.path.isabs(xdg):
            raise OSError("path in $XDG_CACHE_HOME is relative")
        return Path(xdg)
    home = os.environ.get("HOME", "")
    if not home:
        raise OSError("neither $XDG_CACHE_HOME nor $HOME are defined")
    return Path(home, ".cache")


def data_path() -> Path:
    """Return the data directory, creating it if needed."""
    try:
        base = _user_cache_dir()
    except OSError:
        base = Path(os.path.expanduser("~"), ".local", "share")
    track_dir = base / APP_DIR_NAME
    track_dir.mkdir(parents=True, exist_ok=True)
    return track_dir


def config_path() -> Path:
    """Return the location of the configuration file, creating its directory."""
    if _is_windows():
        local = os.environ.get("LOCALAPPDATA", "")
        if not local:
            raise ConfigError("LOCALAPPDATA not set")
        track_dir = Path(local) / APP_DIR_NAME
    else:
        track_dir = data_path()
    track_dir.mkdir(parents=True, exist_ok=True)
    return track_dir / CONFIG_FILE_NAME


def default_config() -> Config:
    """Return a fresh configuration with default global settings."""
    try:
        data_dir = str(data_path())
    except OSError:
        data_dir = ""
    return Config(
        global_config=GlobalConfig(
            data_dir=data_dir,
            backup_count=DEFAULT_BACKUP_COUNT,
            excluded_patterns=list(DEFAULT_EXCLUDED_PATTERNS),
        ),
        repos={},
    )