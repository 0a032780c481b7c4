"""Choosing the release asset that fits the host system and repository settings."""

from __future__ import annotations

import re

from .client import Asset, Release
from .config import GlobalConfig, Repo
from .sysinfo import get_info

_SKIP_SUFFIXES = (".sha256", ".asc", ".sig", ".pem", ".md5", ".sha512", ".txt", ".blockmap")
_SKIP_PARTS = ("checksum", "source")
_ARM_MARKERS = ("arm64", "aarch64", "armv8")
_AMD64_MARKERS = ("amd64", "x86_64", "x64")

_OS_KEYWORDS = {
    "windows": ["windows", "win", "win64", "win32", ".exe", ".msi"],
    "linux": ["linux", "ubuntu", "debian", "centos", "fedora", "appimage", "elf", "gnu"],
    "darwin": ["darwin", "macos", "osx", "apple"],
}
_ARCH_KEYWORDS = {
    "amd64": ["x86_64", "amd64", "x64", "64bit", "64-bit", "64"],
    "arm64": ["arm64", "aarch64", "armv8", "m1", "m2"],
    "386": ["386", "i386", "i686", "x86", "32bit", "32-bit", "32"],
}


class NoAssetError(LookupError):
    """Raised when no release asset suits the system."""


def system_keywords(os_name: str, arch: str) -> tuple[list[str], list[str]]:
    """Return the substrings that identify ``os_name`` and ``arch`` in asset names."""
    return list(_OS_KEYWORDS.get(os_name, [])), list(_ARCH_KEYWORDS.get(arch, []))


def print_debug(global_cfg: GlobalConfig | None, message: str) -> None:
    """Print ``message`` with a debug prefix when debugging is enabled."""
    if global_cfg is not None and global_cfg.debug:
        print(f"[DEBUG] {message}")


def _compile(pattern: str) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error:
        return None


def _contains_any(name: str, parts: list[str] | tuple[str, ...]) -> bool:
    return any(part.lower() in name for part in parts)


def _ends_with_any(name: str, suffixes: list[str]) -> bool:
    return any(name.endswith(suffix.lower()) for suffix in suffixes)


def find_compatible_asset(
    release: Release,
    repo_cfg: Repo,
    global_cfg: GlobalConfig | None = None,
    os_name: str | None = None,
    arch: str | None = None,
) -> Asset:
    """Return the best asset of ``release`` for the given (or host) OS and architecture."""
    if os_name is None or arch is None:
        host_os, host_arch = get_info()
        os_name = os_name or host_os
        arch = arch or host_arch
    g = global_cfg

    asset_priority = repo_cfg.asset_priority or (g.default_asset_priority if g else [])
    preferred = repo_cfg.preferred_archives or (g.preferred_archive_types if g else [])
    mode = repo_cfg.matcher_mode or (g.matcher_mode if g else "") or "strict"
    asset_filter = repo_cfg.asset_filter or (g.default_asset_filter if g else "")
    filter_re = _compile(asset_filter)
    exclude_re = _compile(repo_cfg.asset_exclude)

    os_words, arch_words = system_keywords(os_name, arch)
    windows_amd64 = os_name == "windows" and arch == "amd64"
    linux_amd64 = os_name == "linux" and arch == "amd64"
    arm_requested = (
        "arm64" in ",".join(asset_priority)
        or "arm64" in asset_filter
        or "aarch64" in asset_filter
    )

    def accept(name: str) -> bool:
        print_debug(g, f"Checking asset: {name}")
        if name.endswith(_SKIP_SUFFIXES) or _contains_any(name, _SKIP_PARTS):
            print_debug(g, f"Skipped (checksum/source): {name}")
            return False
        if exclude_re is not None and exclude_re.search(name):
            print_debug(g, f"Skipped (excludeRe): {name}")
            return False
        if filter_re is not None and not filter_re.search(name):
            print_debug(g, f"Skipped (filterRe): {name}")
            return False
        if mode == "strict" and not (
            _contains_any(name, os_words) and _contains_any(name, arch_words)
        ):
            return False
        if windows_amd64 and _contains_any(name, _ARM_MARKERS):
            return False
        if linux_amd64:
            if not arm_requested and _contains_any(name, _ARM_MARKERS):
                return False
            if not (_contains_any(name, _AMD64_MARKERS) and "linux" in name):
                print_debug(g, f"Skipped (not linux/amd64/x86_64/x64): {name}")
                return False
            print_debug(g, f"Candidate for Linux AMD64: {name}")
        if os_name in ("windows", "darwin", "linux") and os_name not in name:
            return False
        return True

    candidates = [asset for asset in release.assets if accept(asset.name.lower())]

    if asset_priority:
        for asset in candidates:
            name = asset.name.lower()
            if _contains_any(name, asset_priority) and (
                not preferred or _ends_with_any(name, preferred)
            ):
                return asset

    if preferred:
        for asset in candidates:
            if _ends_with_any(asset.name.lower(), preferred):
                return asset

    if candidates:
        return candidates[0]

    fallback_arch = repo_cfg.fallback_arch
    fallback_os = repo_cfg.fallback_os
    if mode == "relaxed" and (fallback_arch or fallback_os):
        for asset in release.assets:
            name = asset.name.lower()
            arch_ok = not fallback_arch or _contains_any(name, fallback_arch)
            os_ok = not fallback_os or _contains_any(name, fallback_os)
            if arch_ok and os_ok:
                return asset

    raise NoAssetError(f"no assets found for your OS ({os_name}) and arch ({arch})")