"""Updating the command-line tool itself from its own releases."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests

from .sysinfo import get_info

CURRENT_VERSION = "v1.0.1"
UPDATE_REPO = "releasetrack/releasetrack"
LATEST_RELEASE_URL = f"https://api.github.com/repos/{UPDATE_REPO}/releases/latest"
_TIMEOUT = 60
_ARCHIVE_SUFFIXES = (".zip", ".tar.gz", ".tgz")
_ARCH_MARKERS = {
    "amd64": ("amd64", "x86_64", "x64"),
    "arm64": ("arm64", "aarch64", "armv8"),
    "386": ("386", "i386", "i686", "x86"),
}


class UpdateError(Exception):
    """Raised when the tool cannot update itself."""


@dataclass(frozen=True)
class ReleaseAsset:
    """A file attached to a release of the tool."""

    name: str
    browser_download_url: str = ""


@dataclass
class ReleaseInfo:
    """The tag and assets of a release of the tool."""

    tag_name: str
    assets: list[ReleaseAsset] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseInfo:
        """Build from a GitHub API release object."""
        return cls(
            tag_name=data.get("tag_name") or "",
            assets=[
                ReleaseAsset(
                    name=item.get("name") or "",
                    browser_download_url=item.get("browser_download_url") or "",
                )
                for item in data.get("assets") or []
            ],
        )


def asset_name(version: str) -> str:
    """Return the asset name published for ``version`` on this host."""
    os_name, arch = get_info()
    return f"track-{version}-{os_name}-{arch}.zip"


def fetch_latest_release() -> ReleaseInfo:
    """Fetch the latest release of the tool."""
    try:
        response = requests.get(LATEST_RELEASE_URL, timeout=_TIMEOUT)
    except requests.RequestException as exc:
        raise UpdateError(str(exc)) from exc
    with response:
        if response.status_code != 200:
            raise UpdateError(f"GitHub API returned status {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise UpdateError(f"invalid release data: {exc}") from exc
    if not isinstance(data, dict):
        raise UpdateError("invalid release data")
    return ReleaseInfo.from_dict(data)


def download_asset(url: str) -> str:
    """Download ``url`` to a new temporary file and return its path."""
    try:
        with requests.get(url, stream=True, timeout=_TIMEOUT) as response:
            if response.status_code != 200:
                raise UpdateError(f"download failed: {response.status_code}")
            with tempfile.NamedTemporaryFile(
                prefix="track-update-", suffix=".zip", delete=False
            ) as out:
                try:
                    for chunk in response.iter_content(chunk_size=32 * 1024):
                        out.write(chunk)
                except requests.RequestException:
                    out.close()
                    os.remove(out.name)
                    raise
                return out.name
    except requests.RequestException as exc:
        raise UpdateError(str(exc)) from exc


def unzip(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Extract the zip archive ``src`` into ``dest``."""
    root = Path(dest)
    with zipfile.ZipFile(src) as archive:
        for info in archive.infolist():
            target = root / info.filename
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            mode = (info.external_attr >> 16) & 0o777 or 0o666
            flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
            with archive.open(info) as source, os.fdopen(
                os.open(target, flags, mode), "wb"
            ) as out:
                shutil.copyfileobj(source, out)


def select_update_asset(release: ReleaseInfo, os_name: str, arch: str) -> ReleaseAsset:
    """Return the first archive asset of ``release`` built for ``os_name`` and ``arch``."""
    for asset in release.assets:
        name = asset.name.lower()
        if os_name in ("windows", "linux", "darwin") and os_name not in name:
            continue
        markers = _ARCH_MARKERS.get(arch)
        if markers and not any(marker in name for marker in markers):
            continue
        if name.endswith(_ARCHIVE_SUFFIXES):
            return asset
    raise UpdateError("no suitable asset found for this OS/Arch")


def _replace_windows(zip_path: str, target_exe: Path) -> None:
    tmp_dir = tempfile.mkdtemp(prefix="track-update-")
    unzip(zip_path, tmp_dir)
    new_exe = Path(tmp_dir) / target_exe.name
    bat = Path(tmp_dir) / "replace_track.bat"
    bat.write_bytes(
        (
            "@echo off\r\n"
            "echo Waiting for track.exe to exit...\r\n"
            ":loop\r\n"
            'tasklist | findstr /I "track.exe" >nul\r\n'
            "if not errorlevel 1 (timeout /t 1 >nul & goto loop)\r\n"
            f'copy /Y "{new_exe}" "{target_exe}"\r\n'
            "echo Updated!\r\n"
            f'start "" "{target_exe}"\r\n'
        ).encode("utf-8")
    )
    print("Update downloaded. The CLI will now exit and update itself you may see a terminal open up...")
    subprocess.Popen(["cmd", "/C", str(bat)])


def _replace_posix(zip_path: str, target_exe: Path) -> None:
    tmp_dir = tempfile.mkdtemp(prefix="track-update-")
    unzip(zip_path, tmp_dir)
    new_exe = Path(tmp_dir) / target_exe.name
    script = Path(tmp_dir) / "replace_track.sh"
    script.write_text(
        "#!/bin/sh\n"
        "echo Waiting for track to exit...\n"
        'while lsof | grep "$1" > /dev/null; do sleep 1; done\n'
        'cp "$1" "$2"\n'
        'chmod +x "$2"\n'
        "echo Updated!\n"
        'exec "$2"\n',
        encoding="utf-8",
    )
    script.chmod(0o755)
    print("Update downloaded. The CLI will now exit and update itself...")
    subprocess.Popen(["sh", str(script), str(new_exe), str(target_exe)])


def update_track() -> None:
    """Replace the running tool with its latest release when a newer one exists.

    On Windows, Linux and macOS a helper script finishes the replacement, and the
    process exits.
    """
    release = fetch_latest_release()
    print(f"Current track version: {CURRENT_VERSION}")
    print(f"Latest available version: {release.tag_name}")
    if release.tag_name.removeprefix("v") == CURRENT_VERSION.removeprefix("v"):
        print("track CLI is already up-to-date.")
        return
    print("New update found! Proceeding to update track CLI...")

    os_name, arch = get_info()
    asset = select_update_asset(release, os_name, arch)
    zip_path = download_asset(asset.browser_download_url)
    try:
        target_exe = Path(sys.argv[0]).resolve()
        if os_name == "windows":
            _replace_windows(zip_path, target_exe)
            sys.exit(0)
        if os_name in ("linux", "darwin"):
            _replace_posix(zip_path, target_exe)
            sys.exit(0)
        unzip(zip_path, target_exe.parent)
    finally:
        try:
            os.remove(zip_path)
        except OSError:
            pass


def self_update() -> None:
    """Update the tool, reporting the outcome on standard output."""
    print("Checking for updates...")
    try:
        update_track()
    except (UpdateError, OSError, zipfile.BadZipFile) as exc:
        print(f"Update failed: {exc}")
        return
    print("track was updated successfully!")