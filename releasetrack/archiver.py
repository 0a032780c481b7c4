"""Unpacking downloaded release archives and locating the executable inside."""

from __future__ import annotations

import os
import shutil
import tarfile
import zipfile
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO


class ArchiveError(Exception):
    """Raised for unsupported, corrupt or unsafe archives."""


def extract(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Extract a ``.zip``, ``.tar.gz`` or ``.tgz`` archive into ``dest``."""
    name = os.fspath(src)
    try:
        if name.endswith(".zip"):
            _unzip(name, Path(dest))
        elif name.endswith((".tar.gz", ".tgz")):
            _untar(name, Path(dest))
        else:
            raise ArchiveError(f"unsupported archive format: {name}")
    except (zipfile.BadZipFile, tarfile.TarError) as exc:
        raise ArchiveError(f"cannot read archive {name}: {exc}") from exc


def _member_path(dest: Path, member_name: str) -> Path:
    target = dest / member_name.lstrip("/\\")
    if not target.resolve().is_relative_to(dest.resolve()):
        raise ArchiveError(f"archive entry escapes destination: {member_name}")
    return target


def _open_for_write(target: Path, mode: int) -> BinaryIO:
    flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
    return os.fdopen(os.open(target, flags, mode), "wb")


def _unzip(src: str, dest: Path) -> None:
    with zipfile.ZipFile(src) as archive:
        for info in archive.infolist():
            target = _member_path(dest, info.filename)
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            mode = (info.external_attr >> 16) & 0o777 or 0o666
            with archive.open(info) as source, _open_for_write(target, mode) as out:
                shutil.copyfileobj(source, out)


def _untar(src: str, dest: Path) -> None:
    with tarfile.open(src, "r:gz") as archive:
        for member in archive:
            target = _member_path(dest, member.name)
            if member.isdir():
                target.mkdir(mode=0o755, parents=True, exist_ok=True)
            elif member.isreg():
                source = archive.extractfile(member)
                if source is None:
                    continue
                with source, _open_for_write(target, member.mode) as out:
                    shutil.copyfileobj(source, out)


def _walk(directory: str) -> Iterator[os.DirEntry[str]]:
    """Yield non-directory entries depth first in lexical order."""
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(entry.path)
        else:
            yield entry


def find_executable(
    directory: str | os.PathLike[str], repo_name: str, install_name: str
) -> str:
    """Return the path of the best executable under ``directory``.

    A file whose name (without ``.exe``) equals ``install_name`` or ``repo_name``,
    ignoring case, wins; otherwise the first executable found is returned.
    """
    root = os.fspath(directory)
    wanted = {install_name.casefold(), repo_name.casefold()}
    first: str | None = None
    for entry in _walk(root):
        mode = entry.stat(follow_symlinks=False).st_mode
        executable = bool(mode & 0o111) or (
            os.name == "nt" and entry.name.lower().endswith(".exe")
        )
        if not executable:
            continue
        if entry.name.removesuffix(".exe").casefold() in wanted:
            return entry.path
        if first is None:
            first = entry.path
    if first is not None:
        return first
    raise ArchiveError(f"no executable found in {root}")