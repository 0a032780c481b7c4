"""Downloading release assets with a progress bar."""

from __future__ import annotations

import os

import requests
from tqdm import tqdm

_CHUNK_SIZE = 32 * 1024
_TIMEOUT = (30, 300)


class DownloadError(Exception):
    """Raised when a download fails or the server answers with a non-OK status."""


def download_file(url: str, path: str | os.PathLike[str]) -> None:
    """Download ``url`` into ``path``, showing progress on an interactive terminal."""
    with open(path, "wb") as out:
        try:
            with requests.get(url, stream=True, timeout=_TIMEOUT) as response:
                if response.status_code != 200:
                    raise DownloadError(
                        f"bad status: {response.status_code} {response.reason or ''}".rstrip()
                    )
                try:
                    total = int(response.headers.get("Content-Length", "")) or None
                except ValueError:
                    total = None
                with tqdm(
                    total=total,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    ncols=100,
                    disable=None,
                ) as bar:
                    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                        out.write(chunk)
                        bar.update(len(chunk))
        except requests.RequestException as exc:
            raise DownloadError(str(exc)) from exc