"""Host operating system and CPU architecture, named as release assets name them."""

from __future__ import annotations

import platform
import sys

_OS_ALIASES = {
    "win32": "windows",
    "cygwin": "windows",
}

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8": "arm64",
    "armv8l": "arm64",
    "i386": "386",
    "i486": "386",
    "i586": "386",
    "i686": "386",
    "x86": "386",
    "armv6l": "arm",
    "armv7l": "arm",
}


def get_info() -> tuple[str, str]:
    """Return ``(os, arch)`` using short names such as ``linux`` and ``amd64``."""
    system = platform.system().lower() or sys.platform
    system = _OS_ALIASES.get(system, system)
    machine = platform.machine().lower()
    return system, _ARCH_ALIASES.get(machine, machine)