"""Host platform and architecture detection.

The build step compares the host against each matrix target to decide between
a native and a cross toolchain. Names match the matrix vocabulary
(``linux``/``macos``/``windows``, ``x86_64``/``arm64``).
"""

from __future__ import annotations

import os as _os
import platform as _platform
import sys as _sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

__all__ = [
    "Arch",
    "HostInfo",
    "Platform",
    "detect",
    "detect_arch",
    "detect_platform",
]


class Platform(Enum):
    """Operating system platform."""

    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


class Arch(Enum):
    """CPU architecture."""

    X86_64 = "x86_64"
    ARM64 = "arm64"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class HostInfo:
    """The machine running the pipeline job."""

    platform: Platform
    arch: Arch

    @property
    def os_name(self) -> str:
        return self.platform.value

    @property
    def arch_name(self) -> str:
        return self.arch.value

    def __str__(self) -> str:
        return f"{self.platform}-{self.arch}"


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current operating system (cached)."""
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Platform.LINUX
    if system.startswith("darwin"):
        return Platform.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Platform.WINDOWS
    return Platform.UNKNOWN


@lru_cache(maxsize=1)
def detect_arch() -> Arch:
    """Detect the current CPU architecture (cached)."""
    # NOTE: platform.machine() may query WMI on Windows; read the env instead.
    if detect_platform() == Platform.WINDOWS:
        machine = (
            _os.environ.get("PROCESSOR_ARCHITEW6432")
            or _os.environ.get("PROCESSOR_ARCHITECTURE")
            or ""
        ).lower()
    else:
        machine = _platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return Arch.X86_64
    if machine in ("aarch64", "arm64"):
        return Arch.ARM64
    return Arch.UNKNOWN


@lru_cache(maxsize=1)
def detect() -> HostInfo:
    return HostInfo(platform=detect_platform(), arch=detect_arch())
