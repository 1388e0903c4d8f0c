"""Platform abstraction layer."""

from .detection import Arch, HostInfo, Platform, detect
from .files import atomic_write_bytes, atomic_write_text
from .process import ProcessError, run

__all__ = [
    # detection
    "Arch",
    "HostInfo",
    "Platform",
    "detect",
    # files
    "atomic_write_bytes",
    "atomic_write_text",
    # process
    "ProcessError",
    "run",
]
