"""Version-bearing files, edited as one transactional set.

Each VersionFile names a file, a pattern whose ``value`` group holds the
current value, and a builder producing the replacement. ``plan_edits`` reads
every file and computes every substitution up front, so a missing file or a
pattern that no longer matches aborts before anything is written.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.platform.files import atomic_write_text
from grimrel.services.release.errors import VersionFileError
from grimrel.services.release.semver import SemVer

__all__ = [
    "DEFAULT_VERSION_FILES",
    "FileEdit",
    "VersionFile",
    "apply_edits",
    "current_values",
    "fresh_package_id",
    "plan_edits",
    "restore_edits",
]

ValueBuilder = Callable[[str, SemVer], str]


@dataclass(frozen=True, slots=True)
class VersionFile:
    label: str
    path: str  # relative to the project root
    pattern: re.Pattern[str]
    build: ValueBuilder
    section: str | None = None  # restrict matching to a TOML [section]


@dataclass(frozen=True, slots=True)
class FileEdit:
    path: Path
    original: str | None  # None: the file did not exist before
    updated: str

    @property
    def changed(self) -> bool:
        return self.original != self.updated


def fresh_package_id(previous: str) -> str:
    """A new upper-case UUID, never equal to the previous identifier."""
    while True:
        candidate = str(uuid.uuid4()).upper()
        if candidate.lower() != previous.strip().lower():
            return candidate


def _version_value(_old: str, version: SemVer) -> str:
    return str(version)


def _package_id_value(old: str, _version: SemVer) -> str:
    return fresh_package_id(old)


DEFAULT_VERSION_FILES: tuple[VersionFile, ...] = (
    VersionFile(
        label="installer version",
        path="wix/main.wxs",
        pattern=re.compile(r'" Version="(?P<value>[^"]*)"'),
        build=_version_value,
    ),
    VersionFile(
        label="installer package id",
        path="wix/main.wxs",
        pattern=re.compile(r'<Package Id="(?P<value>[^"]*)"'),
        build=_package_id_value,
    ),
    VersionFile(
        label="android versionName",
        path="android/app/build.gradle",
        pattern=re.compile(r'versionName\s+"(?P<value>[^"]*)"'),
        build=_version_value,
    ),
    VersionFile(
        label="cargo package version",
        path="Cargo.toml",
        pattern=re.compile(r'(?m)^version\s*=\s*"(?P<value>[^"]*)"'),
        build=_version_value,
        section="package",
    ),
)


def _section_span(text: str, section: str) -> tuple[int, int] | None:
    header = re.search(rf"(?m)^\[{re.escape(section)}\]\s*$", text)
    if header is None:
        return None
    start = header.end()
    nxt = re.search(r"(?m)^\[", text[start:])
    end = start + nxt.start() if nxt is not None else len(text)
    return (start, end)


def _substitute(
    text: str,
    entry: VersionFile,
    version: SemVer,
    path: Path,
) -> Result[str, VersionFileError]:
    lo, hi = 0, len(text)
    if entry.section is not None:
        span = _section_span(text, entry.section)
        if span is None:
            return Err(VersionFileError(path=path, reason=f"missing [{entry.section}] section"))
        lo, hi = span

    region = text[lo:hi]
    matches = list(entry.pattern.finditer(region))
    if not matches:
        return Err(VersionFileError(path=path, reason=f"{entry.label} not found"))
    if entry.section is not None:
        matches = matches[:1]

    out: list[str] = []
    cursor = 0
    for m in matches:
        out.append(region[cursor : m.start("value")])
        out.append(entry.build(m.group("value"), version))
        cursor = m.end("value")
    out.append(region[cursor:])

    return Ok(text[:lo] + "".join(out) + text[hi:])


def _read(path: Path) -> Result[str, VersionFileError]:
    try:
        # Keep line endings byte-for-byte.
        return Ok(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(VersionFileError(path=path, reason="file not found"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(VersionFileError(path=path, reason=f"failed to read: {e}"))


def plan_edits(
    *,
    root: Path,
    version: SemVer,
    files: Sequence[VersionFile] = DEFAULT_VERSION_FILES,
) -> Result[list[FileEdit], VersionFileError]:
    """Compute the full edit set in memory; nothing is written."""
    originals: dict[Path, str] = {}
    texts: dict[Path, str] = {}

    for entry in files:
        path = root / entry.path
        if path not in texts:
            read = _read(path)
            if isinstance(read, Err):
                return read
            originals[path] = read.value
            texts[path] = read.value

        updated = _substitute(texts[path], entry, version, path)
        if isinstance(updated, Err):
            return updated
        texts[path] = updated.value

    return Ok([FileEdit(path=p, original=originals[p], updated=texts[p]) for p in texts])


def apply_edits(edits: Sequence[FileEdit]) -> Result[list[Path], VersionFileError]:
    """Write the edit set; on a failed write, restore what was already written."""
    written: list[FileEdit] = []
    for edit in edits:
        if not edit.changed:
            continue
        try:
            atomic_write_text(edit.path, edit.updated)
        except OSError as e:
            reason = f"failed to write: {e}"
            stuck = restore_edits(written)
            if stuck:
                reason += f" (could not restore: {', '.join(p.name for p in stuck)})"
            return Err(VersionFileError(path=edit.path, reason=reason))
        written.append(edit)
    return Ok([e.path for e in written])


def restore_edits(edits: Sequence[FileEdit]) -> list[Path]:
    """Put the original contents back; returns the paths that could not be restored.

    A file that did not exist before the edit is removed.
    """
    failed: list[Path] = []
    for edit in edits:
        try:
            if edit.original is None:
                edit.path.unlink(missing_ok=True)
            else:
                atomic_write_text(edit.path, edit.original)
        except OSError:
            failed.append(edit.path)
    return failed


def current_values(
    *,
    root: Path,
    files: Sequence[VersionFile] = DEFAULT_VERSION_FILES,
) -> list[tuple[str, str | None]]:
    """(label, current value) for every descriptor; None when unreadable."""
    out: list[tuple[str, str | None]] = []
    for entry in files:
        path = root / entry.path
        read = _read(path)
        if isinstance(read, Err):
            out.append((entry.label, None))
            continue
        text = read.value
        if entry.section is not None:
            span = _section_span(text, entry.section)
            if span is None:
                out.append((entry.label, None))
                continue
            text = text[span[0] : span[1]]
        m = entry.pattern.search(text)
        out.append((entry.label, m.group("value") if m else None))
    return out
