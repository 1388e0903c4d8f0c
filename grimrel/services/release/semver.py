from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from grimrel.core.result import Err, Ok, Result
from grimrel.services.release.errors import InvalidBumpClassError

BumpKind = Literal["patch", "minor", "major"]

_STABLE_RE = re.compile(r"^v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def to_tag(self) -> str:
        return f"v{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: BumpKind) -> SemVer:
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


# Pre-release baseline used when no release tag exists yet. Never tagged itself.
BASELINE = SemVer(0, 1, 0)


def parse_stable_tag(tag: str) -> SemVer | None:
    m = _STABLE_RE.match(tag)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_bump(value: str) -> Result[BumpKind, InvalidBumpClassError]:
    match value:
        case "patch" | "minor" | "major":
            return Ok(value)
        case _:
            return Err(InvalidBumpClassError(value=value))


def latest_version(tags: Iterable[str]) -> SemVer:
    """Greatest release version among tags, compared numerically.

    Tags that are not ``vMAJOR.MINOR.PATCH`` are ignored. Falls back to
    BASELINE when nothing parses.
    """
    latest: SemVer | None = None
    for tag in tags:
        version = parse_stable_tag(tag)
        if version is not None and (latest is None or version > latest):
            latest = version
    return latest if latest is not None else BASELINE


def next_version(tags: Iterable[str], kind: BumpKind) -> SemVer:
    return latest_version(tags).bump(kind)
