from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class DirtyWorkingTreeError:
    paths: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"repo has uncommitted changes ({len(self.paths)} path(s))"

    @property
    def hint(self) -> str | None:
        shown = ", ".join(self.paths[:5])
        if len(self.paths) > 5:
            shown += ", ..."
        return f"Commit or stash changes first: {shown}"


@dataclass(frozen=True, slots=True)
class InvalidBumpClassError:
    value: str

    @property
    def message(self) -> str:
        return f"invalid bump class: {self.value!r}"

    @property
    def hint(self) -> str | None:
        return "Expected one of: patch, minor, major"


@dataclass(frozen=True, slots=True)
class TagExistsError:
    tag: str

    @property
    def message(self) -> str:
        return f"tag already exists: {self.tag}"

    @property
    def hint(self) -> str | None:
        return "Another bump created this version; fetch tags and retry."


@dataclass(frozen=True, slots=True)
class BranchMismatchError:
    current: str | None
    expected: str

    @property
    def message(self) -> str:
        current = self.current or "detached HEAD"
        return f"not on the release branch (on {current}, expected {self.expected})"

    @property
    def hint(self) -> str | None:
        return f"Run: git checkout {self.expected}"


@dataclass(frozen=True, slots=True)
class VersionFileError:
    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"{self.path.name}: {self.reason}"

    @property
    def hint(self) -> str | None:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class GitCommandError:
    command: str
    detail: str

    @property
    def message(self) -> str:
        return f"git {self.command} failed"

    @property
    def hint(self) -> str | None:
        return self.detail or None


VersionError = (
    DirtyWorkingTreeError
    | InvalidBumpClassError
    | TagExistsError
    | BranchMismatchError
    | VersionFileError
    | GitCommandError
)
