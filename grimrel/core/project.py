"""Project root detection and paths.

The project is the checkout of the application being released. Its root holds
the cargo manifest and the git directory; ``release.toml`` is optional.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILE_NAME
from .result import Err, Ok, Result

__all__ = [
    "Project",
    "ProjectError",
    "detect_project",
    "find_project_upward",
    "is_project_root",
    "ROOT_ENV_VAR",
]

ROOT_ENV_VAR = "GRIMREL_ROOT"


@dataclass(frozen=True)
class ProjectError:
    """Error when the project root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A detected application checkout."""

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    def __str__(self) -> str:
        return str(self.root)


def is_project_root(path: Path) -> bool:
    """A project root has a Cargo.toml and a .git entry (dir or worktree file)."""
    return (path / "Cargo.toml").is_file() and (path / ".git").exists()


def find_project_upward(start: Path) -> Path | None:
    for parent in (start, *start.parents):
        if is_project_root(parent):
            return parent
    return None


def detect_project(
    *,
    start_dir: Path | None = None,
    env_var: str = ROOT_ENV_VAR,
) -> Result[Project, ProjectError]:
    """Detect the project root directory.

    Detection order:
    1. GRIMREL_ROOT environment variable (if set it must be valid)
    2. Search upward from start_dir (or cwd)
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_project_root(env_path):
            return Ok(Project(root=env_path))
        return Err(
            ProjectError(
                message=f"${env_var} is set to '{env_value}' but it is not a project root",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_project_upward(search_start)
    if found is None:
        return Err(
            ProjectError(
                message="Could not find project root (Cargo.toml with .git)",
                searched_from=search_start,
            )
        )
    return Ok(Project(root=found))
