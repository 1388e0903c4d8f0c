"""Git operations used by the version bump.

Usage:
    from grimrel.git import Repository

    repo = Repository(Path("/path/to/grim"))
    tags = repo.list_tags(merged_into="master")
"""

from grimrel.git.repository import (
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]
