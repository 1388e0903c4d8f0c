"""Git repository abstraction.

Repository wraps the handful of git operations the version bump needs:
status, tag enumeration, commit and tag creation, and the explicit push.
All operations return Result types.

Usage:
    repo = Repository(Path("/path/to/grim"))

    match repo.status():
        case Ok(status):
            if not status.is_clean:
                print([e.path for e in status.entries])
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.platform.process import ProcessError
from grimrel.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    @property
    def already_exists(self) -> bool:
        """True if git refused because the ref already exists."""
        return "already exists" in self.message


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed `git status --porcelain=v1 -b` output."""

    branch: str
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        """True if working tree has no changes (untracked files included)."""
        return len(self.entries) == 0

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(e.path for e in self.entries)


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository (.git dir or worktree file)."""
        return (self.path / ".git").exists()

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status."""
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(self._error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def list_tags(self, *, merged_into: str | None = None) -> Result[list[str], GitError]:
        """List tag names, optionally only those reachable from a ref."""
        args = ["tag", "--list"]
        if merged_into is not None:
            args += ["--merged", merged_into]
        result = self._run(args)
        match result:
            case Err(e):
                return Err(self._error("tag --list", e, "failed to list tags"))
            case Ok(stdout):
                return Ok([ln.strip() for ln in stdout.splitlines() if ln.strip()])

    def tag_exists(self, tag: str) -> bool:
        result = self._run(["rev-parse", "-q", "--verify", f"refs/tags/{tag}"])
        return isinstance(result, Ok)

    def add(self, paths: list[Path]) -> Result[None, GitError]:
        rels = [str(p.relative_to(self.path)) if p.is_absolute() else str(p) for p in paths]
        result = self._run(["add", "--", *rels])
        if isinstance(result, Err):
            return Err(self._error("add", result.error, "git add failed"))
        return Ok(None)

    def unstage(self, paths: list[Path]) -> Result[None, GitError]:
        rels = [str(p.relative_to(self.path)) if p.is_absolute() else str(p) for p in paths]
        result = self._run(["reset", "-q", "--", *rels])
        if isinstance(result, Err):
            return Err(self._error("reset", result.error, "git reset failed"))
        return Ok(None)

    def commit(self, message: str) -> Result[str, GitError]:
        """Commit the index and return the new HEAD sha."""
        result = self._run(["commit", "-m", message])
        if isinstance(result, Err):
            return Err(
                self._error(
                    "commit",
                    result.error,
                    "git commit failed (is user.name/user.email configured?)",
                )
            )
        return self.head_sha()

    def undo_commit(self) -> Result[None, GitError]:
        """Drop the last commit, keeping its changes staged (reset --soft HEAD~1)."""
        result = self._run(["reset", "-q", "--soft", "HEAD~1"])
        if isinstance(result, Err):
            return Err(self._error("reset --soft", result.error, "git reset failed"))
        return Ok(None)

    def create_tag(self, tag: str, target: str) -> Result[None, GitError]:
        """Create a lightweight tag; git refuses if it already exists."""
        result = self._run(["tag", tag, target])
        if isinstance(result, Err):
            return Err(self._error(f"tag {tag}", result.error, "git tag failed"))
        return Ok(None)

    def head_sha(self) -> Result[str, GitError]:
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(self._error("rev-parse HEAD", e, "failed to read HEAD"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def current_branch(self) -> str | None:
        """Get current branch name, None if detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def push(self, remote: str, refs: list[str]) -> Result[str, GitError]:
        result = self._run(["push", remote, *refs])
        match result:
            case Err(e):
                return Err(self._error(f"push {remote}", e, "push failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    @staticmethod
    def _error(command: str, e: ProcessError, fallback: str) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or fallback,
            returncode=e.returncode,
        )

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]
        if not lines:
            return GitStatus(branch="")

        branch = ""
        rest = lines
        if lines[0].startswith("##"):
            # ## branch...upstream [ahead N]
            head = lines[0][2:].strip().split(" [", 1)[0]
            branch = head.split("...", 1)[0].strip()
            rest = lines[1:]

        entries: list[StatusEntry] = []
        for line in rest:
            if len(line) < 4:
                continue
            entries.append(StatusEntry(xy=line[:2], path=line[3:]))

        return GitStatus(branch=branch, entries=tuple(entries))
