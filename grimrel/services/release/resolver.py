"""Compute the next release version, then edit, commit and tag it.

The flow never pushes: ``push_release`` is a separate, explicit step so the
operator keeps a final veto before the tag reaches the shared history and
triggers the pipeline.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from grimrel.core.config import ReleaseConfig
from grimrel.core.result import Err, Ok, Result
from grimrel.git.repository import GitError, Repository
from grimrel.output.console import ConsoleProtocol, Style
from grimrel.platform.process import run as run_process
from grimrel.services.release.errors import (
    BranchMismatchError,
    DirtyWorkingTreeError,
    GitCommandError,
    TagExistsError,
    VersionError,
    VersionFileError,
)
from grimrel.services.release.semver import SemVer, latest_version, parse_bump
from grimrel.services.release.version_files import (
    DEFAULT_VERSION_FILES,
    FileEdit,
    VersionFile,
    apply_edits,
    plan_edits,
    restore_edits,
)

LOCK_REFRESH_TIMEOUT_SECONDS = 5 * 60.0


@dataclass(frozen=True, slots=True)
class ResolvedRelease:
    previous: SemVer
    version: SemVer
    commit: str | None
    changed: tuple[Path, ...]

    @property
    def tag(self) -> str:
        return self.version.to_tag()


def commit_message(version: SemVer) -> str:
    return f"release: {version.to_tag()}"


def _git_err(e: GitError) -> GitCommandError:
    return GitCommandError(command=e.command, detail=e.message)


def _refresh_lock(
    *,
    root: Path,
    app: str,
    console: ConsoleProtocol,
) -> Result[FileEdit | None, VersionFileError]:
    """Re-resolve Cargo.lock so it carries the new package version.

    Returns the lock's pre-refresh snapshot so a later failure can restore it.
    A lock that cargo creates from scratch is removed again on restore.
    """
    lock = root / "Cargo.lock"
    try:
        before = lock.read_bytes().decode("utf-8") if lock.exists() else None
    except (OSError, UnicodeDecodeError) as e:
        return Err(VersionFileError(path=lock, reason=f"failed to read: {e}"))

    console.print(f"cargo update -p {app}", Style.DIM)
    result = run_process(
        ["cargo", "update", "-p", app],
        cwd=root,
        timeout=LOCK_REFRESH_TIMEOUT_SECONDS,
    )
    snapshot = FileEdit(path=lock, original=before, updated=before or "")
    if isinstance(result, Err):
        restore_edits([snapshot])
        return Err(
            VersionFileError(path=lock, reason=f"lock refresh failed: {result.error.detail()}")
        )
    if before is None and not lock.exists():
        return Ok(None)
    return Ok(snapshot)


def resolve_and_tag(
    *,
    root: Path,
    bump: str,
    config: ReleaseConfig,
    console: ConsoleProtocol,
    dry_run: bool = False,
    files: Sequence[VersionFile] = DEFAULT_VERSION_FILES,
    refresh_lock: bool = True,
) -> Result[ResolvedRelease, VersionError]:
    """Bump the version, commit the version files and tag the commit.

    Checks run in order and each one fails before any write:
    clean working tree, valid bump class, release branch checked out, next
    tag not taken. Then the edit set is applied as a unit, the lock file is
    refreshed (rolling the edits back on failure), the commit is made and the
    tag created. A tag that appears concurrently makes git refuse the tag,
    reported as TagExistsError after the release commit is dropped again.
    """
    repo = Repository(root)

    status = repo.status()
    if isinstance(status, Err):
        return Err(_git_err(status.error))
    if not status.value.is_clean:
        return Err(DirtyWorkingTreeError(paths=status.value.paths))

    kind = parse_bump(bump)
    if isinstance(kind, Err):
        return kind

    branch = repo.current_branch()
    if branch != config.branch:
        return Err(BranchMismatchError(current=branch, expected=config.branch))

    tags = repo.list_tags(merged_into=config.branch)
    if isinstance(tags, Err):
        return Err(_git_err(tags.error))

    previous = latest_version(tags.value)
    version = previous.bump(kind.value)
    tag = version.to_tag()
    if repo.tag_exists(tag):
        return Err(TagExistsError(tag=tag))

    console.info(f"{previous.to_tag()} -> {tag} ({kind.value})")

    planned = plan_edits(root=root, version=version, files=files)
    if isinstance(planned, Err):
        return planned
    edits = planned.value

    for edit in edits:
        if edit.changed:
            console.print(f"edit {edit.path.relative_to(root)}", Style.DIM)
    console.print(f"git commit -m {commit_message(version)!r}", Style.DIM)
    console.print(f"git tag {tag} <commit on {config.branch}>", Style.DIM)

    if dry_run:
        return Ok(
            ResolvedRelease(
                previous=previous,
                version=version,
                commit=None,
                changed=tuple(e.path for e in edits if e.changed),
            )
        )

    written = apply_edits(edits)
    if isinstance(written, Err):
        return written
    rollback = [e for e in edits if e.changed]
    changed = list(written.value)

    if refresh_lock:
        lock = _refresh_lock(root=root, app=config.app, console=console)
        if isinstance(lock, Err):
            _rollback(rollback, console)
            return lock
        if lock.value is not None:
            rollback.append(lock.value)
            changed.append(lock.value.path)

    added = repo.add(changed)
    if isinstance(added, Err):
        _rollback(rollback, console)
        return Err(_git_err(added.error))

    commit = repo.commit(commit_message(version))
    if isinstance(commit, Err):
        repo.unstage(changed)
        _rollback(rollback, console)
        return Err(_git_err(commit.error))

    created = repo.create_tag(tag, commit.value)
    if isinstance(created, Err):
        _undo_commit(repo, changed, rollback, console)
        if created.error.already_exists:
            return Err(TagExistsError(tag=tag))
        return Err(_git_err(created.error))

    console.success(f"tagged {tag} at {commit.value[:8]}")
    console.print(f"push when ready: grimrel version push {tag}", Style.DIM)
    return Ok(
        ResolvedRelease(
            previous=previous,
            version=version,
            commit=commit.value,
            changed=tuple(changed),
        )
    )


def _rollback(edits: list[FileEdit], console: ConsoleProtocol) -> None:
    stuck = restore_edits(edits)
    for path in stuck:
        console.warning(f"could not restore {path}; check it by hand")


def _undo_commit(
    repo: Repository,
    changed: list[Path],
    edits: list[FileEdit],
    console: ConsoleProtocol,
) -> None:
    """Take back the unpushed release commit and the file edits it carried."""
    reset = repo.undo_commit()
    if isinstance(reset, Err):
        console.warning(f"could not drop the release commit: {reset.error.message}")
        return
    repo.unstage(changed)
    _rollback(edits, console)


def push_release(
    *,
    root: Path,
    tag: str,
    config: ReleaseConfig,
    console: ConsoleProtocol,
    dry_run: bool = False,
) -> Result[None, VersionError]:
    """Push the release branch and the tag; this is what triggers the pipeline."""
    repo = Repository(root)
    if not repo.tag_exists(tag):
        return Err(GitCommandError(command=f"push {tag}", detail=f"no local tag {tag}"))

    refs = [config.branch, f"refs/tags/{tag}"]
    console.print(f"git push {config.remote} {' '.join(refs)}", Style.DIM)
    if dry_run:
        return Ok(None)

    pushed = repo.push(config.remote, refs)
    if isinstance(pushed, Err):
        return Err(_git_err(pushed.error))
    console.success(f"pushed {tag} to {config.remote}")
    return Ok(None)
