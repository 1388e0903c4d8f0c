"""Tests for git/repository.py."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from grimrel.core.result import Err, Ok
from grimrel.git.repository import GitError, GitStatus, Repository, StatusEntry

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not available")


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise RuntimeError(
            f"git {' '.join(args)} failed (code {result.returncode}): {result.stderr.strip()}"
        )
    return result.stdout.strip()


def _init_repo(path: Path, branch: str = "master") -> Path:
    path.mkdir(parents=True, exist_ok=True)
    _git(path, "init", "-b", branch)
    _git(path, "config", "user.email", "test@example.com")
    _git(path, "config", "user.name", "Test")
    _git(path, "config", "commit.gpgsign", "false")
    _git(path, "config", "tag.gpgsign", "false")
    (path / "README").write_text("grim\n", encoding="utf-8")
    _git(path, "add", "README")
    _git(path, "commit", "-m", "init")
    return path


# =============================================================================
# Parsing
# =============================================================================


class TestParseStatus:
    def test_clean_with_branch_header(self) -> None:
        status = Repository(Path("."))._parse_status("## master...origin/master\n")
        assert status == GitStatus(branch="master")
        assert status.is_clean

    def test_entries(self) -> None:
        output = "## master [ahead 1]\n M Cargo.toml\n?? notes.txt\n"
        status = Repository(Path("."))._parse_status(output)
        assert status.branch == "master"
        assert status.paths == ("Cargo.toml", "notes.txt")
        assert not status.is_clean
        assert status.entries[1] == StatusEntry(xy="??", path="notes.txt")

    def test_empty_output(self) -> None:
        assert Repository(Path("."))._parse_status("").is_clean


def test_git_error_already_exists() -> None:
    assert GitError("tag v1.0.0", "fatal: tag 'v1.0.0' already exists").already_exists
    assert not GitError("tag v1.0.0", "fatal: bad object").already_exists


# =============================================================================
# Real repositories
# =============================================================================


@needs_git
def test_status_reports_untracked(tmp_path: Path) -> None:
    repo = Repository(_init_repo(tmp_path / "grim"))
    (repo.path / "scratch.txt").write_text("x", encoding="utf-8")

    result = repo.status()
    assert isinstance(result, Ok)
    assert result.value.paths == ("scratch.txt",)


@needs_git
def test_list_tags_merged_into_branch(tmp_path: Path) -> None:
    root = _init_repo(tmp_path / "grim")
    _git(root, "tag", "v0.2.0")
    _git(root, "checkout", "-b", "side")
    (root / "side.txt").write_text("x", encoding="utf-8")
    _git(root, "add", "side.txt")
    _git(root, "commit", "-m", "side")
    _git(root, "tag", "v9.0.0")
    _git(root, "checkout", "master")

    repo = Repository(root)
    merged = repo.list_tags(merged_into="master")
    assert isinstance(merged, Ok)
    assert merged.value == ["v0.2.0"]

    everything = repo.list_tags()
    assert isinstance(everything, Ok)
    assert sorted(everything.value) == ["v0.2.0", "v9.0.0"]


@needs_git
def test_commit_and_tag(tmp_path: Path) -> None:
    repo = Repository(_init_repo(tmp_path / "grim"))
    (repo.path / "README").write_text("grim 2\n", encoding="utf-8")

    assert isinstance(repo.add([repo.path / "README"]), Ok)
    sha = repo.commit("release: v0.1.1")
    assert isinstance(sha, Ok)
    assert len(sha.value) == 40

    assert isinstance(repo.create_tag("v0.1.1", sha.value), Ok)
    assert repo.tag_exists("v0.1.1")
    assert not repo.tag_exists("v0.1.2")

    again = repo.create_tag("v0.1.1", sha.value)
    assert isinstance(again, Err)
    assert again.error.already_exists


@needs_git
def test_current_branch_and_detached(tmp_path: Path) -> None:
    root = _init_repo(tmp_path / "grim")
    repo = Repository(root)
    assert repo.current_branch() == "master"

    _git(root, "checkout", "--detach")
    assert repo.current_branch() is None


@needs_git
def test_unstage(tmp_path: Path) -> None:
    repo = Repository(_init_repo(tmp_path / "grim"))
    (repo.path / "README").write_text("changed\n", encoding="utf-8")
    repo.add([repo.path / "README"])

    assert isinstance(repo.unstage([repo.path / "README"]), Ok)
    status = repo.status()
    assert isinstance(status, Ok)
    assert status.value.entries == (StatusEntry(xy=" M", path="README"),)


@needs_git
def test_undo_commit_keeps_changes_staged(tmp_path: Path) -> None:
    root = _init_repo(tmp_path / "grim")
    repo = Repository(root)
    before = _git(root, "rev-parse", "HEAD")
    (root / "README").write_text("grim 2\n", encoding="utf-8")
    repo.add([root / "README"])
    assert isinstance(repo.commit("release: v0.1.1"), Ok)

    assert isinstance(repo.undo_commit(), Ok)
    assert _git(root, "rev-parse", "HEAD") == before
    status = repo.status()
    assert isinstance(status, Ok)
    assert status.value.entries == (StatusEntry(xy="M ", path="README"),)
