"""Publish backends for per-target artifacts.

Publishing is an upsert keyed by tag: the release is created on first use and
each artifact name is replaced if it already exists, so re-running one target
job never duplicates artifacts and never touches files of other targets.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from grimrel.core.result import Err, Ok, Result
from grimrel.output.console import ConsoleProtocol, Style
from grimrel.platform.process import ProcessError
from grimrel.platform.process import run as run_process
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.model import TargetArtifacts


class Publisher(Protocol):
    def publish(self, tag: str, artifacts: TargetArtifacts) -> Result[None, PipelineError]: ...


def _publish_error(target_id: str, message: str, hint: str | None = None) -> Err[PipelineError]:
    return Err(
        PipelineError(
            kind="publish_failed",
            target=target_id,
            step="publish",
            message=message,
            hint=hint,
        )
    )


@dataclass(frozen=True, slots=True)
class GitHubPublisher:
    """Upload to a GitHub release through the ``gh`` CLI."""

    root: Path
    console: ConsoleProtocol
    repo: str | None = None
    timeout: float = 600.0

    def _repo_args(self) -> list[str]:
        return ["--repo", self.repo] if self.repo else []

    def _gh(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["gh", *args, *self._repo_args()], cwd=self.root, timeout=self.timeout)

    def ensure_release(self, tag: str, target_id: str) -> Result[None, PipelineError]:
        if isinstance(self._gh(["release", "view", tag, "--json", "tagName"]), Ok):
            return Ok(None)

        created = self._gh(["release", "create", tag, "--verify-tag", "--title", tag, "--notes", ""])
        if isinstance(created, Err):
            # Another target job may have created it concurrently.
            if "already exists" in f"{created.error.stderr}{created.error.stdout}".lower():
                return Ok(None)
            return _publish_error(
                target_id,
                f"cannot create release {tag}",
                hint=created.error.detail(),
            )
        return Ok(None)

    def publish(self, tag: str, artifacts: TargetArtifacts) -> Result[None, PipelineError]:
        ensured = self.ensure_release(tag, artifacts.target_id)
        if isinstance(ensured, Err):
            return ensured

        files = [str(p) for p in artifacts.files()]
        self.console.print(f"[{artifacts.target_id}] gh release upload {tag} ({len(files)} files)", Style.DIM)
        uploaded = self._gh(["release", "upload", tag, *files, "--clobber"])
        if isinstance(uploaded, Err):
            return _publish_error(
                artifacts.target_id,
                f"upload to release {tag} failed",
                hint=uploaded.error.detail(),
            )
        return Ok(None)


@dataclass(frozen=True, slots=True)
class DirectoryPublisher:
    """Publish into ``<root>/<tag>/``; each file lands via temp copy + rename."""

    root: Path
    console: ConsoleProtocol

    def release_dir(self, tag: str) -> Path:
        return self.root / tag

    def publish(self, tag: str, artifacts: TargetArtifacts) -> Result[None, PipelineError]:
        dest_dir = self.release_dir(tag)
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return _publish_error(artifacts.target_id, f"cannot create {dest_dir}: {e}")

        sources = artifacts.files()
        for src in sources:
            dest = dest_dir / src.name
            if dest.exists() and not dest.is_file():
                return _publish_error(
                    artifacts.target_id,
                    f"publish destination is not a file: {dest}",
                )

        # All files are copied to temp names before any of them becomes visible.
        staged: list[tuple[Path, Path]] = []
        try:
            for src in sources:
                tmp = dest_dir / f".{src.name}.tmp"
                staged.append((tmp, dest_dir / src.name))
                shutil.copy2(src, tmp)
        except OSError as e:
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)
            return _publish_error(artifacts.target_id, f"cannot publish {src.name}: {e}")

        for index, (tmp, dest) in enumerate(staged):
            try:
                os.replace(tmp, dest)
            except OSError as e:
                for leftover, _ in staged[index:]:
                    leftover.unlink(missing_ok=True)
                return _publish_error(artifacts.target_id, f"cannot publish {dest.name}: {e}")

        self.console.print(
            f"[{artifacts.target_id}] published {len(sources)} files to {dest_dir}",
            Style.DIM,
        )
        return Ok(None)
