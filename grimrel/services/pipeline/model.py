from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.targets import MATRIX


@dataclass(frozen=True, slots=True)
class Artifact:
    """A packaged file and its checksum sidecar."""

    path: Path
    sha256: str
    checksum_path: Path

    @property
    def name(self) -> str:
        return self.path.name

    def files(self) -> tuple[Path, Path]:
        return (self.path, self.checksum_path)


@dataclass(frozen=True, slots=True)
class TargetArtifacts:
    target_id: str
    artifacts: tuple[Artifact, ...]

    def files(self) -> list[Path]:
        out: list[Path] = []
        for artifact in self.artifacts:
            out.extend(artifact.files())
        return out


@dataclass(frozen=True, slots=True)
class TargetOutcome:
    target_id: str
    artifacts: TargetArtifacts | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.artifacts is not None and self.error is None


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """Everything published (or failed) for one tag, one outcome per selected target.

    ``complete`` is judged against the whole matrix: a target that was not run
    counts as missing. ``selected_ok`` only says the jobs of this run succeeded.
    """

    tag: str
    outcomes: tuple[TargetOutcome, ...]

    @property
    def selected_ok(self) -> bool:
        return bool(self.outcomes) and all(o.ok for o in self.outcomes)

    @property
    def missing(self) -> list[str]:
        published = {o.target_id for o in self.outcomes if o.ok}
        return [t.id for t in MATRIX if t.id not in published]

    @property
    def complete(self) -> bool:
        return not self.missing

    @property
    def succeeded(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def outcome(self, target_id: str) -> TargetOutcome | None:
        for o in self.outcomes:
            if o.target_id == target_id:
                return o
        return None

    def to_dict(self) -> dict[str, object]:
        targets: list[dict[str, object]] = []
        for o in self.outcomes:
            entry: dict[str, object] = {"target": o.target_id, "ok": o.ok}
            if o.artifacts is not None:
                entry["artifacts"] = [
                    {
                        "name": a.name,
                        "sha256": a.sha256,
                        "checksum_file": a.checksum_path.name,
                    }
                    for a in o.artifacts.artifacts
                ]
            if o.error is not None:
                entry["error"] = {
                    "kind": o.error.kind,
                    "step": o.error.step,
                    "message": o.error.message,
                    "hint": o.error.hint,
                }
            targets.append(entry)
        return {
            "schema": 1,
            "tag": self.tag,
            "complete": self.complete,
            "missing": self.missing,
            "targets": targets,
        }


@dataclass(frozen=True, slots=True)
class PartialFailure:
    """The record of a run in which at least one target failed."""

    record: ReleaseRecord

    @property
    def errors(self) -> list[PipelineError]:
        return [o.error for o in self.record.failed if o.error is not None]

    @property
    def message(self) -> str:
        failed = ", ".join(o.target_id for o in self.record.failed)
        return f"release {self.record.tag} incomplete; failed: {failed}"

    @property
    def hint(self) -> str | None:
        return "Re-run the failed target jobs; publishing replaces prior artifacts."
