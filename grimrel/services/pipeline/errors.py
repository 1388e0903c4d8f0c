from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PipelineErrorKind = Literal[
    "invalid_tag",
    "unknown_target",
    "tool_failed",
    "join_dependency",
    "dependency_failed",
    "publish_failed",
]


@dataclass(frozen=True, slots=True)
class PipelineError:
    """Failure of one platform job (or of the run as a whole when target is None).

    ``step`` names the job step that failed (build, merge, stage, package,
    checksum, publish) so operators can tell which artifact is missing and why.
    """

    kind: PipelineErrorKind
    target: str | None
    message: str
    step: str | None = None
    hint: str | None = None

    def pretty(self) -> str:
        where = self.target or "pipeline"
        if self.step:
            where = f"{where}/{self.step}"
        text = f"{where}: {self.message}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text
