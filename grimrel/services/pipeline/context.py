from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from grimrel.core.config import Config
from grimrel.output.console import ConsoleProtocol
from grimrel.platform.detection import HostInfo
from grimrel.services.pipeline.targets import PlatformTarget


@dataclass(frozen=True, slots=True)
class PipelineContext:
    """Inputs shared by every platform job of one run.

    Scratch layout, per tag and target:
        <scratch>/<tag>/<target>/bin/    compiled (or merged) binary
        <scratch>/<tag>/<target>/stage/  staged packaging template
        <scratch>/<tag>/<target>/out/    packaged artifacts + checksums
    Nothing under scratch is visible to consumers; only publish is.
    """

    root: Path
    tag: str
    config: Config
    host: HostInfo
    console: ConsoleProtocol

    @property
    def app(self) -> str:
        return self.config.release.app

    @property
    def scratch(self) -> Path:
        return self.root / self.config.paths.scratch / self.tag

    def target_dir(self, target: PlatformTarget | str) -> Path:
        target_id = target if isinstance(target, str) else target.id
        return self.scratch / target_id

    def binary_name(self, target: PlatformTarget) -> str:
        suffix = ".exe" if target.os == "windows" else ""
        return f"{self.config.release.binary}{suffix}"

    def binary_path(self, target: PlatformTarget) -> Path:
        return self.target_dir(target) / "bin" / self.binary_name(target)

    def stage_dir(self, target: PlatformTarget) -> Path:
        return self.target_dir(target) / "stage"

    def out_dir(self, target: PlatformTarget) -> Path:
        return self.target_dir(target) / "out"

    def template_dir(self, target: PlatformTarget) -> Path | None:
        relative = self.config.templates.for_os(target.os)
        if relative is None:
            return None
        return self.root / relative
