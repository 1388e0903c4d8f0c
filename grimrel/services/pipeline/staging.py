"""Copy a binary into its platform's packaging skeleton.

Staging is a pure copy: the stage directory is rebuilt from the template and
the binary every time, so staging the same inputs twice yields identical
trees. Locations inside each skeleton:

- Linux AppDir:    <Name>.AppDir/AppRun
- macOS bundle:    <Name>.app/Contents/MacOS/<binary>
- Windows (flat):  <binary>.exe
"""

from __future__ import annotations

import shutil
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.targets import PlatformTarget


def _error(target: PlatformTarget, message: str, hint: str | None = None) -> Err[PipelineError]:
    return Err(
        PipelineError(kind="tool_failed", target=target.id, step="stage", message=message, hint=hint)
    )


def binary_location(ctx: PipelineContext, target: PlatformTarget, bundle: Path) -> Path:
    """Where the binary sits inside the staged bundle."""
    match target.os:
        case "linux":
            return bundle / "AppRun"
        case "macos":
            return bundle / "Contents" / "MacOS" / ctx.binary_name(target)
        case _:
            return bundle / ctx.binary_name(target)


def stage_target(
    ctx: PipelineContext,
    target: PlatformTarget,
    binary: Path,
) -> Result[Path, PipelineError]:
    """Rebuild the stage directory and return the staged bundle root."""
    stage = ctx.stage_dir(target)
    template = ctx.template_dir(target)

    if template is not None and not template.is_dir():
        return _error(target, f"packaging template missing: {template}")
    if not binary.is_file():
        return _error(target, f"binary missing: {binary}")

    try:
        if stage.exists():
            shutil.rmtree(stage)
        stage.mkdir(parents=True)

        if template is None:
            bundle = stage
        else:
            bundle = stage / template.name
            shutil.copytree(template, bundle, symlinks=True)

        dest = binary_location(ctx, target, bundle)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(binary, dest)
        dest.chmod(dest.stat().st_mode | 0o755)
    except OSError as e:
        return _error(target, f"staging failed: {e}", hint=str(stage))

    return Ok(bundle)
