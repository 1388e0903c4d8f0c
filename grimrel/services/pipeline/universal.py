"""Multi-architecture merge for the macOS universal target.

The universal job is a join: it consumes the binaries collected by its
predecessor jobs and refuses to run until every one of them exists. It never
falls back to packaging a single architecture.
"""

from __future__ import annotations

import os
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.output.console import Style
from grimrel.platform.process import run as run_process
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.targets import MATRIX, PlatformTarget, find_target

LIPO_TIMEOUT_SECONDS = 60.0


def predecessor_binaries(
    ctx: PipelineContext,
    target: PlatformTarget,
) -> Result[list[tuple[PlatformTarget, Path]], PipelineError]:
    """Binaries of every predecessor, or a join_dependency error naming the missing ones."""
    found: list[tuple[PlatformTarget, Path]] = []
    missing: list[str] = []
    for need in target.needs:
        pred = find_target(need, MATRIX)
        if pred is None:
            missing.append(need)
            continue
        path = ctx.binary_path(pred)
        if path.is_file():
            found.append((pred, path))
        else:
            missing.append(need)

    if missing:
        return Err(
            PipelineError(
                kind="join_dependency",
                target=target.id,
                step="merge",
                message=f"missing predecessor binaries: {', '.join(missing)}",
                hint="run the single-architecture jobs for this tag first",
            )
        )
    return Ok(found)


def merge_universal(ctx: PipelineContext, target: PlatformTarget) -> Result[Path, PipelineError]:
    inputs = predecessor_binaries(ctx, target)
    if isinstance(inputs, Err):
        return inputs

    dest = ctx.binary_path(target)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(f".{dest.name}.tmp")
    sources = [str(p) for _, p in inputs.value]

    ctx.console.print(f"[{target.id}] lipo -create -output {dest.name} {' '.join(sources)}", Style.DIM)
    created = run_process(
        ["lipo", "-create", "-output", str(tmp), *sources],
        cwd=ctx.root,
        timeout=LIPO_TIMEOUT_SECONDS,
    )
    if isinstance(created, Err):
        tmp.unlink(missing_ok=True)
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="merge",
                message=f"lipo failed: {created.error}",
                hint=created.error.detail(),
            )
        )

    archs = run_process(["lipo", "-archs", str(tmp)], cwd=ctx.root, timeout=LIPO_TIMEOUT_SECONDS)
    if isinstance(archs, Err):
        tmp.unlink(missing_ok=True)
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="merge",
                message=f"lipo -archs failed: {archs.error}",
            )
        )

    present = set(archs.value.split())
    expected = {pred.arch for pred, _ in inputs.value}
    if not expected <= present:
        tmp.unlink(missing_ok=True)
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="merge",
                message=f"merged binary has {sorted(present)}, expected {sorted(expected)}",
            )
        )

    os.replace(tmp, dest)
    return Ok(dest)
