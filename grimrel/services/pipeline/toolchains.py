"""Build toolchain selection and invocation.

The pipeline does not compile anything itself. For each target it picks the
cargo front-end that can produce the target triple on the current host and
runs it against the tagged checkout:

- same OS, same arch: ``cargo build``
- macOS, other Apple arch: ``cargo build`` (the Apple SDK ships both)
- Linux, other arch: ``cargo zigbuild`` (zig as the cross linker)
- Windows, other arch: ``cargo build`` (MSVC cross tools)
- different OS: not buildable here
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.output.console import Style
from grimrel.platform.detection import HostInfo
from grimrel.platform.process import run as run_process
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.targets import PlatformTarget


@dataclass(frozen=True, slots=True)
class BuildProfile:
    name: str
    command: tuple[str, ...]
    cross: bool

    def __str__(self) -> str:
        return " ".join(self.command)


def select_profile(host: HostInfo, target: PlatformTarget) -> Result[BuildProfile, PipelineError]:
    if target.triple is None:
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="build",
                message="target has no compiler triple; it is assembled from other targets",
            )
        )

    if host.os_name != target.os:
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="build",
                message=f"cannot build {target.os} targets on a {host} host",
                hint=f"run this job on a {target.os} runner",
            )
        )

    cross = host.arch_name != target.arch
    release_args = ("--release", "--locked", "--target", target.triple)
    if cross and target.os == "linux":
        return Ok(
            BuildProfile(
                name="cargo-zigbuild",
                command=("cargo", "zigbuild", *release_args),
                cross=True,
            )
        )
    return Ok(BuildProfile(name="cargo", command=("cargo", "build", *release_args), cross=cross))


def cargo_output_path(ctx: PipelineContext, target: PlatformTarget) -> Path:
    assert target.triple is not None
    return ctx.root / "target" / target.triple / "release" / ctx.binary_name(target)


def copy_file_atomic(src: Path, dst: Path) -> None:
    """Copy src to dst via a temporary sibling, keeping mode bits."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(f".{dst.name}.tmp")
    shutil.copy2(src, tmp)
    os.replace(tmp, dst)


def build_target(ctx: PipelineContext, target: PlatformTarget) -> Result[Path, PipelineError]:
    """Compile the binary for target and place it at ``ctx.binary_path(target)``."""
    profile = select_profile(ctx.host, target)
    if isinstance(profile, Err):
        return profile

    ctx.console.print(f"[{target.id}] {profile.value}", Style.DIM)
    result = run_process(
        list(profile.value.command),
        cwd=ctx.root,
        timeout=ctx.config.timeouts.build,
    )
    if isinstance(result, Err):
        e = result.error
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="build",
                message=f"{profile.value.name} failed: {e}",
                hint=e.detail(),
            )
        )

    built = cargo_output_path(ctx, target)
    if not built.is_file():
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="build",
                message=f"build output missing: {built}",
            )
        )

    dest = ctx.binary_path(target)
    try:
        copy_file_atomic(built, dest)
    except OSError as e:
        return Err(
            PipelineError(
                kind="tool_failed",
                target=target.id,
                step="build",
                message=f"failed to collect binary: {e}",
            )
        )
    return Ok(dest)
