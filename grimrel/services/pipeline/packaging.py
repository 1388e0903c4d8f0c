"""Turn a staged bundle into the target's release artifacts.

Output file names come from ``artifact_names`` only, so re-running a job for
the same tag and target reproduces the same names. ZIP archives are written
in-process with sorted entries and a fixed timestamp, which makes them
byte-reproducible for identical staged input. AppImage and MSI outputs come
from external tools and may vary with those tools.
"""

from __future__ import annotations

import os
import shutil
import stat
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from grimrel.core.result import Err, Ok, Result
from grimrel.output.console import Style
from grimrel.platform.process import run as run_process
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.targets import PackagingKind, PlatformTarget, artifact_names

# Earliest timestamp the ZIP format can represent.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

_APPIMAGE_ARCH = {"x86_64": "x86_64", "arm64": "aarch64"}


def _error(target: PlatformTarget, message: str, hint: str | None = None) -> Err[PipelineError]:
    return Err(
        PipelineError(
            kind="tool_failed",
            target=target.id,
            step="package",
            message=message,
            hint=hint,
        )
    )


def collect_files(bundle: Path, *, arc_prefix: str | None) -> list[tuple[Path, str]]:
    """(path, archive name) for every file under bundle, sorted by archive name."""
    out: list[tuple[Path, str]] = []
    for p in bundle.rglob("*"):
        if p.is_dir():
            continue
        rel = p.relative_to(bundle).as_posix()
        out.append((p, f"{arc_prefix}/{rel}" if arc_prefix else rel))
    return sorted(out, key=lambda item: item[1])


def write_zip(zip_path: Path, files: list[tuple[Path, str]]) -> None:
    """Write a reproducible ZIP: fixed timestamps, entries in the given order."""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = zip_path.with_name(f".{zip_path.name}.tmp")
    with ZipFile(tmp, "w", compression=ZIP_DEFLATED) as zf:
        for src, arc in files:
            info = ZipInfo(arc, date_time=_ZIP_EPOCH)
            info.compress_type = ZIP_DEFLATED
            mode = stat.S_IMODE(src.stat().st_mode)
            info.external_attr = (stat.S_IFREG | mode) << 16
            zf.writestr(info, src.read_bytes())
    os.replace(tmp, zip_path)


def _package_zip(
    target: PlatformTarget,
    bundle: Path,
    stage: Path,
    out: Path,
) -> Result[Path, PipelineError]:
    # A bundle directory (Grim.app) keeps its name inside the archive;
    # a flat stage is archived from its root.
    arc_prefix = None if bundle == stage else bundle.name
    files = collect_files(bundle, arc_prefix=arc_prefix)
    if not files:
        return _error(target, f"nothing staged in {bundle}")
    try:
        write_zip(out, files)
    except OSError as e:
        return _error(target, f"zip failed: {e}", hint=str(out))
    return Ok(out)


def _package_appimage(
    ctx: PipelineContext,
    target: PlatformTarget,
    bundle: Path,
    out: Path,
) -> Result[Path, PipelineError]:
    env = dict(os.environ)
    env["ARCH"] = _APPIMAGE_ARCH.get(target.arch, target.arch)
    ctx.console.print(f"[{target.id}] appimagetool {bundle.name} {out.name}", Style.DIM)
    result = run_process(
        ["appimagetool", str(bundle), str(out)],
        cwd=ctx.root,
        env=env,
        timeout=ctx.config.timeouts.package,
    )
    if isinstance(result, Err):
        return _error(target, f"appimagetool failed: {result.error}", hint=result.error.detail())
    if not out.is_file():
        return _error(target, f"appimagetool produced no output: {out}")
    return Ok(out)


def _package_msi(
    ctx: PipelineContext,
    target: PlatformTarget,
    out: Path,
) -> Result[Path, PipelineError]:
    assert target.triple is not None
    cmd = [
        "cargo",
        "wix",
        "--no-build",
        "--nocapture",
        "--target",
        target.triple,
        "--output",
        str(out),
    ]
    ctx.console.print(f"[{target.id}] {' '.join(cmd[:6])} --output {out.name}", Style.DIM)
    result = run_process(cmd, cwd=ctx.root, timeout=ctx.config.timeouts.package)
    if isinstance(result, Err):
        return _error(target, f"cargo wix failed: {result.error}", hint=result.error.detail())
    if not out.is_file():
        return _error(target, f"cargo wix produced no output: {out}")
    return Ok(out)


def package_target(
    ctx: PipelineContext,
    target: PlatformTarget,
    bundle: Path,
) -> Result[list[Path], PipelineError]:
    """Package the staged bundle into ``ctx.out_dir(target)``; returns artifact paths."""
    out_dir = ctx.out_dir(target)
    try:
        if out_dir.exists():
            shutil.rmtree(out_dir)
        out_dir.mkdir(parents=True)
    except OSError as e:
        return _error(target, f"cannot prepare output dir: {e}", hint=str(out_dir))

    names = artifact_names(ctx.app, ctx.tag, target)
    stage = ctx.stage_dir(target)
    produced: list[Path] = []

    match target.packaging:
        case PackagingKind.APPIMAGE:
            result = _package_appimage(ctx, target, bundle, out_dir / names[0])
            if isinstance(result, Err):
                return result
            produced.append(result.value)
        case PackagingKind.ZIP:
            result = _package_zip(target, bundle, stage, out_dir / names[0])
            if isinstance(result, Err):
                return result
            produced.append(result.value)
        case PackagingKind.INSTALLER:
            archive = _package_zip(target, bundle, stage, out_dir / names[0])
            if isinstance(archive, Err):
                return archive
            produced.append(archive.value)
            installer = _package_msi(ctx, target, out_dir / names[1])
            if isinstance(installer, Err):
                return installer
            produced.append(installer.value)

    return Ok(produced)
