"""Shared fixtures-by-hand for pipeline tests."""

from __future__ import annotations

from pathlib import Path

from grimrel.core.config import Config
from grimrel.core.result import Ok, Result
from grimrel.output.console import MockConsole
from grimrel.platform.detection import Arch, HostInfo, Platform
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.targets import PlatformTarget

LINUX_HOST = HostInfo(platform=Platform.LINUX, arch=Arch.X86_64)
MACOS_HOST = HostInfo(platform=Platform.MACOS, arch=Arch.ARM64)


def make_templates(root: Path) -> None:
    appdir = root / "linux" / "Grim.AppDir"
    appdir.mkdir(parents=True, exist_ok=True)
    (appdir / "grim.desktop").write_text("[Desktop Entry]\nName=Grim\n", encoding="utf-8")
    (appdir / "AppRun").write_text("placeholder", encoding="utf-8")

    bundle = root / "macos" / "Grim.app" / "Contents"
    (bundle / "MacOS").mkdir(parents=True, exist_ok=True)
    (bundle / "Info.plist").write_text("<plist/>\n", encoding="utf-8")


def make_context(
    root: Path,
    *,
    tag: str = "v0.2.5",
    host: HostInfo = LINUX_HOST,
    console: MockConsole | None = None,
) -> PipelineContext:
    make_templates(root)
    return PipelineContext(
        root=root,
        tag=tag,
        config=Config(),
        host=host,
        console=console or MockConsole(),
    )


def fake_binary(ctx: PipelineContext, target: PlatformTarget) -> Result[Path, PipelineError]:
    """Stand-in for the build step: a small file unique to the target."""
    path = ctx.binary_path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(f"binary for {target.id}\n".encode())
    path.chmod(0o755)
    return Ok(path)
