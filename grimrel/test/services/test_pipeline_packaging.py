from __future__ import annotations

import os
import stat
from pathlib import Path
from zipfile import ZipFile

import pytest

from grimrel.core.result import Err, Ok
from grimrel.services.pipeline import packaging as packaging_mod
from grimrel.services.pipeline.packaging import collect_files, package_target, write_zip
from grimrel.services.pipeline.staging import stage_target
from grimrel.services.pipeline.targets import find_target

from ._pipeline_helpers import MACOS_HOST, fake_binary, make_context


def _target(target_id: str):
    target = find_target(target_id)
    assert target is not None
    return target


# =============================================================================
# Staging
# =============================================================================


def test_stage_linux_appdir(tmp_path: Path) -> None:
    ctx = make_context(tmp_path)
    target = _target("linux-x86_64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)

    result = stage_target(ctx, target, binary.value)
    assert isinstance(result, Ok)
    bundle = result.value
    assert bundle.name == "Grim.AppDir"
    assert (bundle / "AppRun").read_bytes() == b"binary for linux-x86_64\n"
    assert (bundle / "AppRun").stat().st_mode & stat.S_IXUSR
    assert (bundle / "grim.desktop").is_file()


def test_stage_macos_bundle(tmp_path: Path) -> None:
    ctx = make_context(tmp_path, host=MACOS_HOST)
    target = _target("macos-arm64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)

    result = stage_target(ctx, target, binary.value)
    assert isinstance(result, Ok)
    assert (result.value / "Contents" / "MacOS" / "grim").is_file()
    assert (result.value / "Contents" / "Info.plist").is_file()


def test_stage_windows_is_flat(tmp_path: Path) -> None:
    ctx = make_context(tmp_path)
    target = _target("windows-x86_64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)
    assert binary.value.name == "grim.exe"

    result = stage_target(ctx, target, binary.value)
    assert isinstance(result, Ok)
    assert result.value == ctx.stage_dir(target)
    assert [p.name for p in result.value.iterdir()] == ["grim.exe"]


def test_stage_replaces_previous_contents(tmp_path: Path) -> None:
    ctx = make_context(tmp_path)
    target = _target("linux-x86_64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)

    stage_target(ctx, target, binary.value)
    (ctx.stage_dir(target) / "Grim.AppDir" / "stale.txt").write_text("x", encoding="utf-8")
    result = stage_target(ctx, target, binary.value)
    assert isinstance(result, Ok)
    assert not (result.value / "stale.txt").exists()


def test_stage_missing_template(tmp_path: Path) -> None:
    ctx = make_context(tmp_path)
    target = _target("linux-x86_64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)
    (tmp_path / "linux" / "Grim.AppDir" / "AppRun").unlink()
    (tmp_path / "linux" / "Grim.AppDir" / "grim.desktop").unlink()
    (tmp_path / "linux" / "Grim.AppDir").rmdir()

    result = stage_target(ctx, target, binary.value)
    assert isinstance(result, Err)
    assert result.error.step == "stage"


# =============================================================================
# ZIP
# =============================================================================


def test_zip_is_reproducible(tmp_path: Path) -> None:
    src = tmp_path / "Grim.app"
    (src / "Contents" / "MacOS").mkdir(parents=True)
    (src / "Contents" / "MacOS" / "grim").write_bytes(b"bin")
    (src / "Contents" / "Info.plist").write_text("<plist/>", encoding="utf-8")

    first = tmp_path / "a.zip"
    write_zip(first, collect_files(src, arc_prefix="Grim.app"))

    # Different mtimes must not change the archive.
    for p in src.rglob("*"):
        os.utime(p, (1_700_000_000, 1_700_000_000))
    second = tmp_path / "b.zip"
    write_zip(second, collect_files(src, arc_prefix="Grim.app"))

    assert first.read_bytes() == second.read_bytes()
    with ZipFile(first) as zf:
        assert zf.namelist() == ["Grim.app/Contents/Info.plist", "Grim.app/Contents/MacOS/grim"]
        assert all(i.date_time == (1980, 1, 1, 0, 0, 0) for i in zf.infolist())


def test_zip_keeps_executable_bit(tmp_path: Path) -> None:
    src = tmp_path / "stage"
    src.mkdir()
    (src / "grim").write_bytes(b"bin")
    (src / "grim").chmod(0o755)

    out = tmp_path / "out.zip"
    write_zip(out, collect_files(src, arc_prefix=None))
    with ZipFile(out) as zf:
        info = zf.getinfo("grim")
        assert (info.external_attr >> 16) & 0o777 == 0o755


def test_package_macos_zip(tmp_path: Path) -> None:
    ctx = make_context(tmp_path, host=MACOS_HOST)
    target = _target("macos-arm64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)
    bundle = stage_target(ctx, target, binary.value)
    assert isinstance(bundle, Ok)

    result = package_target(ctx, target, bundle.value)
    assert isinstance(result, Ok)
    assert [p.name for p in result.value] == ["grim-v0.2.5-macos-arm64.zip"]
    with ZipFile(result.value[0]) as zf:
        assert "Grim.app/Contents/MacOS/grim" in zf.namelist()

    first = result.value[0].read_bytes()
    again = package_target(ctx, target, bundle.value)
    assert isinstance(again, Ok)
    assert again.value[0].read_bytes() == first


# =============================================================================
# External packagers
# =============================================================================


def test_package_appimage(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_context(tmp_path)
    target = _target("linux-arm64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)
    bundle = stage_target(ctx, target, binary.value)
    assert isinstance(bundle, Ok)
    seen: dict[str, object] = {}

    def fake_run(cmd: list[str], cwd: Path, env: dict[str, str] | None = None, *, timeout: float | None = None):
        seen["cmd"] = cmd
        seen["arch"] = (env or {}).get("ARCH")
        seen["timeout"] = timeout
        Path(cmd[2]).write_bytes(b"appimage")
        return Ok("")

    monkeypatch.setattr(packaging_mod, "run_process", fake_run)

    result = package_target(ctx, target, bundle.value)
    assert isinstance(result, Ok)
    assert [p.name for p in result.value] == ["grim-v0.2.5-linux-arm64.AppImage"]
    assert seen["arch"] == "aarch64"
    assert seen["timeout"] == ctx.config.timeouts.package
    cmd = seen["cmd"]
    assert isinstance(cmd, list)
    assert cmd[:2] == ["appimagetool", str(bundle.value)]


def test_package_appimage_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from grimrel.platform.process import ProcessError

    ctx = make_context(tmp_path)
    target = _target("linux-x86_64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)
    bundle = stage_target(ctx, target, binary.value)
    assert isinstance(bundle, Ok)

    def fake_run(cmd: list[str], cwd: Path, env: dict[str, str] | None = None, *, timeout: float | None = None):
        return Err(ProcessError(command=tuple(cmd), returncode=1, stdout="", stderr="no desktop file"))

    monkeypatch.setattr(packaging_mod, "run_process", fake_run)

    result = package_target(ctx, target, bundle.value)
    assert isinstance(result, Err)
    assert result.error.kind == "tool_failed"
    assert result.error.step == "package"
    assert result.error.hint == "no desktop file"


def test_package_windows_installer(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = make_context(tmp_path)
    target = _target("windows-x86_64")
    binary = fake_binary(ctx, target)
    assert isinstance(binary, Ok)
    bundle = stage_target(ctx, target, binary.value)
    assert isinstance(bundle, Ok)
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], cwd: Path, env: dict[str, str] | None = None, *, timeout: float | None = None):
        calls.append(cmd)
        out = Path(cmd[cmd.index("--output") + 1])
        out.write_bytes(b"msi")
        return Ok("")

    monkeypatch.setattr(packaging_mod, "run_process", fake_run)

    result = package_target(ctx, target, bundle.value)
    assert isinstance(result, Ok)
    assert [p.name for p in result.value] == [
        "grim-v0.2.5-win-x86_64.zip",
        "grim-v0.2.5-win-x86_64.msi",
    ]
    assert calls[0][:4] == ["cargo", "wix", "--no-build", "--nocapture"]
    assert "x86_64-pc-windows-msvc" in calls[0]
    with ZipFile(result.value[0]) as zf:
        assert zf.namelist() == ["grim.exe"]
