from __future__ import annotations

import pytest

from grimrel.core.result import Err, Ok
from grimrel.services.pipeline.targets import (
    MATRIX,
    PackagingKind,
    PlatformTarget,
    artifact_names,
    checksum_name,
    find_target,
    select_targets,
    validate_matrix,
)


def _target(target_id: str, suffix: str, needs: tuple[str, ...] = ()) -> PlatformTarget:
    return PlatformTarget(
        id=target_id,
        os="linux",
        arch="x86_64",
        packaging=PackagingKind.ZIP,
        suffix=suffix,
        triple=None,
        needs=needs,
    )


def test_matrix_is_valid() -> None:
    assert validate_matrix(MATRIX, app="grim", tag="v0.2.5") == Ok(None)


@pytest.mark.parametrize("tag", ["v0.1.1", "v1.0.0", "v10.20.30"])
def test_artifact_names_are_unique(tag: str) -> None:
    names = [n for t in MATRIX for n in artifact_names("grim", tag, t)]
    names += [checksum_name(n) for n in list(names)]
    assert len(names) == len(set(names))


def test_artifact_names() -> None:
    by_id = {t.id: artifact_names("grim", "v0.2.5", t) for t in MATRIX}
    assert by_id == {
        "linux-x86_64": ("grim-v0.2.5-linux-x86_64.AppImage",),
        "linux-arm64": ("grim-v0.2.5-linux-arm64.AppImage",),
        "windows-x86_64": ("grim-v0.2.5-win-x86_64.zip", "grim-v0.2.5-win-x86_64.msi"),
        "macos-x86_64": ("grim-v0.2.5-macos-x86_64.zip",),
        "macos-arm64": ("grim-v0.2.5-macos-arm64.zip",),
        "macos-universal": ("grim-v0.2.5-macos-universal.zip",),
    }


def test_checksum_name() -> None:
    assert checksum_name("grim-v0.2.5-macos-arm64.zip") == "grim-v0.2.5-macos-arm64.zip-sha256sum.txt"


def test_universal_needs_both_macos_architectures() -> None:
    universal = find_target("macos-universal")
    assert universal is not None
    assert universal.is_merge
    assert set(universal.needs) == {"macos-x86_64", "macos-arm64"}


def test_validate_rejects_duplicate_ids() -> None:
    result = validate_matrix([_target("a", "a"), _target("a", "b")])
    assert isinstance(result, Err)
    assert "duplicate" in result.error


def test_validate_rejects_name_collision() -> None:
    result = validate_matrix([_target("a", "same"), _target("b", "same")])
    assert isinstance(result, Err)
    assert "collision" in result.error


def test_validate_rejects_unknown_need() -> None:
    result = validate_matrix([_target("a", "a", needs=("ghost",))])
    assert isinstance(result, Err)
    assert "ghost" in result.error


def test_validate_rejects_cycle() -> None:
    result = validate_matrix([_target("a", "a", needs=("b",)), _target("b", "b", needs=("a",))])
    assert isinstance(result, Err)
    assert "cycle" in result.error


def test_select_all_by_default() -> None:
    result = select_targets(None)
    assert isinstance(result, Ok)
    assert result.value == MATRIX


def test_select_subset_keeps_matrix_order() -> None:
    result = select_targets(["macos-universal", "linux-x86_64", "linux-x86_64"])
    assert isinstance(result, Ok)
    assert [t.id for t in result.value] == ["linux-x86_64", "macos-universal"]


def test_select_unknown_target() -> None:
    result = select_targets(["linux-x86_64", "freebsd-x86_64"])
    assert isinstance(result, Err)
    assert result.error.kind == "unknown_target"
    assert "freebsd-x86_64" in result.error.message
