"""The static platform matrix and deterministic artifact naming."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from graphlib import CycleError, TopologicalSorter

from grimrel.core.result import Err, Ok, Result
from grimrel.services.pipeline.errors import PipelineError


class PackagingKind(Enum):
    APPIMAGE = "appimage"  # self-contained executable image
    ZIP = "zip"  # archive of the staged bundle
    INSTALLER = "installer"  # zip plus OS-native installer

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class PlatformTarget:
    id: str
    os: str
    arch: str
    packaging: PackagingKind
    suffix: str
    triple: str | None
    needs: tuple[str, ...] = ()

    @property
    def is_merge(self) -> bool:
        """True for targets assembled from other targets' binaries."""
        return bool(self.needs)

    def extensions(self) -> tuple[str, ...]:
        match self.packaging:
            case PackagingKind.APPIMAGE:
                return ("AppImage",)
            case PackagingKind.ZIP:
                return ("zip",)
            case PackagingKind.INSTALLER:
                return ("zip", "msi")


MATRIX: tuple[PlatformTarget, ...] = (
    PlatformTarget(
        id="linux-x86_64",
        os="linux",
        arch="x86_64",
        packaging=PackagingKind.APPIMAGE,
        suffix="linux-x86_64",
        triple="x86_64-unknown-linux-gnu",
    ),
    PlatformTarget(
        id="linux-arm64",
        os="linux",
        arch="arm64",
        packaging=PackagingKind.APPIMAGE,
        suffix="linux-arm64",
        triple="aarch64-unknown-linux-gnu",
    ),
    PlatformTarget(
        id="windows-x86_64",
        os="windows",
        arch="x86_64",
        packaging=PackagingKind.INSTALLER,
        suffix="win-x86_64",
        triple="x86_64-pc-windows-msvc",
    ),
    PlatformTarget(
        id="macos-x86_64",
        os="macos",
        arch="x86_64",
        packaging=PackagingKind.ZIP,
        suffix="macos-x86_64",
        triple="x86_64-apple-darwin",
    ),
    PlatformTarget(
        id="macos-arm64",
        os="macos",
        arch="arm64",
        packaging=PackagingKind.ZIP,
        suffix="macos-arm64",
        triple="aarch64-apple-darwin",
    ),
    PlatformTarget(
        id="macos-universal",
        os="macos",
        arch="universal",
        packaging=PackagingKind.ZIP,
        suffix="macos-universal",
        triple=None,
        needs=("macos-x86_64", "macos-arm64"),
    ),
)


def artifact_names(app: str, tag: str, target: PlatformTarget) -> tuple[str, ...]:
    """File names of the packaged artifacts: ``<app>-<tag>-<suffix>.<ext>``."""
    return tuple(f"{app}-{tag}-{target.suffix}.{ext}" for ext in target.extensions())


def checksum_name(artifact_name: str) -> str:
    return f"{artifact_name}-sha256sum.txt"


def find_target(target_id: str, matrix: Sequence[PlatformTarget] = MATRIX) -> PlatformTarget | None:
    for target in matrix:
        if target.id == target_id:
            return target
    return None


def validate_matrix(
    matrix: Sequence[PlatformTarget],
    *,
    app: str = "app",
    tag: str = "v0.0.0",
) -> Result[None, str]:
    """Reject duplicate ids, colliding output names, unknown needs and cycles."""
    ids = [t.id for t in matrix]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        return Err(f"duplicate target ids: {', '.join(dupes)}")

    seen: dict[str, str] = {}
    for target in matrix:
        for name in artifact_names(app, tag, target):
            for file_name in (name, checksum_name(name)):
                owner = seen.get(file_name)
                if owner is not None:
                    return Err(f"artifact name collision: {file_name} ({owner}, {target.id})")
                seen[file_name] = target.id

    known = set(ids)
    for target in matrix:
        missing = [n for n in target.needs if n not in known]
        if missing:
            return Err(f"{target.id} needs unknown target(s): {', '.join(missing)}")

    sorter = TopologicalSorter({t.id: set(t.needs) for t in matrix})
    try:
        sorter.prepare()
    except CycleError as e:
        return Err(f"dependency cycle: {' -> '.join(str(n) for n in e.args[1])}")

    return Ok(None)


def select_targets(
    ids: Iterable[str] | None,
    matrix: Sequence[PlatformTarget] = MATRIX,
) -> Result[tuple[PlatformTarget, ...], PipelineError]:
    """Resolve target ids against the matrix, keeping matrix order.

    None selects the whole matrix.
    """
    if ids is None:
        return Ok(tuple(matrix))

    wanted = list(dict.fromkeys(ids))
    unknown = [i for i in wanted if find_target(i, matrix) is None]
    if unknown:
        return Err(
            PipelineError(
                kind="unknown_target",
                target=unknown[0],
                message=f"unknown target(s): {', '.join(unknown)}",
                hint=f"known: {', '.join(t.id for t in matrix)}",
            )
        )
    return Ok(tuple(t for t in matrix if t.id in wanted))
