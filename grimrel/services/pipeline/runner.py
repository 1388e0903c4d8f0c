from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from grimrel.core.result import Err, Ok, Result
from grimrel.output.console import Style
from grimrel.services.pipeline.checksum import write_checksum
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.errors import PipelineError
from grimrel.services.pipeline.graph import run_graph
from grimrel.services.pipeline.model import (
    Artifact,
    PartialFailure,
    ReleaseRecord,
    TargetArtifacts,
    TargetOutcome,
)
from grimrel.services.pipeline.packaging import package_target
from grimrel.services.pipeline.publish import Publisher
from grimrel.services.pipeline.staging import stage_target
from grimrel.services.pipeline.targets import MATRIX, PlatformTarget, find_target, select_targets
from grimrel.services.pipeline.toolchains import build_target
from grimrel.services.pipeline.universal import merge_universal
from grimrel.services.release.semver import parse_stable_tag


def _checksum_all(target: PlatformTarget, paths: list[Path]) -> Result[tuple[Artifact, ...], PipelineError]:
    artifacts: list[Artifact] = []
    for path in paths:
        try:
            artifacts.append(write_checksum(path))
        except OSError as e:
            return Err(
                PipelineError(
                    kind="tool_failed",
                    target=target.id,
                    step="checksum",
                    message=f"cannot checksum {path.name}: {e}",
                )
            )
    return Ok(tuple(artifacts))


def run_target(
    ctx: PipelineContext,
    target: PlatformTarget,
    publisher: Publisher,
) -> Result[TargetArtifacts, PipelineError]:
    """One platform job: build (or merge), stage, package, checksum, publish.

    Everything before publish happens in the target's scratch directory; a
    failure at any step leaves the published release untouched.
    """
    ctx.console.print(f"[{target.id}] start", Style.INFO)

    binary = merge_universal(ctx, target) if target.is_merge else build_target(ctx, target)
    if isinstance(binary, Err):
        return binary

    bundle = stage_target(ctx, target, binary.value)
    if isinstance(bundle, Err):
        return bundle

    packaged = package_target(ctx, target, bundle.value)
    if isinstance(packaged, Err):
        return packaged

    artifacts = _checksum_all(target, packaged.value)
    if isinstance(artifacts, Err):
        return artifacts

    result = TargetArtifacts(target_id=target.id, artifacts=artifacts.value)
    published = publisher.publish(ctx.tag, result)
    if isinstance(published, Err):
        return published

    ctx.console.success(f"[{target.id}] published {', '.join(a.name for a in result.artifacts)}")
    return Ok(result)


def run_pipeline(
    ctx: PipelineContext,
    publisher: Publisher,
    *,
    targets: Iterable[str] | None = None,
    max_workers: int | None = None,
) -> Result[ReleaseRecord, PartialFailure | PipelineError]:
    """Run the selected target jobs for ``ctx.tag`` and fold them into a record.

    Ok(record) when every selected target published; ``record.complete`` then
    says whether the whole matrix is out for the tag. A run that could
    not start (bad tag, unknown target) returns the PipelineError itself.
    Predecessors outside the selection are not scheduled; a join target then
    looks for their binaries in scratch.
    """
    if parse_stable_tag(ctx.tag) is None:
        return Err(
            PipelineError(
                kind="invalid_tag",
                target=None,
                message=f"not a release tag: {ctx.tag!r}",
                hint="expected vMAJOR.MINOR.PATCH",
            )
        )

    selected = select_targets(targets, MATRIX)
    if isinstance(selected, Err):
        return selected

    ids = {t.id for t in selected.value}
    nodes = {t.id: tuple(n for n in t.needs if n in ids) for t in selected.value}

    def run_node(target_id: str) -> Result[TargetArtifacts, PipelineError]:
        target = find_target(target_id, MATRIX)
        assert target is not None
        return run_target(ctx, target, publisher)

    results = run_graph(nodes, run_node, max_workers=max_workers)

    outcomes: list[TargetOutcome] = []
    for target in selected.value:
        match results[target.id]:
            case Ok(value=artifacts):
                outcomes.append(TargetOutcome(target_id=target.id, artifacts=artifacts))
            case Err(error=error):
                outcomes.append(TargetOutcome(target_id=target.id, error=error))

    record = ReleaseRecord(tag=ctx.tag, outcomes=tuple(outcomes))
    if record.selected_ok:
        return Ok(record)
    return Err(PartialFailure(record))
