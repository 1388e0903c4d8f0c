from __future__ import annotations

import json
from pathlib import Path

import typer

from grimrel.cli.commands._helpers import report_error
from grimrel.cli.context import CLIContext, build_context
from grimrel.core.config import DEFAULT_APP, load_config_or_default
from grimrel.core.errors import ErrorCode
from grimrel.core.project import detect_project
from grimrel.core.result import Err, Ok
from grimrel.platform.files import atomic_write_text
from grimrel.services.pipeline.context import PipelineContext
from grimrel.services.pipeline.model import PartialFailure, ReleaseRecord
from grimrel.services.pipeline.publish import DirectoryPublisher, GitHubPublisher, Publisher
from grimrel.services.pipeline.runner import run_pipeline
from grimrel.services.pipeline.targets import MATRIX, artifact_names

pipeline_app = typer.Typer(add_completion=False, no_args_is_help=True)


def make_publisher(ctx: CLIContext, backend: str) -> Publisher:
    match backend:
        case "directory":
            return DirectoryPublisher(
                root=ctx.project.root / ctx.config.paths.publish_dir,
                console=ctx.console,
            )
        case "github":
            return GitHubPublisher(
                root=ctx.project.root,
                console=ctx.console,
                repo=ctx.config.publish.repo,
                timeout=ctx.config.timeouts.publish,
            )
        case _:
            typer.echo(f"error: unknown publisher: {backend} (github|directory)", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def _configured_app() -> str:
    """Artifact prefix from release.toml; the default outside a project checkout."""
    project = detect_project()
    if isinstance(project, Err):
        return DEFAULT_APP
    config = load_config_or_default(project.value.config_path)
    if isinstance(config, Err):
        typer.echo(f"error: {config.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))
    return config.value.release.app


def _print_record(ctx: CLIContext, record: ReleaseRecord) -> None:
    rows: list[list[str]] = []
    for outcome in record.outcomes:
        if outcome.artifacts is not None:
            names = ", ".join(a.name for a in outcome.artifacts.artifacts)
            rows.append([outcome.target_id, "ok", names])
        elif outcome.error is not None:
            rows.append([outcome.target_id, outcome.error.kind, outcome.error.pretty()])
    ctx.console.table(f"release {record.tag}", ["target", "status", "detail"], rows)


@pipeline_app.command("run")
def run_cmd(
    tag: str = typer.Option(..., "--tag", help="Release tag (e.g. v0.2.4)"),
    target: list[str] | None = typer.Option(
        None, "--target", help="Run only these target ids (repeatable)"
    ),
    jobs: int | None = typer.Option(None, "--jobs", min=1, help="Max concurrent target jobs"),
    publisher: str | None = typer.Option(
        None, "--publisher", help="github|directory (default: from release.toml)"
    ),
    record_out: Path | None = typer.Option(
        None, "--record-out", help="Write the release record as JSON"
    ),
) -> None:
    """Build, package, checksum and publish the platform artifacts for a tag."""
    ctx = build_context()
    pipeline_ctx = PipelineContext(
        root=ctx.project.root,
        tag=tag,
        config=ctx.config,
        host=ctx.host,
        console=ctx.console,
    )
    backend = make_publisher(ctx, publisher or ctx.config.publish.backend)

    ctx.console.header(f"release {tag} on {ctx.host}")
    result = run_pipeline(pipeline_ctx, backend, targets=target or None, max_workers=jobs)

    match result:
        case Ok(value=record):
            pass
        case Err(error=PartialFailure() as failure):
            record = failure.record
        case Err(error=error):
            report_error(error, ctx)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    _print_record(ctx, record)
    if record_out is not None:
        out = record_out if record_out.is_absolute() else ctx.project.root / record_out
        atomic_write_text(out, json.dumps(record.to_dict(), indent=2) + "\n")
        ctx.console.print(f"record: {out}")

    if not record.selected_ok:
        for outcome in record.failed:
            if outcome.error is not None:
                ctx.console.error(outcome.error.pretty())
        raise typer.Exit(code=int(ErrorCode.BUILD_ERROR))
    if record.complete:
        ctx.console.success(f"release {tag} complete")
    else:
        ctx.console.success(f"published {len(record.succeeded)} target(s) for {tag}")
        ctx.console.info(f"release {tag} not complete yet; missing: {', '.join(record.missing)}")


@pipeline_app.command("matrix")
def matrix_cmd(
    as_json: bool = typer.Option(False, "--json", help="Print the matrix as JSON"),
    tag: str = typer.Option("vX.Y.Z", "--tag", help="Tag used for artifact names"),
    app_name: str | None = typer.Option(None, "--app", help="Artifact name prefix"),
) -> None:
    """List the platform targets and the artifacts each one produces."""
    app = app_name or _configured_app()
    if as_json:
        payload = [
            {
                "id": t.id,
                "os": t.os,
                "arch": t.arch,
                "packaging": str(t.packaging),
                "triple": t.triple,
                "needs": list(t.needs),
                "artifacts": list(artifact_names(app, tag, t)),
            }
            for t in MATRIX
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    for t in MATRIX:
        needs = f" (needs {', '.join(t.needs)})" if t.needs else ""
        typer.echo(f"{t.id:16} {', '.join(artifact_names(app, tag, t))}{needs}")
