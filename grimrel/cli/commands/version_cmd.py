from __future__ import annotations

import typer

from grimrel.cli.commands._helpers import exit_on_error, report_error
from grimrel.cli.context import build_context
from grimrel.core.errors import ErrorCode
from grimrel.core.result import Err
from grimrel.git.repository import Repository
from grimrel.services.release.errors import (
    BranchMismatchError,
    DirtyWorkingTreeError,
    GitCommandError,
    InvalidBumpClassError,
    TagExistsError,
    VersionError,
    VersionFileError,
)
from grimrel.services.release.resolver import push_release, resolve_and_tag
from grimrel.services.release.semver import latest_version, parse_bump
from grimrel.services.release.version_files import current_values

version_app = typer.Typer(add_completion=False, no_args_is_help=True)


def error_code_for(error: VersionError) -> ErrorCode:
    match error:
        case (
            DirtyWorkingTreeError()
            | InvalidBumpClassError()
            | TagExistsError()
            | BranchMismatchError()
        ):
            return ErrorCode.USER_ERROR
        case VersionFileError():
            return ErrorCode.IO_ERROR
        case GitCommandError():
            return ErrorCode.ENV_ERROR


@version_app.command("bump")
def bump_cmd(
    kind: str = typer.Argument(..., help="Bump class: patch|minor|major"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the plan; write nothing"),
) -> None:
    """Bump the version files, commit them and tag the commit (never pushes)."""
    # Reject a bad class before touching the project at all.
    parsed = parse_bump(kind)
    if isinstance(parsed, Err):
        typer.echo(f"error: {parsed.error.message}", err=True)
        typer.echo(f"hint: {parsed.error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    ctx = build_context()
    result = resolve_and_tag(
        root=ctx.project.root,
        bump=parsed.value,
        config=ctx.config.release,
        console=ctx.console,
        dry_run=dry_run,
    )
    if isinstance(result, Err):
        report_error(result.error, ctx)
        raise typer.Exit(code=int(error_code_for(result.error)))

    if dry_run:
        ctx.console.info(f"dry run: would release {result.value.tag}")


@version_app.command("current")
def current_cmd() -> None:
    """Show the latest release tag and the versions recorded in each file."""
    ctx = build_context()
    repo = Repository(ctx.project.root)
    tags = repo.list_tags(merged_into=ctx.config.release.branch)
    exit_on_error(tags, ctx, ErrorCode.ENV_ERROR)
    assert not isinstance(tags, Err)

    ctx.console.print(f"latest: {latest_version(tags.value).to_tag()}")
    rows = [[label, value or "-"] for label, value in current_values(root=ctx.project.root)]
    ctx.console.table("version files", ["file", "value"], rows)


@version_app.command("push")
def push_cmd(
    tag: str = typer.Argument(..., help="Tag created by 'version bump'"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the push; do not run it"),
) -> None:
    """Push the release branch and tag; this triggers the release pipeline."""
    ctx = build_context()
    result = push_release(
        root=ctx.project.root,
        tag=tag,
        config=ctx.config.release,
        console=ctx.console,
        dry_run=dry_run,
    )
    if isinstance(result, Err):
        report_error(result.error, ctx)
        raise typer.Exit(code=int(ErrorCode.NETWORK_ERROR))
