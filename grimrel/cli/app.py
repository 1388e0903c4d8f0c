from __future__ import annotations

import os
from pathlib import Path

import typer

from grimrel import __version__
from grimrel.cli.commands.checksum_cmd import checksum_app
from grimrel.cli.commands.pipeline_cmd import pipeline_app
from grimrel.cli.commands.version_cmd import version_app
from grimrel.core.errors import ErrorCode
from grimrel.core.project import ROOT_ENV_VAR, is_project_root

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Sub-apps
app.add_typer(version_app, name="version", help="Compute, commit, tag and push release versions.")
app.add_typer(pipeline_app, name="pipeline", help="Build and publish platform artifacts.")
app.add_typer(checksum_app, name="checksum", help="Verify published checksums.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Project root (overrides auto detection)",
    ),
) -> None:
    del version
    if root is not None:
        try:
            resolved = root.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --root: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not resolved.is_dir() or not is_project_root(resolved):
            typer.echo(
                f"error: --root '{resolved}' is not a project root (needs Cargo.toml and .git)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[ROOT_ENV_VAR] = str(resolved)


def main() -> None:
    app()
