from __future__ import annotations

from pathlib import Path

import typer

from grimrel.core.errors import ErrorCode
from grimrel.core.result import Err
from grimrel.output.console import RichConsole
from grimrel.services.pipeline.checksum import verify_checksum_file

checksum_app = typer.Typer(add_completion=False, no_args_is_help=True)


@checksum_app.command("verify")
def verify_cmd(
    files: list[Path] = typer.Argument(..., help="Checksum sidecar files (*-sha256sum.txt)"),
) -> None:
    """Recompute artifact digests and compare them with their sidecars."""
    console = RichConsole()
    failed = 0
    for path in files:
        result = verify_checksum_file(path)
        if isinstance(result, Err):
            console.error(f"{path.name}: {result.error.message}")
            failed += 1
        else:
            console.success(result.value.name)
    if failed:
        raise typer.Exit(code=int(ErrorCode.BUILD_ERROR))
