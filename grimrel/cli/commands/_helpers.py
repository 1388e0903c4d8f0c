"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from grimrel.core.errors import ErrorCode
from grimrel.core.result import Err, Result
from grimrel.output.console import Style

if TYPE_CHECKING:
    from grimrel.cli.context import CLIContext

T = TypeVar("T")
E = TypeVar("E")


def report_error(error: object, ctx: CLIContext) -> None:
    """Print an error object's message and optional hint."""
    message: str = getattr(error, "message", str(error))
    hint: str | None = getattr(error, "hint", None)
    ctx.console.error(message)
    if hint:
        ctx.console.print(f"hint: {hint}", Style.DIM)


def exit_on_error(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.BUILD_ERROR,
) -> None:
    """Exit with error_code if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        report_error(result.error, ctx)
        raise typer.Exit(code=int(error_code))
