from __future__ import annotations

from dataclasses import dataclass

import typer

from grimrel.core.config import Config, load_config_or_default
from grimrel.core.errors import ErrorCode
from grimrel.core.project import Project, detect_project
from grimrel.core.result import Err
from grimrel.output.console import ConsoleProtocol, RichConsole
from grimrel.platform.detection import HostInfo, detect


@dataclass(frozen=True, slots=True)
class CLIContext:
    project: Project
    host: HostInfo
    config: Config
    console: ConsoleProtocol


def build_context() -> CLIContext:
    project_result = detect_project()
    if isinstance(project_result, Err):
        typer.echo(f"error: {project_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    project = project_result.value
    config_result = load_config_or_default(project.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))

    return CLIContext(
        project=project,
        host=detect(),
        config=config_result.value,
        console=RichConsole(),
    )
