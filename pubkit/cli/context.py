from __future__ import annotations

from dataclasses import dataclass

import typer

from pubkit.core.config import Config, load_config_or_default
from pubkit.core.errors import ErrorCode
from pubkit.core.result import Err
from pubkit.core.workspace import Workspace, detect_workspace
from pubkit.git.repository import Repository
from pubkit.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    config: Config
    console: ConsoleProtocol
    repo: Repository


def build_context() -> CLIContext:
    workspace_result = detect_workspace()
    if isinstance(workspace_result, Err):
        typer.echo(f"error: {workspace_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    workspace = workspace_result.value

    config_result = load_config_or_default(workspace.config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        workspace=workspace,
        config=config_result.value,
        console=RichConsole(),
        repo=Repository(workspace.root),
    )
