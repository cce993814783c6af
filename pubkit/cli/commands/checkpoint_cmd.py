from __future__ import annotations

import typer

from pubkit.cli.commands._helpers import exit_on_error, exit_with_code
from pubkit.cli.context import build_context
from pubkit.core.errors import ErrorCode
from pubkit.core.result import Err
from pubkit.output.console import Style
from pubkit.publish.checkpoint import CheckpointOptions
from pubkit.publish.discovery import parse_name_list
from pubkit.publish.phases import PHASE_NAMES
from pubkit.publish.service import checkpoint_manager, head_commit

checkpoint_app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Inspect or delete the saved publish checkpoint.",
)


@checkpoint_app.command("show")
def show(
    scope: str = typer.Option("", "--scope", "-s", help="--scope of the run to resume."),
    exclude: str = typer.Option("", "--exclude", "-e", help="--exclude of the run to resume."),
    dry: bool = typer.Option(False, "--dry", "-d", help="--dry of the run to resume."),
) -> None:
    """Print the checkpoint and whether a run with these options could resume from it."""
    ctx = build_context()
    manager = checkpoint_manager(workspace=ctx.workspace, config=ctx.config)

    loaded = manager.load()
    exit_on_error(loaded, ctx)
    checkpoint = loaded.value
    if checkpoint is None:
        ctx.console.info(f"no checkpoint at {manager.path}")
        return

    next_phase = (
        PHASE_NAMES[checkpoint.phase_index]
        if checkpoint.phase_index < len(PHASE_NAMES)
        else "done"
    )
    ctx.console.header("Checkpoint")
    ctx.console.print(f"path: {manager.path}")
    ctx.console.print(f"saved: {checkpoint.timestamp.isoformat()}")
    ctx.console.print(f"head: {checkpoint.head}")
    ctx.console.print(f"next phase: {checkpoint.phase_index} ({next_phase})")
    ctx.console.print(f"options: {checkpoint.options}")
    ctx.console.print(f"packages: {', '.join(sorted(checkpoint.state)) or '-'}", Style.DIM)

    head = head_commit(ctx.repo)
    if isinstance(head, Err):
        ctx.console.warning(head.error.message)
        exit_with_code(ErrorCode.ENV_ERROR)
    options = CheckpointOptions(
        scope=parse_name_list(scope), exclude=parse_name_list(exclude), dry=dry
    )
    reason = manager.invalid_reason(checkpoint, head=head.value, options=options)
    if reason is not None:
        ctx.console.warning(f"stale: {reason}")
    else:
        ctx.console.success("resumable with these options")


@checkpoint_app.command("clear")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete the checkpoint file."""
    ctx = build_context()
    manager = checkpoint_manager(workspace=ctx.workspace, config=ctx.config)
    if not manager.path.exists():
        ctx.console.info("no checkpoint to clear")
        return
    if not yes and not typer.confirm(f"Delete {manager.path}?", default=False):
        exit_with_code(ErrorCode.USER_ERROR)
    exit_on_error(manager.clear(), ctx)
    ctx.console.success("checkpoint cleared")
