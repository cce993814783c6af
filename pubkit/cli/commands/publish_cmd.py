from __future__ import annotations

import typer

from pubkit.cli.commands._helpers import confirm, exit_on_error, exit_with_code
from pubkit.cli.context import build_context
from pubkit.core.errors import ErrorCode
from pubkit.output.console import Style
from pubkit.publish.discovery import parse_name_list
from pubkit.publish.phases import PHASE_NAMES, PublishOptions
from pubkit.publish.pipeline import Failed
from pubkit.publish.registry import NpmRegistry
from pubkit.publish.service import publish_packages


def _prerelease_id(raw: str | None, *, default_id: str) -> str | None:
    if raw is None:
        return None
    return raw.strip() or default_id


def publish(
    list_unpublished: bool = typer.Option(
        False,
        "--list-unpublished",
        "-l",
        help="List packages with changes since their last published version.",
    ),
    prerelease: str | None = typer.Option(
        None,
        "--prerelease",
        "-p",
        help="Suggest prerelease versions like 1.0.0-rc.0; pass '' for the default identifier.",
    ),
    scope: str = typer.Option(
        "",
        "--scope",
        "-s",
        help="Comma-separated package names to consider (default: all public packages).",
    ),
    exclude: str = typer.Option(
        "",
        "--exclude",
        "-e",
        help="Comma-separated package names to skip; wins over --scope.",
    ),
    retry: bool = typer.Option(
        False,
        "--retry",
        "-r",
        help="Resume from a valid checkpoint without asking.",
    ),
    skip_repo_checks: bool = typer.Option(
        False,
        "--skip-repo-checks",
        help="Skip the release branch and clean working tree checks.",
    ),
    dry: bool = typer.Option(False, "--dry", "-d", help="Do not publish to the registry."),
) -> None:
    """Prepare packages for publishing: pick versions and update manifests."""
    ctx = build_context()
    options = PublishOptions(
        list_unpublished=list_unpublished,
        prerelease=_prerelease_id(prerelease, default_id=ctx.config.publish.default_prerelease_id),
        scope=parse_name_list(scope),
        exclude=parse_name_list(exclude),
        retry=retry,
        skip_repo_checks=skip_repo_checks,
        dry=dry,
    )

    result = publish_packages(
        workspace=ctx.workspace,
        config=ctx.config,
        repo=ctx.repo,
        registry=NpmRegistry(cwd=ctx.workspace.root),
        console=ctx.console,
        confirm=confirm,
        options=options,
    )
    exit_on_error(result, ctx)
    outcome = result.value

    if isinstance(outcome.state, Failed):
        failed = outcome.state
        name = PHASE_NAMES[failed.index] if failed.index < len(PHASE_NAMES) else "?"
        ctx.console.error(f"failed at phase {failed.index} ({name}): {failed.error.message}")
        if failed.error.hint:
            ctx.console.print(failed.error.hint, Style.DIM)
        ctx.console.print("Fix the problem and run again with --retry to resume.", Style.DIM)
        exit_with_code(ErrorCode.PHASE_ERROR)

    if not options.list_unpublished:
        ctx.console.success("publish preparation finished")
