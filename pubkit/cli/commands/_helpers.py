"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from pubkit.core.errors import ErrorCode
from pubkit.core.result import Err, Result
from pubkit.output.console import Style
from pubkit.publish.errors import PublishError

if TYPE_CHECKING:
    from pubkit.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")

_ERROR_CODES: dict[str, ErrorCode] = {
    "invalid_input": ErrorCode.USER_ERROR,
    "invalid_version": ErrorCode.USER_ERROR,
    "wrong_branch": ErrorCode.ENV_ERROR,
    "dirty_tree": ErrorCode.ENV_ERROR,
    "git_failed": ErrorCode.ENV_ERROR,
    "registry_failed": ErrorCode.NETWORK_ERROR,
    "manifest_failed": ErrorCode.IO_ERROR,
    "changelog_failed": ErrorCode.IO_ERROR,
    "checkpoint_failed": ErrorCode.IO_ERROR,
    "phase_failed": ErrorCode.PHASE_ERROR,
}


def publish_error_code(error: PublishError) -> ErrorCode:
    return _ERROR_CODES.get(error.kind, ErrorCode.USER_ERROR)


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.USER_ERROR,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    A PublishError picks its own exit code from its kind.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        code = publish_error_code(error) if isinstance(error, PublishError) else error_code
        raise typer.Exit(code=int(code))


def exit_with_code(code: ErrorCode) -> NoReturn:
    raise typer.Exit(code=int(code))


def confirm(message: str, default: bool) -> bool:
    """Blocking yes/no question on the terminal."""
    return typer.confirm(message, default=default)
