"""Running git and npm.

All external commands go through `run`. Output is captured as text and a
failure comes back as `Err(ProcessError)`; nothing here raises for a
command that fails, hangs or is missing:

    match run(["git", "rev-parse", "HEAD"], cwd=root, extra_env=GIT_ENV):
        case Ok(stdout):
            head = stdout.strip()
        case Err(error):
            console.error(error.summary())
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from pubkit.core.result import Err, Ok, Result

__all__ = ["GIT_ENV", "NPM_ENV", "ProcessError", "run"]

# Stable, non-interactive output for parsing.
GIT_ENV: Mapping[str, str] = {"LC_ALL": "C", "GIT_TERMINAL_PROMPT": "0", "GIT_PAGER": "cat"}
NPM_ENV: Mapping[str, str] = {"NO_UPDATE_NOTIFIER": "1", "npm_config_update_notifier": "false"}

_NOT_STARTED = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited non-zero, timed out or could not be started.

    Attributes:
        command: argv as run
        returncode: exit status, -1 when the process never finished
        stdout: captured standard output
        stderr: captured standard error, or the reason it never ran
        timeout: the limit that was hit, if any
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timeout: float | None = None

    @property
    def timed_out(self) -> bool:
        return self.timeout is not None

    @property
    def output(self) -> str:
        """stdout and stderr together; npm splits its error reports across both."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def summary(self) -> str:
        detail = self.stderr.strip().splitlines()
        reason = detail[-1] if detail else ""
        return f"{self}: {reason}" if reason else str(self)

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        if self.timed_out:
            return f"{shown} timed out after {self.timeout:g}s"
        return f"{shown} failed (exit {self.returncode})"


def _environment(extra_env: Mapping[str, str] | None) -> dict[str, str] | None:
    if not extra_env:
        return None
    return {**os.environ, **extra_env}


def run(
    cmd: Sequence[str],
    *,
    cwd: Path,
    extra_env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run cmd in cwd and return its stdout.

    extra_env is layered over the current environment.
    """
    argv = tuple(cmd)
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd),
            env=_environment(extra_env),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(
            ProcessError(
                command=argv,
                returncode=_NOT_STARTED,
                stdout=partial,
                stderr=f"timed out after {timeout}s",
                timeout=timeout,
            )
        )
    except OSError as e:
        return Err(ProcessError(command=argv, returncode=_NOT_STARTED, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=argv,
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )
    return Ok(proc.stdout)
