"""Workspace detection and paths.

The workspace is the root of the multi-package repository. It is
identified by the presence of a `pubkit.toml` file, which doubles as the
configuration file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .result import Err, Ok, Result

__all__ = [
    "CONFIG_FILE_NAME",
    "ROOT_ENV_VAR",
    "Workspace",
    "WorkspaceError",
    "detect_workspace",
    "find_workspace_upward",
    "is_workspace_root",
]

CONFIG_FILE_NAME = "pubkit.toml"
ROOT_ENV_VAR = "PUBKIT_ROOT"


@dataclass(frozen=True)
class WorkspaceError:
    """Error when workspace cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    """A detected repository root.

    The root contains:
    - pubkit.toml (marker and config)
    - the packages directory (see `[paths] packages`)
    - .pubkit/ state directory (checkpoint, gitignored)
    """

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    @property
    def state_dir(self) -> Path:
        return self.root / ".pubkit"

    def packages_dir(self, config: Config) -> Path:
        return self.root / config.paths.packages

    def bundled_manifest_path(self, config: Config) -> Path:
        return self.root / config.paths.bundled_manifest

    def checkpoint_path(self, config: Config) -> Path:
        return self.root / config.paths.checkpoint

    def __str__(self) -> str:
        return str(self.root)


def is_workspace_root(path: Path) -> bool:
    return (path / CONFIG_FILE_NAME).is_file()


def find_workspace_upward(start: Path) -> Path | None:
    """Search upward from start directory for a workspace root."""
    for parent in (start, *start.parents):
        if is_workspace_root(parent):
            return parent
    return None


def detect_workspace(
    *,
    start_dir: Path | None = None,
    env_var: str = ROOT_ENV_VAR,
) -> Result[Workspace, WorkspaceError]:
    """Detect the workspace root directory.

    Detection order:
    1. PUBKIT_ROOT environment variable (if set it must be valid)
    2. Search upward from start_dir (or cwd) for pubkit.toml
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_workspace_root(env_path):
            return Ok(Workspace(root=env_path))
        return Err(
            WorkspaceError(
                message=f"${env_var} is set to '{env_value}' but it is not a valid workspace",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_workspace_upward(search_start)
    if found:
        return Ok(Workspace(root=found))

    return Err(
        WorkspaceError(
            message=f"Could not find workspace ({CONFIG_FILE_NAME} not found)",
            searched_from=search_start,
        )
    )
