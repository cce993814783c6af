from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PublishErrorKind = Literal[
    "invalid_input",
    "invalid_version",
    "git_failed",
    "dirty_tree",
    "wrong_branch",
    "registry_failed",
    "manifest_failed",
    "changelog_failed",
    "checkpoint_failed",
    "phase_failed",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    kind: PublishErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
