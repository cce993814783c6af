"""Per-package git history since the last publish."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pubkit.core.result import Err, Ok, Result
from pubkit.git.repository import CommitRecord, FileChangeRecord, GitError
from pubkit.publish.errors import PublishError


class HistorySource(Protocol):
    """The git queries history analysis needs; `Repository` implements it."""

    def log(
        self,
        package_path: Path,
        *,
        from_commit: str | None = None,
        to_commit: str = "HEAD",
    ) -> Result[list[CommitRecord], GitError]: ...

    def log_files(
        self,
        package_path: Path,
        *,
        from_commit: str | None = None,
        to_commit: str = "HEAD",
    ) -> Result[list[FileChangeRecord], GitError]: ...


@dataclass(frozen=True, slots=True)
class PackageHistory:
    commits: tuple[CommitRecord, ...]
    files: tuple[FileChangeRecord, ...]


def _git_failed(error: GitError, package_path: Path) -> PublishError:
    return PublishError(
        kind="git_failed",
        message=f"git {error.command} failed: {error.message}",
        hint=str(package_path),
    )


def commit_log(
    source: HistorySource,
    package_path: Path,
    *,
    from_commit: str | None = None,
    to_commit: str = "HEAD",
) -> Result[list[CommitRecord], PublishError]:
    result = source.log(package_path, from_commit=from_commit, to_commit=to_commit)
    if isinstance(result, Err):
        return Err(_git_failed(result.error, package_path))
    return Ok(result.value)


def file_log(
    source: HistorySource,
    package_path: Path,
    *,
    from_commit: str | None = None,
    to_commit: str = "HEAD",
) -> Result[list[FileChangeRecord], PublishError]:
    result = source.log_files(package_path, from_commit=from_commit, to_commit=to_commit)
    if isinstance(result, Err):
        return Err(_git_failed(result.error, package_path))
    return Ok(result.value)


def changes_since_publish(
    source: HistorySource,
    package_path: Path,
    *,
    last_published: str | None,
    to_commit: str = "HEAD",
) -> Result[PackageHistory, PublishError]:
    """Commits and file changes made after the package was last published.

    The publish itself leaves one commit behind (the one bumping
    package.json), sitting right after `last_published`. It is the oldest
    entry of the log and is dropped, together with its file changes.

    TODO: compare the dropped commit's parent with `last_published` instead
    of assuming a linear history.
    """
    commits = commit_log(source, package_path, from_commit=last_published, to_commit=to_commit)
    if isinstance(commits, Err):
        return commits
    log = commits.value

    if not log:
        return Ok(PackageHistory(commits=(), files=()))

    newest = log[0].hash
    base: str | None = None
    if last_published:
        base = log.pop().hash
        if not log:
            return Ok(PackageHistory(commits=(), files=()))

    files = file_log(source, package_path, from_commit=base, to_commit=newest)
    if isinstance(files, Err):
        return files

    return Ok(PackageHistory(commits=tuple(log), files=tuple(files.value)))
