"""Git repository abstraction.

This module provides the Repository class used by the publish pipeline.
All operations that can fail return Result types.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.log(package_root, from_commit=git_head):
        case Ok(commits):
            for c in commits:
                print(c.short_hash, c.title)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pubkit.core.result import Err, Ok, Result
from pubkit.platform.process import GIT_ENV, ProcessError
from pubkit.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

# Unit separator between fields, record separator between commits.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%P", "%s", "%aN", "%cr"]) + _RECORD_SEP

# `git hash-object -t tree /dev/null`
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

__all__ = [
    "CommitRecord",
    "EMPTY_TREE_SHA",
    "FileChangeRecord",
    "FileStatus",
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class FileStatus(Enum):
    """File status as reported by `git diff --name-status`."""

    MODIFIED = "modified"
    COPIED = "copied"
    RENAMED = "renamed"
    ADDED = "added"
    DELETED = "deleted"
    UNMERGED = "unmerged"

    @classmethod
    def from_letter(cls, letter: str) -> FileStatus | None:
        return _STATUS_LETTERS.get(letter[:1].upper())


_STATUS_LETTERS: dict[str, FileStatus] = {
    "M": FileStatus.MODIFIED,
    "T": FileStatus.MODIFIED,
    "C": FileStatus.COPIED,
    "R": FileStatus.RENAMED,
    "A": FileStatus.ADDED,
    "D": FileStatus.DELETED,
    "U": FileStatus.UNMERGED,
}


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """A single commit from `git log`.

    Attributes:
        hash: Full commit hash
        parent_hash: Parent hash(es), space separated for merges
        title: Commit subject line
        author_name: Author name (mailmap applied)
        relative_date: Committer date, relative ("3 days ago")
    """

    hash: str
    parent_hash: str
    title: str
    author_name: str
    relative_date: str

    @property
    def short_hash(self) -> str:
        return self.hash[:8]


@dataclass(frozen=True, slots=True)
class FileChangeRecord:
    """A changed file between two commits, scoped to a package."""

    absolute_path: str
    relative_path: str
    status: FileStatus


class Repository:
    """Git repository abstraction.

    Provides the read-only git operations the publish pipeline needs.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def current_branch(self) -> str | None:
        """Get current branch name.

        Returns None if detached HEAD or error.
        """
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def head_commit(self) -> Result[str, GitError]:
        """Full hash of the HEAD commit."""
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="rev-parse HEAD",
                        message=e.stderr.strip() or "cannot resolve HEAD",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip())

    def has_unstaged_changes(
        self,
        paths: list[str] | None = None,
        *,
        exclude: list[str] | None = None,
    ) -> bool:
        """True if the working tree differs from the index.

        paths and exclude are relative to the repository root; excluded files
        are ignored. `git diff --quiet` exits 1 when there are differences.
        Any other failure is also reported as dirty so callers never proceed
        blind.
        """
        pathspec = list(paths or [])
        if exclude:
            pathspec = pathspec or ["."]
            pathspec += [f":(exclude){p}" for p in exclude]
        result = self._run(["diff", "--quiet", "--", *pathspec])
        return isinstance(result, Err)

    def log(
        self,
        package_path: Path,
        *,
        from_commit: str | None = None,
        to_commit: str = "HEAD",
    ) -> Result[list[CommitRecord], GitError]:
        """Commits in `(from_commit, to_commit]` touching package_path, newest first.

        Without from_commit, the whole history up to to_commit is returned.
        """
        rev_range = f"{from_commit}..{to_commit}" if from_commit else to_commit
        result = self._run(
            ["log", f"--pretty=format:{_LOG_FORMAT}", rev_range, "--", "."],
            cwd=package_path,
        )
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=f"log {rev_range}",
                        message=e.stderr.strip() or "git log failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(self._parse_log(stdout))

    def log_files(
        self,
        package_path: Path,
        *,
        from_commit: str | None = None,
        to_commit: str = "HEAD",
    ) -> Result[list[FileChangeRecord], GitError]:
        """File status diff between the two commits, restricted to package_path.

        Without from_commit, the diff starts from the empty tree so every
        file present at to_commit is reported as added.
        """
        base = from_commit or EMPTY_TREE_SHA
        result = self._run(
            ["diff", "--name-status", f"{base}..{to_commit}", "--relative", "--", "."],
            cwd=package_path,
        )
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command=f"diff --name-status {base}..{to_commit}",
                        message=e.stderr.strip() or "git diff failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(self._parse_name_status(stdout, package_path))

    def _run(self, args: list[str], *, cwd: Path | None = None) -> Result[str, ProcessError]:
        """Run a git command, by default at the repository root."""
        where = cwd or self.path
        return run_process(
            ["git", "-C", str(where), *args],
            cwd=where,
            extra_env=GIT_ENV,
            timeout=_GIT_TIMEOUT_SECONDS,
        )

    def _parse_log(self, output: str) -> list[CommitRecord]:
        commits: list[CommitRecord] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            fields = record.split(_FIELD_SEP)
            if len(fields) != 5:
                continue
            commits.append(
                CommitRecord(
                    hash=fields[0],
                    parent_hash=fields[1],
                    title=fields[2],
                    author_name=fields[3],
                    relative_date=fields[4],
                )
            )
        return commits

    def _parse_name_status(self, output: str, package_path: Path) -> list[FileChangeRecord]:
        """Parse `STATUS<TAB>path` lines (renames/copies carry two paths)."""
        changes: list[FileChangeRecord] = []
        for line in output.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            status = FileStatus.from_letter(parts[0])
            if status is None or len(parts) < 2:
                continue
            relative = parts[-1]
            changes.append(
                FileChangeRecord(
                    absolute_path=str(package_path / relative),
                    relative_path=relative,
                    status=status,
                )
            )
        return changes
