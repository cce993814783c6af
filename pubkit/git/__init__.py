"""Git operations module.

Read-only git access for the publish pipeline:

    from pubkit.git import Repository

    repo = Repository(Path("/path/to/repo"))
    commits = repo.log(package_root, from_commit=git_head)
"""

from pubkit.git.repository import (
    CommitRecord,
    FileChangeRecord,
    FileStatus,
    GitError,
    Repository,
)

__all__ = [
    "CommitRecord",
    "FileChangeRecord",
    "FileStatus",
    "GitError",
    "Repository",
]
