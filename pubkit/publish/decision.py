"""Release type suggestion.

Rules, strongest first:
1. a prerelease version continues its prerelease track;
2. breaking changes in the unreleased changelog section mean major;
3. changes under a native directory (ios/, android/) mean minor;
4. anything else is a patch.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pubkit.core.config import DEFAULT_NATIVE_DIRECTORIES
from pubkit.core.result import Err, Ok, Result
from pubkit.git.repository import FileChangeRecord
from pubkit.publish import semver
from pubkit.publish.errors import PublishError
from pubkit.publish.model import UNRELEASED_VERSION, ChangelogChanges, ChangeType, ReleaseType


@dataclass(frozen=True, slots=True)
class ReleaseDecision:
    release_type: ReleaseType
    next_version: str


def has_native_changes(
    files: Iterable[FileChangeRecord],
    native_directories: Iterable[str] = DEFAULT_NATIVE_DIRECTORIES,
) -> bool:
    prefixes = tuple(f"{d.strip('/')}/" for d in native_directories)
    return any(f.relative_path.startswith(prefixes) for f in files)


def suggest_release_type(
    current_version: str,
    files: Iterable[FileChangeRecord] = (),
    changes: ChangelogChanges | None = None,
    *,
    native_directories: Iterable[str] = DEFAULT_NATIVE_DIRECTORIES,
) -> ReleaseType | None:
    """Strongest release type the evidence calls for; None for a malformed version."""
    parsed = semver.parse(current_version)
    if parsed is None:
        return None

    candidates = [ReleaseType.PATCH]
    if parsed.is_prerelease:
        candidates.append(ReleaseType.PRERELEASE)
    if changes is not None and changes.entries(UNRELEASED_VERSION, ChangeType.BREAKING_CHANGES):
        candidates.append(ReleaseType.MAJOR)
    if has_native_changes(files, native_directories):
        candidates.append(ReleaseType.MINOR)
    return max(candidates, key=lambda t: t.precedence)


def decide(
    current_version: str,
    files: Iterable[FileChangeRecord] = (),
    changes: ChangelogChanges | None = None,
    prerelease_id: str | None = None,
    *,
    native_directories: Iterable[str] = DEFAULT_NATIVE_DIRECTORIES,
) -> Result[ReleaseDecision, PublishError]:
    """Suggested release type and the version it leads to.

    With prerelease_id, a stable bump is turned into the first prerelease
    of the bumped version: 1.0.0 patch + "beta" gives 1.0.1-beta.0.
    """
    release_type = suggest_release_type(
        current_version, files, changes, native_directories=native_directories
    )
    if release_type is None:
        return Err(
            PublishError(
                kind="invalid_version",
                message=f"not a valid semantic version: {current_version!r}",
            )
        )

    if release_type is ReleaseType.PRERELEASE:
        next_version = semver.increment(current_version, release_type, prerelease_id)
    else:
        next_version = semver.increment(current_version, release_type)
        if next_version is not None and prerelease_id:
            release_type = ReleaseType.PRERELEASE
            next_version = semver.start_prerelease(next_version, prerelease_id)

    if next_version is None:
        return Err(
            PublishError(
                kind="invalid_version",
                message=f"cannot increment {current_version!r} as {release_type}",
            )
        )
    return Ok(ReleaseDecision(release_type=release_type, next_version=next_version))
