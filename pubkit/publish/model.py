from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path

from pubkit.core.structured import StrDict, as_obj_list, as_str_dict, get_bool, get_int, get_str
from pubkit.git.repository import CommitRecord, FileChangeRecord, FileStatus

# Heading of the changelog section that collects not-yet-released entries.
UNRELEASED_VERSION = "unreleased"

PACKAGE_STATE_SCHEMA = 1


class ReleaseType(Enum):
    """Semantic-version bump kinds.

    Ordering is total: prerelease > major > minor > patch, with each
    pre-variant ranked right above its base bump.
    """

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    PREMAJOR = "premajor"
    PREMINOR = "preminor"
    PREPATCH = "prepatch"
    PRERELEASE = "prerelease"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE.index(self)

    @property
    def is_pre(self) -> bool:
        return self in (
            ReleaseType.PREMAJOR,
            ReleaseType.PREMINOR,
            ReleaseType.PREPATCH,
            ReleaseType.PRERELEASE,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ReleaseType):
            return NotImplemented
        return self.precedence < other.precedence

    def __str__(self) -> str:
        return self.value


_PRECEDENCE: tuple[ReleaseType, ...] = (
    ReleaseType.PATCH,
    ReleaseType.PREPATCH,
    ReleaseType.MINOR,
    ReleaseType.PREMINOR,
    ReleaseType.MAJOR,
    ReleaseType.PREMAJOR,
    ReleaseType.PRERELEASE,
)


class ChangeType(Enum):
    """Changelog categories we know about (level-3 headings)."""

    BREAKING_CHANGES = "🛠 Breaking changes"
    NEW_FEATURES = "🎉 New features"
    BUG_FIXES = "🐛 Bug fixes"

    @property
    def key(self) -> str:
        return category_key(self.value)


_NON_WORD = re.compile(r"[^a-z0-9 ]+")


def category_key(label: str) -> str:
    """Normalize a category heading: "🛠 Breaking changes" -> "breaking changes"."""
    return " ".join(_NON_WORD.sub(" ", label.lower()).split())


@dataclass(frozen=True, slots=True)
class ChangelogChanges:
    """Entries grouped as version -> category -> entries, in document order."""

    total_count: int = 0
    versions: Mapping[str, Mapping[str, tuple[str, ...]]] = field(default_factory=dict)

    def entries(self, version: str, category: str | ChangeType) -> tuple[str, ...]:
        """Entries of one category, matching category headings loosely."""
        wanted = category.key if isinstance(category, ChangeType) else category_key(category)
        found: list[str] = []
        for label, items in self.versions.get(version, {}).items():
            if category_key(label) == wanted:
                found.extend(items)
        return tuple(found)

    def to_dict(self) -> StrDict:
        return {
            "total_count": self.total_count,
            "versions": {
                version: {category: list(items) for category, items in sections.items()}
                for version, sections in self.versions.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ChangelogChanges:
        versions: dict[str, dict[str, tuple[str, ...]]] = {}
        for version, sections_obj in (as_str_dict(data.get("versions")) or {}).items():
            sections: dict[str, tuple[str, ...]] = {}
            for category, items_obj in (as_str_dict(sections_obj) or {}).items():
                items = as_obj_list(items_obj) or []
                sections[category] = tuple(i for i in items if isinstance(i, str))
            versions[version] = sections
        count = data.get("total_count")
        return cls(
            total_count=count if isinstance(count, int) and not isinstance(count, bool) else 0,
            versions=versions,
        )


@dataclass(frozen=True, slots=True)
class Package:
    """A discovered package and its manifest as read at start-up.

    `manifest` is the parsed package.json; treat it as read-only and copy it
    before writing changes back.
    """

    name: str
    version: str
    root: Path
    manifest: Mapping[str, object]
    changelog_path: Path

    @property
    def manifest_path(self) -> Path:
        return self.root / "package.json"

    @property
    def git_head(self) -> str | None:
        """Commit recorded at last publish (package.json `gitHead`)."""
        return get_str(self.manifest, "gitHead")

    @property
    def is_private(self) -> bool:
        return get_bool(self.manifest, "private") is True


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """What the registry knows about the package's current version."""

    name: str
    version: str
    git_head: str | None


@dataclass(frozen=True, slots=True)
class PackageState:
    """Derived per-package release state.

    Every field stays None until the phase computing it has run. Fields are
    filled monotonically; only a fresh pipeline run starts from scratch.
    """

    has_unpublished_changes: bool | None = None
    is_selected_to_publish: bool | None = None
    changelog_changes: ChangelogChanges | None = None
    integral: bool | None = None
    commit_log: tuple[CommitRecord, ...] | None = None
    file_log: tuple[FileChangeRecord, ...] | None = None
    release_type: ReleaseType | None = None
    release_version: str | None = None

    def to_dict(self) -> StrDict:
        """Serialize the fields that are set."""
        out: StrDict = {"schema": PACKAGE_STATE_SCHEMA}
        if self.has_unpublished_changes is not None:
            out["has_unpublished_changes"] = self.has_unpublished_changes
        if self.is_selected_to_publish is not None:
            out["is_selected_to_publish"] = self.is_selected_to_publish
        if self.changelog_changes is not None:
            out["changelog_changes"] = self.changelog_changes.to_dict()
        if self.integral is not None:
            out["integral"] = self.integral
        if self.commit_log is not None:
            out["commit_log"] = [
                {
                    "hash": c.hash,
                    "parent_hash": c.parent_hash,
                    "title": c.title,
                    "author_name": c.author_name,
                    "relative_date": c.relative_date,
                }
                for c in self.commit_log
            ]
        if self.file_log is not None:
            out["file_log"] = [
                {
                    "absolute_path": f.absolute_path,
                    "relative_path": f.relative_path,
                    "status": f.status.value,
                }
                for f in self.file_log
            ]
        if self.release_type is not None:
            out["release_type"] = self.release_type.value
        if self.release_version is not None:
            out["release_version"] = self.release_version
        return out

    @classmethod
    def fields_from_dict(cls, data: Mapping[str, object]) -> dict[str, object] | None:
        """Parse the set fields of a serialized state.

        Unknown keys and values of the wrong shape are dropped, so a partly
        damaged snapshot restores whatever is still usable. A snapshot written
        with another schema (or none) is not read at all and gives None.
        """
        if get_int(data, "schema") != PACKAGE_STATE_SCHEMA:
            return None

        out: dict[str, object] = {}
        for name in ("has_unpublished_changes", "is_selected_to_publish", "integral"):
            value = get_bool(data, name)
            if value is not None:
                out[name] = value

        changes = as_str_dict(data.get("changelog_changes"))
        if changes is not None:
            out["changelog_changes"] = ChangelogChanges.from_dict(changes)

        commits = as_obj_list(data.get("commit_log"))
        if commits is not None:
            out["commit_log"] = tuple(
                CommitRecord(
                    hash=str(row.get("hash", "")),
                    parent_hash=str(row.get("parent_hash", "")),
                    title=str(row.get("title", "")),
                    author_name=str(row.get("author_name", "")),
                    relative_date=str(row.get("relative_date", "")),
                )
                for row in (as_str_dict(item) for item in commits)
                if row is not None and isinstance(row.get("hash"), str)
            )

        files = as_obj_list(data.get("file_log"))
        if files is not None:
            parsed: list[FileChangeRecord] = []
            for item in files:
                row = as_str_dict(item)
                status = _FILE_STATUSES.get(str(row.get("status"))) if row is not None else None
                if row is None or status is None:
                    continue
                parsed.append(
                    FileChangeRecord(
                        absolute_path=str(row.get("absolute_path", "")),
                        relative_path=str(row.get("relative_path", "")),
                        status=status,
                    )
                )
            out["file_log"] = tuple(parsed)

        release_type = _RELEASE_TYPES.get(get_str(data, "release_type") or "")
        if release_type is not None:
            out["release_type"] = release_type

        release_version = get_str(data, "release_version")
        if release_version is not None:
            out["release_version"] = release_version
        return out

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))


_FILE_STATUSES: dict[str, FileStatus] = {s.value: s for s in FileStatus}
_RELEASE_TYPES: dict[str, ReleaseType] = {t.value: t for t in ReleaseType}
