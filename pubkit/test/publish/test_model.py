from __future__ import annotations

import pytest

from pubkit.git.repository import CommitRecord, FileChangeRecord, FileStatus
from pubkit.publish.model import (
    ChangelogChanges,
    ChangeType,
    PackageState,
    ReleaseType,
    category_key,
)


class TestReleaseType:
    def test_ordering(self) -> None:
        assert ReleaseType.PATCH < ReleaseType.MINOR < ReleaseType.MAJOR < ReleaseType.PRERELEASE
        assert max([ReleaseType.MINOR, ReleaseType.PATCH, ReleaseType.MAJOR]) is ReleaseType.MAJOR

    def test_is_pre(self) -> None:
        assert ReleaseType.PREPATCH.is_pre
        assert not ReleaseType.MAJOR.is_pre

    def test_str(self) -> None:
        assert str(ReleaseType.PREMINOR) == "preminor"


def test_category_key() -> None:
    assert category_key("🛠 Breaking changes") == "breaking changes"
    assert category_key("  Bug   Fixes ") == "bug fixes"
    assert ChangeType.NEW_FEATURES.key == "new features"


class TestPackageState:
    def test_empty_state_serializes_schema_only(self) -> None:
        assert PackageState().to_dict() == {"schema": 1}

    def test_restores_serialized_fields(self) -> None:
        state = PackageState(
            has_unpublished_changes=True,
            changelog_changes=ChangelogChanges(1, {"unreleased": {"Bug fixes": ("x",)}}),
            commit_log=(CommitRecord("c1", "c0", "title", "dev", "now"),),
            file_log=(FileChangeRecord("/p/ios/A.m", "ios/A.m", FileStatus.ADDED),),
            release_type=ReleaseType.MINOR,
            release_version="1.1.0",
        )

        fields = PackageState.fields_from_dict(state.to_dict())

        assert fields is not None
        assert PackageState(**fields) == state  # type: ignore[arg-type]

    def test_damaged_values_are_dropped(self) -> None:
        fields = PackageState.fields_from_dict(
            {
                "schema": 1,
                "integral": "yes",
                "release_type": "huge",
                "file_log": [{"relative_path": "a", "status": "exploded"}, "junk"],
                "commit_log": [{"title": "no hash"}],
                "release_version": "2.0.0",
            }
        )
        assert fields == {"file_log": (), "commit_log": (), "release_version": "2.0.0"}

    @pytest.mark.parametrize("schema", [None, 2, "1", True])
    def test_other_schema_is_not_read(self, schema: object) -> None:
        data: dict[str, object] = {"release_version": "2.0.0", "is_selected_to_publish": True}
        if schema is not None:
            data["schema"] = schema

        assert PackageState.fields_from_dict(data) is None

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            PackageState().integral = True  # type: ignore[misc]
