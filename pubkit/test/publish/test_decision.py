from __future__ import annotations

from pubkit.core.result import Err, Ok
from pubkit.git.repository import FileChangeRecord, FileStatus
from pubkit.publish.decision import ReleaseDecision, decide, has_native_changes, suggest_release_type
from pubkit.publish.model import ChangelogChanges, ReleaseType

BREAKING = "🛠 Breaking changes"


def _file(relative_path: str) -> FileChangeRecord:
    return FileChangeRecord(
        absolute_path=f"/repo/packages/pkg/{relative_path}",
        relative_path=relative_path,
        status=FileStatus.MODIFIED,
    )


def _changes(**categories: tuple[str, ...]) -> ChangelogChanges:
    sections = {BREAKING if k == "breaking" else k: v for k, v in categories.items()}
    return ChangelogChanges(
        total_count=sum(len(v) for v in sections.values()),
        versions={"unreleased": sections},
    )


def test_patch_when_nothing_special() -> None:
    result = decide("2.0.0", [], _changes(breaking=()), native_directories=("ios", "android"))
    assert result == Ok(ReleaseDecision(ReleaseType.PATCH, "2.0.1"))


def test_major_on_breaking_changes() -> None:
    result = decide("2.0.0", [], _changes(breaking=("x",)), native_directories=("ios", "android"))
    assert result == Ok(ReleaseDecision(ReleaseType.MAJOR, "3.0.0"))


def test_minor_on_native_changes() -> None:
    result = decide("2.0.0", [_file("ios/Foo.m")], _changes(), native_directories=("ios", "android"))
    assert result == Ok(ReleaseDecision(ReleaseType.MINOR, "2.1.0"))


def test_breaking_beats_native() -> None:
    release_type = suggest_release_type(
        "2.0.0",
        [_file("android/build.gradle")],
        _changes(breaking=("x",)),
        native_directories=("ios", "android"),
    )
    assert release_type is ReleaseType.MAJOR


def test_prerelease_continues_regardless_of_other_inputs() -> None:
    result = decide(
        "2.0.0-rc.0",
        [_file("ios/Foo.m")],
        _changes(breaking=("x",)),
        native_directories=("ios", "android"),
    )
    assert result == Ok(ReleaseDecision(ReleaseType.PRERELEASE, "2.0.0-rc.1"))


def test_prerelease_identifier_on_patch() -> None:
    result = decide("1.0.0", [], _changes(), "beta", native_directories=("ios", "android"))
    assert result == Ok(ReleaseDecision(ReleaseType.PRERELEASE, "1.0.1-beta.0"))


def test_prerelease_identifier_on_major() -> None:
    result = decide("1.4.2", [], _changes(breaking=("x",)), "rc", native_directories=("ios",))
    assert result == Ok(ReleaseDecision(ReleaseType.PRERELEASE, "2.0.0-rc.0"))


def test_prerelease_identifier_switches_track() -> None:
    result = decide("1.0.0-rc.2", [], None, "beta", native_directories=("ios",))
    assert result == Ok(ReleaseDecision(ReleaseType.PRERELEASE, "1.0.0-beta.0"))


def test_malformed_version_has_no_recommendation() -> None:
    assert suggest_release_type("banana", native_directories=("ios",)) is None
    result = decide("banana", native_directories=("ios",))
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_version"


def test_native_directory_must_be_a_path_prefix() -> None:
    assert has_native_changes([_file("ios/Foo.m")], ("ios", "android"))
    assert not has_native_changes([_file("src/ios.ts"), _file("iosfoo/x")], ("ios", "android"))
    assert has_native_changes([_file("windows/x.cpp")], ("windows/",))


def test_breaking_changes_in_released_sections_do_not_count() -> None:
    changes = ChangelogChanges(total_count=1, versions={"1.0.0": {BREAKING: ("old",)}})
    assert suggest_release_type("1.0.0", [], changes, native_directories=()) is ReleaseType.PATCH
