from __future__ import annotations

import pytest

from pubkit.publish.model import ReleaseType
from pubkit.publish.semver import SemVer, increment, is_prerelease, parse, start_prerelease


class TestParse:
    def test_stable(self) -> None:
        assert parse("1.2.3") == SemVer(1, 2, 3)

    def test_prerelease_parts(self) -> None:
        assert parse("1.2.3-rc.4") == SemVer(1, 2, 3, ("rc", 4))
        assert parse("1.2.3-0") == SemVer(1, 2, 3, (0,))

    def test_build_metadata_is_dropped(self) -> None:
        assert parse("1.0.0+build.7") == SemVer(1, 0, 0)

    @pytest.mark.parametrize("raw", ["", "1.2", "v1.2.3", "01.2.3", "1.2.3-", "latest"])
    def test_malformed(self, raw: str) -> None:
        assert parse(raw) is None

    def test_str(self) -> None:
        assert str(SemVer(2, 0, 0, ("beta", 1))) == "2.0.0-beta.1"

    def test_is_prerelease(self) -> None:
        assert is_prerelease("2.0.0-rc.0")
        assert not is_prerelease("2.0.0")
        assert not is_prerelease("nope")


class TestIncrement:
    @pytest.mark.parametrize(
        ("version", "kind", "identifier", "expected"),
        [
            ("1.2.3", ReleaseType.PATCH, None, "1.2.4"),
            ("1.2.3", ReleaseType.MINOR, None, "1.3.0"),
            ("1.2.3", ReleaseType.MAJOR, None, "2.0.0"),
            ("1.2.3", ReleaseType.PREPATCH, "rc", "1.2.4-rc.0"),
            ("1.2.3", ReleaseType.PREMINOR, "rc", "1.3.0-rc.0"),
            ("1.2.3", ReleaseType.PREMAJOR, "rc", "2.0.0-rc.0"),
            ("1.2.3", ReleaseType.PRERELEASE, None, "1.2.4-0"),
            ("1.2.3", ReleaseType.PRERELEASE, "rc", "1.2.4-rc.0"),
            ("1.2.4-rc.0", ReleaseType.PRERELEASE, None, "1.2.4-rc.1"),
            ("1.2.4-rc.0", ReleaseType.PRERELEASE, "rc", "1.2.4-rc.1"),
            ("1.2.4-rc.3", ReleaseType.PRERELEASE, "beta", "1.2.4-beta.0"),
            ("1.2.4-beta", ReleaseType.PRERELEASE, None, "1.2.4-beta.0"),
        ],
    )
    def test_npm_rules(
        self, version: str, kind: ReleaseType, identifier: str | None, expected: str
    ) -> None:
        assert increment(version, kind, identifier) == expected

    @pytest.mark.parametrize(
        ("version", "kind", "expected"),
        [
            ("2.0.0-rc.1", ReleaseType.MAJOR, "2.0.0"),
            ("2.1.0-rc.1", ReleaseType.MAJOR, "3.0.0"),
            ("1.2.0-rc.1", ReleaseType.MINOR, "1.2.0"),
            ("1.2.3-rc.1", ReleaseType.MINOR, "1.3.0"),
            ("1.2.3-rc.1", ReleaseType.PATCH, "1.2.3"),
        ],
    )
    def test_finalizing_a_prerelease(self, version: str, kind: ReleaseType, expected: str) -> None:
        assert increment(version, kind) == expected

    def test_malformed(self) -> None:
        assert increment("1.x", ReleaseType.PATCH) is None


def test_start_prerelease() -> None:
    assert start_prerelease("1.0.1", "beta") == "1.0.1-beta.0"
    assert start_prerelease("not-a-version", "beta") is None
