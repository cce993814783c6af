from __future__ import annotations

from pathlib import Path

from pubkit.core.result import Err, Ok
from pubkit.publish.changelog import Changelog, Heading, ListItemEnd, ListItemStart, Text, lex
from pubkit.publish.model import ChangelogChanges, ChangeType

DOCUMENT = """\
# Changelog

## unreleased

### 🛠 Breaking changes

- Removed `Camera.takePicture` callback API. ([#101](https://example.com/101) by [@dev](https://example.com/dev))

### 🐛 Bug fixes

-
- Fixed a crash when
  the view unmounts.

## 1.2.0 — 2020-05-01

### 🎉 New features

- Added `zoom` prop.
- Added `ratio` prop.

```
## not a heading
- not an item
```

## 1.1.0 — 2020-03-02

### 🐛 Bug fixes

- Fixed flash mode on Android.
"""


def _changes(changelog: Changelog, *args: str) -> ChangelogChanges:
    result = changelog.get_changes(*args)
    assert isinstance(result, Ok)
    return result.value


class TestLex:
    def test_headings_and_items(self) -> None:
        tokens = lex("## 1.0.0\n\n### Bug fixes\n\n- one\n- two\n")
        assert tokens == [
            Heading(2, "1.0.0"),
            Heading(3, "Bug fixes"),
            ListItemStart(),
            Text("one"),
            ListItemEnd(),
            ListItemStart(),
            Text("two"),
            ListItemEnd(),
        ]

    def test_continuation_lines_join_the_item(self) -> None:
        tokens = lex("- first line\n  second line\nplain paragraph\n")
        assert Text("first line second line") in tokens
        assert len([t for t in tokens if isinstance(t, Text)]) == 1

    def test_fenced_code_is_skipped(self) -> None:
        tokens = lex("```\n## hidden\n- hidden\n```\n## shown\n")
        assert tokens == [Heading(2, "shown")]

    def test_closing_hashes_are_stripped(self) -> None:
        assert lex("## 1.0.0 ##") == [Heading(2, "1.0.0")]


class TestGetChanges:
    def test_default_returns_only_unreleased(self) -> None:
        changes = _changes(Changelog.from_text(DOCUMENT))

        assert list(changes.versions) == ["unreleased"]
        assert changes.entries("unreleased", ChangeType.BREAKING_CHANGES) == (
            "Removed `Camera.takePicture` callback API. ([#101](https://example.com/101) by [@dev](https://example.com/dev))",
        )

    def test_from_version_is_exclusive(self) -> None:
        changes = _changes(Changelog.from_text(DOCUMENT), "1.1.0")

        assert list(changes.versions) == ["unreleased", "1.2.0 — 2020-05-01"]
        assert changes.entries("1.2.0 — 2020-05-01", ChangeType.NEW_FEATURES) == (
            "Added `zoom` prop.",
            "Added `ratio` prop.",
        )
        assert changes.total_count == 4

    def test_empty_items_are_not_counted(self) -> None:
        changes = _changes(Changelog.from_text(DOCUMENT))

        assert changes.entries("unreleased", "Bug fixes") == ("Fixed a crash when the view unmounts.",)
        assert changes.total_count == 2

    def test_first_version_not_unreleased(self) -> None:
        changes = _changes(Changelog.from_text("## 1.0.0\n\n### Bug fixes\n\n- a\n"))
        assert changes.total_count == 0
        assert dict(changes.versions) == {}

    def test_items_outside_a_category_are_ignored(self) -> None:
        changes = _changes(Changelog.from_text("## unreleased\n\n- stray\n\n### Bug fixes\n\n- kept\n"))
        assert changes.total_count == 1

    def test_category_lookup_is_loose(self) -> None:
        changes = _changes(Changelog.from_text("## unreleased\n\n### Breaking Changes\n\n- x\n"))
        assert changes.entries("unreleased", ChangeType.BREAKING_CHANGES) == ("x",)


class TestChangelogFile:
    def test_missing_file_has_no_changes(self, tmp_path: Path) -> None:
        changes = _changes(Changelog(tmp_path / "CHANGELOG.md"))
        assert changes.total_count == 0

    def test_file_is_read_once(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.write_text("## unreleased\n\n### Bug fixes\n\n- a\n", encoding="utf-8")
        changelog = Changelog(path)

        assert _changes(changelog).total_count == 1
        path.write_text("## unreleased\n\n### Bug fixes\n\n- a\n- b\n", encoding="utf-8")
        assert _changes(changelog).total_count == 1

    def test_unreadable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "CHANGELOG.md"
        path.mkdir()

        result = Changelog(path).get_changes()

        assert isinstance(result, Err)
        assert result.error.kind == "changelog_failed"
