"""Changelog model.

A package changelog is a markdown outline:

    # Changelog

    ## unreleased

    ### 🛠 Breaking changes

    - Removed `foo`. ([#123](...) by [@someone](...))

    ## 1.2.0 — 2020-05-01
    ...

Level-2 headings open a version, level-3 headings open a category inside it
and list items below a category are its entries. Only headings and list
items matter, so the lexer below recognizes just those (plus fenced code,
which it skips) instead of implementing full markdown.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from pubkit.core.result import Err, Ok, Result
from pubkit.publish.errors import PublishError
from pubkit.publish.model import UNRELEASED_VERSION, ChangelogChanges

VERSION_HEADING_DEPTH = 2
CATEGORY_HEADING_DEPTH = 3

_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_LIST_ITEM_RE = re.compile(r"^(\s*)(?:[-*+]|\d{1,9}[.)])(?:[ \t]+(.*))?$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")


@dataclass(frozen=True, slots=True)
class Heading:
    depth: int
    text: str


@dataclass(frozen=True, slots=True)
class ListItemStart:
    pass


@dataclass(frozen=True, slots=True)
class Text:
    text: str


@dataclass(frozen=True, slots=True)
class ListItemEnd:
    pass


Token = Heading | ListItemStart | Text | ListItemEnd


def lex(document: str) -> list[Token]:
    """Split a changelog document into headings and list items.

    A list item spans its marker line plus following lines indented deeper
    than the marker. Each item yields ListItemStart, Text, ListItemEnd.
    """
    tokens: list[Token] = []
    item_lines: list[str] | None = None
    item_indent = 0
    fence: str | None = None

    def close_item() -> None:
        nonlocal item_lines
        if item_lines is not None:
            tokens.append(ListItemStart())
            tokens.append(Text(" ".join(item_lines).strip()))
            tokens.append(ListItemEnd())
            item_lines = None

    for line in document.splitlines():
        fence_match = _FENCE_RE.match(line)
        if fence is not None:
            if fence_match and fence_match.group(1)[0] == fence[0] and len(
                fence_match.group(1)
            ) >= len(fence):
                fence = None
            continue
        if fence_match:
            close_item()
            fence = fence_match.group(1)
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            close_item()
            tokens.append(Heading(depth=len(heading.group(1)), text=(heading.group(2) or "").strip()))
            continue

        item = _LIST_ITEM_RE.match(line)
        if item:
            close_item()
            item_indent = len(item.group(1).expandtabs(4))
            item_lines = [(item.group(2) or "").strip()]
            continue

        if item_lines is not None:
            if not line.strip():
                continue
            indent = len(line) - len(line.lstrip())
            if indent > item_indent:
                item_lines.append(line.strip())
                continue
            close_item()

    close_item()
    return tokens


class Changelog:
    """A package changelog, lexed lazily and at most once per run."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._tokens: list[Token] | None = None

    @classmethod
    def from_text(cls, document: str, *, path: Path | None = None) -> Changelog:
        changelog = cls(path or Path("CHANGELOG.md"))
        changelog._tokens = lex(document)
        return changelog

    def tokens(self) -> Result[list[Token], PublishError]:
        """Lex the document on first use; a missing file has no entries."""
        if self._tokens is None:
            try:
                text = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                text = ""
            except (OSError, UnicodeDecodeError) as e:
                return Err(
                    PublishError(
                        kind="changelog_failed",
                        message=f"failed to read changelog: {e}",
                        hint=str(self.path),
                    )
                )
            self._tokens = lex(text)
        return Ok(self._tokens)

    def get_changes(
        self,
        from_version: str | None = None,
        to_version: str = UNRELEASED_VERSION,
    ) -> Result[ChangelogChanges, PublishError]:
        """Collect entries from to_version down to (excluding) from_version.

        Without from_version only the to_version section is returned, and
        nothing at all if the first version heading is not to_version.
        """
        tokens = self.tokens()
        if isinstance(tokens, Err):
            return tokens

        versions: dict[str, dict[str, list[str]]] = {}
        total = 0
        current_version: str | None = None
        current_section: str | None = None

        for token in tokens.value:
            if isinstance(token, Heading):
                if token.depth == VERSION_HEADING_DEPTH:
                    if token.text != to_version and (
                        not from_version or token.text == from_version
                    ):
                        # Everything requested has been collected.
                        break
                    current_version = token.text
                    current_section = None
                    versions.setdefault(current_version, {})
                elif current_version is not None and token.depth == CATEGORY_HEADING_DEPTH:
                    current_section = token.text
                    versions[current_version].setdefault(current_section, [])
                continue

            if (
                isinstance(token, Text)
                and token.text
                and current_version is not None
                and current_section is not None
            ):
                total += 1
                versions[current_version][current_section].append(token.text)

        return Ok(
            ChangelogChanges(
                total_count=total,
                versions={
                    version: {category: tuple(items) for category, items in sections.items()}
                    for version, sections in versions.items()
                },
            )
        )


def load_from(path: Path) -> Changelog:
    return Changelog(path)
