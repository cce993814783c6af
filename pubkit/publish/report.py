from __future__ import annotations

from collections.abc import Iterable

from pubkit.git.repository import CommitRecord, FileChangeRecord
from pubkit.output.console import ConsoleProtocol, Style
from pubkit.publish.fabrics import Fabric
from pubkit.publish.model import UNRELEASED_VERSION

_BULLET = "   - "
_SECTION = " > "


def format_commit(commit: CommitRecord) -> str:
    return f"{commit.short_hash} {commit.title} ({commit.author_name}, {commit.relative_date})"


def format_file_change(change: FileChangeRecord) -> str:
    return f"{change.status.value:<9} {change.relative_path}"


def strip_non_ascii(text: str) -> str:
    return "".join(ch for ch in text if ch.isascii()).strip()


def print_package_summary(console: ConsoleProtocol, fabric: Fabric) -> None:
    """What changed in one package since its current version, and the suggested bump."""
    pkg = fabric.pkg
    state = fabric.state

    console.print(f"{pkg.name} has some changes since {pkg.version}", Style.ACCENT)

    console.print(f"{_SECTION}New commits:", Style.BOLD)
    for commit in state.commit_log or ():
        console.print(f"{_BULLET}{format_commit(commit)}")

    changes = state.changelog_changes
    unreleased = changes.versions.get(UNRELEASED_VERSION, {}) if changes is not None else {}
    for category, entries in unreleased.items():
        if not entries:
            continue
        console.print(f"{_SECTION}{strip_non_ascii(category)}:", Style.BOLD)
        for entry in entries:
            console.print(f"{_BULLET}{entry}")

    if state.file_log:
        console.print(f"{_SECTION}File changes:", Style.BOLD)
        for change in state.file_log:
            console.print(f"{_BULLET}{format_file_change(change)}")

    if state.release_type is not None and state.release_version is not None:
        console.print(
            f"{_SECTION}Suggested {state.release_type} upgrade from {pkg.version} "
            f"to {state.release_version}",
            Style.BOLD,
        )
    console.newline()


def print_unpublished(console: ConsoleProtocol, fabrics: Iterable[Fabric]) -> None:
    unpublished = [f for f in fabrics if f.state.has_unpublished_changes]
    if not unpublished:
        console.success("All packages are up-to-date.")
        return

    console.header("Unpublished packages")
    for fabric in unpublished:
        print_package_summary(console, fabric)
