"""The publish phases, in execution order.

Indices are part of the checkpoint format. Phases that do nothing yet keep
their slot so that saved progress stays meaningful once they do.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pubkit.core.config import Config
from pubkit.core.result import Err, Ok, Result
from pubkit.output.console import ConsoleProtocol, Style
from pubkit.publish.checkpoint import CheckpointOptions
from pubkit.publish.decision import decide
from pubkit.publish.errors import PublishError
from pubkit.publish.fabrics import FabricStore
from pubkit.publish.history import HistorySource, changes_since_publish
from pubkit.publish.manifest import update_version_ranges, write_manifest_fields
from pubkit.publish.pipeline import Phase, not_implemented
from pubkit.publish.report import print_package_summary

Confirm = Callable[[str, bool], bool]


@dataclass(frozen=True, slots=True)
class PublishOptions:
    """Options of one `pubkit publish` invocation."""

    list_unpublished: bool = False
    prerelease: str | None = None
    scope: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    retry: bool = False
    skip_repo_checks: bool = False
    dry: bool = False

    def checkpoint_options(self) -> CheckpointOptions:
        return CheckpointOptions(scope=self.scope, exclude=self.exclude, dry=self.dry)


@dataclass(slots=True)
class PublishContext:
    store: FabricStore
    repo: HistorySource
    console: ConsoleProtocol
    confirm: Confirm
    options: PublishOptions
    config: Config
    bundled_manifest_path: Path


def check_integrity(ctx: PublishContext) -> Result[None, PublishError]:
    """A package is integral when its gitHead matches the published one."""
    for fabric in ctx.store:
        snapshot = fabric.registry_snapshot
        integral = snapshot is None or fabric.pkg.git_head == snapshot.git_head
        ctx.store.update_state(fabric.name, integral=integral)
        if not integral and snapshot is not None:
            ctx.console.warning(
                f"integrity check failed for {fabric.name}, git heads mismatch "
                f"(published: {snapshot.git_head}, in the repo: {fabric.pkg.git_head})"
            )
    return Ok(None)


def find_unpublished(ctx: PublishContext) -> Result[None, PublishError]:
    """Collect history and changelog entries, then suggest a version for each package."""
    for fabric in ctx.store:
        pkg = fabric.pkg
        changes = fabric.changelog.get_changes()
        if isinstance(changes, Err):
            return changes
        history = changes_since_publish(ctx.repo, pkg.root, last_published=pkg.git_head)
        if isinstance(history, Err):
            return history

        commits = history.value.commits
        files = history.value.files
        ctx.store.update_state(
            fabric.name,
            commit_log=commits,
            file_log=files,
            changelog_changes=changes.value,
            has_unpublished_changes=len(commits) > 0 or changes.value.total_count > 0,
        )

        decision = decide(
            pkg.version,
            files,
            changes.value,
            ctx.options.prerelease,
            native_directories=ctx.config.publish.native_directories,
        )
        if isinstance(decision, Err):
            ctx.console.warning(f"no release suggestion for {pkg.name}: {decision.error.message}")
            continue
        ctx.store.update_state(
            fabric.name,
            release_type=decision.value.release_type,
            release_version=decision.value.next_version,
        )
    return Ok(None)


def choose_to_publish(ctx: PublishContext) -> Result[None, PublishError]:
    unpublished = ctx.store.unpublished()
    candidates = {f.name for f in unpublished}
    for fabric in ctx.store:
        if fabric.name not in candidates:
            ctx.store.update_state(fabric.name, is_selected_to_publish=False)
    if not unpublished:
        ctx.console.info("Nothing to publish.")
        return Ok(None)

    ctx.console.header("Choosing packages to publish")
    for fabric in unpublished:
        print_package_summary(ctx.console, fabric)
        version = fabric.state.release_version
        if version is None:
            ctx.console.warning(f"skipping {fabric.name}: no release version could be suggested")
            ctx.store.update_state(fabric.name, is_selected_to_publish=False)
            continue
        selected = ctx.confirm(f"Publish {fabric.name} as version {version}?", True)
        ctx.store.update_state(fabric.name, is_selected_to_publish=selected)
    return Ok(None)


def update_versions(ctx: PublishContext) -> Result[None, PublishError]:
    """Write the new version and gitHead into each selected package.json."""
    for fabric in ctx.store.selected():
        version = fabric.state.release_version
        if version is None:
            continue
        commits = fabric.state.commit_log or ()
        git_head = commits[0].hash if commits else fabric.pkg.git_head

        updates = {"version": version}
        if git_head:
            updates["gitHead"] = git_head

        ctx.console.print(f"Updating package.json in {fabric.name}", Style.ACCENT)
        for key, value in updates.items():
            ctx.console.print(f" > {key}: {value}")
        written = write_manifest_fields(
            path=fabric.pkg.manifest_path,
            manifest=fabric.pkg.manifest,
            updates=updates,
        )
        if isinstance(written, Err):
            return written
    return Ok(None)


def update_bundled_manifest(ctx: PublishContext) -> Result[None, PublishError]:
    """Record compatible version ranges of the selected packages."""
    prefix = ctx.config.publish.range_prefix
    ranges = {
        f.name: f"{prefix}{f.state.release_version}"
        for f in ctx.store.selected()
        if f.state.release_version is not None
    }
    if not ranges:
        return Ok(None)

    ctx.console.print(f"Updating {ctx.bundled_manifest_path.name}", Style.ACCENT)
    for name, version_range in ranges.items():
        ctx.console.print(f" > {name}: {version_range}")
    written = update_version_ranges(path=ctx.bundled_manifest_path, ranges=ranges)
    if isinstance(written, Err):
        return written
    return Ok(None)


PHASES: tuple[Phase[PublishContext], ...] = (
    Phase("check_integrity", check_integrity),
    Phase("find_unpublished", find_unpublished),
    Phase("find_dependents", not_implemented, implemented=False),
    Phase("choose_to_publish", choose_to_publish),
    Phase("update_versions", update_versions),
    Phase("update_bundled_manifest", update_bundled_manifest),
    Phase("update_workspace_dependencies", not_implemented, implemented=False),
    Phase("commit_changes", not_implemented, implemented=False),
    Phase("publish_packages", not_implemented, implemented=False),
)

PHASE_NAMES: tuple[str, ...] = tuple(p.name for p in PHASES)

# Phases from here on write to the working tree.
FIRST_WRITING_PHASE = PHASE_NAMES.index("update_versions")
