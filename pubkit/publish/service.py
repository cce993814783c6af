from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Protocol

from pubkit.core.config import Config
from pubkit.core.result import Err, Ok, Result
from pubkit.core.workspace import Workspace
from pubkit.git.repository import GitError
from pubkit.output.console import ConsoleProtocol, Style
from pubkit.publish.checkpoint import Checkpoint, CheckpointManager, Clock, utc_now
from pubkit.publish.discovery import discover_packages, filter_packages
from pubkit.publish.errors import PublishError
from pubkit.publish.fabrics import FabricStore
from pubkit.publish.history import HistorySource
from pubkit.publish.phases import (
    FIRST_WRITING_PHASE,
    PHASES,
    Confirm,
    PublishContext,
    PublishOptions,
    find_unpublished,
)
from pubkit.publish.pipeline import Done, Failed, Phase, run_pipeline
from pubkit.publish.registry import RegistryClient
from pubkit.publish.report import print_unpublished


class PublishRepository(HistorySource, Protocol):
    """Git queries needed around the pipeline; `Repository` implements it."""

    def current_branch(self) -> str | None: ...

    def head_commit(self) -> Result[str, GitError]: ...

    def has_unstaged_changes(
        self,
        paths: list[str] | None = None,
        *,
        exclude: list[str] | None = None,
    ) -> bool: ...


@dataclass(frozen=True, slots=True)
class PublishOutcome:
    state: Done | Failed
    restored_from: Checkpoint | None = None

    @property
    def ok(self) -> bool:
        return isinstance(self.state, Done)


def checkpoint_manager(
    *, workspace: Workspace, config: Config, clock: Clock = utc_now
) -> CheckpointManager:
    return CheckpointManager(
        workspace.checkpoint_path(config),
        ttl=timedelta(minutes=config.publish.checkpoint_ttl_minutes),
        clock=clock,
    )


def check_branch(
    *,
    repo: PublishRepository,
    console: ConsoleProtocol,
    confirm: Confirm,
    release_branch: str,
) -> Result[None, PublishError]:
    """Release branch, or an explicit go-ahead (default no) to publish from elsewhere."""
    branch = repo.current_branch()
    if branch != release_branch:
        console.warning(f"current branch is {branch or '(detached HEAD)'}, not {release_branch}")
        if not confirm(f"Publish from {branch or 'a detached HEAD'} anyway?", False):
            return Err(
                PublishError(
                    kind="wrong_branch",
                    message=f"not on release branch {release_branch}",
                    hint=f"git checkout {release_branch}",
                )
            )
    return Ok(None)


def check_clean_tree(
    repo: PublishRepository, *, exempt: list[str] | None = None
) -> Result[None, PublishError]:
    """No unstaged changes, apart from exempt paths (relative to the repository root)."""
    if repo.has_unstaged_changes(exclude=exempt):
        return Err(
            PublishError(
                kind="dirty_tree",
                message="repository contains unstaged changes",
                hint="Commit or stash them, or pass --skip-repo-checks",
            )
        )
    return Ok(None)


def head_commit(repo: PublishRepository) -> Result[str, PublishError]:
    head = repo.head_commit()
    if isinstance(head, Err):
        return Err(
            PublishError(
                kind="git_failed",
                message=f"git {head.error.command} failed: {head.error.message}",
            )
        )
    return Ok(head.value)


def prepare_fabrics(
    *,
    packages_dir: Path,
    registry: RegistryClient,
    options: PublishOptions,
    config: Config,
    console: ConsoleProtocol,
) -> Result[FabricStore, PublishError]:
    discovered = discover_packages(packages_dir)
    if isinstance(discovered, Err):
        return discovered

    packages = filter_packages(discovered.value, scope=options.scope, exclude=options.exclude)
    unknown = set(options.scope) - {p.name for p in discovered.value}
    if unknown:
        console.warning(f"unknown packages in --scope: {', '.join(sorted(unknown))}")

    console.print(f"Gathering data about {len(packages)} packages...", Style.DIM)
    store = FabricStore.build(
        packages,
        registry,
        workers=config.publish.registry_workers,
        console=console,
    )
    return Ok(store)


def resolve_checkpoint(
    *,
    manager: CheckpointManager,
    head: str,
    options: PublishOptions,
    console: ConsoleProtocol,
    confirm: Confirm,
) -> Checkpoint | None:
    """Checkpoint to resume from, if any; a stale one is reported and left alone."""
    inspection = manager.inspect(head=head, options=options.checkpoint_options())
    checkpoint = inspection.checkpoint
    if inspection.reason is not None:
        console.warning(f"ignoring checkpoint ({inspection.reason}), starting from scratch")
        return None
    if checkpoint is None:
        return None
    if checkpoint.phase_index > len(PHASES):
        console.warning(f"ignoring checkpoint with unknown phase {checkpoint.phase_index}")
        return None

    if options.retry:
        return checkpoint
    return checkpoint if confirm("Found a valid checkpoint. Would you like to use it?", True) else None


def _repo_relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def rewritten_files(
    *,
    store: FabricStore,
    next_phase: int,
    bundled_manifest_path: Path,
    root: Path,
) -> list[str]:
    """Files a resumed run may already have written, relative to root.

    Manifests are written from `update_versions` on; a run failing inside
    that phase may have rewritten some of them, and writing them again is
    idempotent.
    """
    if next_phase < FIRST_WRITING_PHASE:
        return []
    paths = [f.pkg.manifest_path for f in store.selected()]
    paths.append(bundled_manifest_path)
    return [_repo_relative(p, root) for p in paths]


def list_unpublished(ctx: PublishContext) -> Result[None, PublishError]:
    found = find_unpublished(ctx)
    if isinstance(found, Err):
        return found
    print_unpublished(ctx.console, ctx.store)
    return Ok(None)


def publish_packages(
    *,
    workspace: Workspace,
    config: Config,
    repo: PublishRepository,
    registry: RegistryClient,
    console: ConsoleProtocol,
    confirm: Confirm,
    options: PublishOptions,
    clock: Clock = utc_now,
) -> Result[PublishOutcome, PublishError]:
    """Run the publish pipeline, resuming from a valid checkpoint when allowed.

    Errors raised before the first phase (repository checks, discovery) come
    back as Err and leave any checkpoint untouched. Once phases run, the
    outcome is Done or Failed(i) with the last good checkpoint kept on disk.

    The clean-tree check runs once the checkpoint is resolved: files that
    the restored run has already rewritten do not count as unstaged changes.
    """
    if not options.skip_repo_checks:
        checked = check_branch(
            repo=repo,
            console=console,
            confirm=confirm,
            release_branch=config.publish.release_branch,
        )
        if isinstance(checked, Err):
            return checked

    head = head_commit(repo)
    if isinstance(head, Err):
        return head

    store = prepare_fabrics(
        packages_dir=workspace.packages_dir(config),
        registry=registry,
        options=options,
        config=config,
        console=console,
    )
    if isinstance(store, Err):
        return store

    ctx = PublishContext(
        store=store.value,
        repo=repo,
        console=console,
        confirm=confirm,
        options=options,
        config=config,
        bundled_manifest_path=workspace.bundled_manifest_path(config),
    )

    if options.list_unpublished:
        if not options.skip_repo_checks:
            clean = check_clean_tree(repo)
            if isinstance(clean, Err):
                return clean
        listed = list_unpublished(ctx)
        if isinstance(listed, Err):
            return listed
        return Ok(PublishOutcome(state=Done()))

    manager = checkpoint_manager(workspace=workspace, config=config, clock=clock)
    checkpoint = resolve_checkpoint(
        manager=manager,
        head=head.value,
        options=options,
        console=console,
        confirm=confirm,
    )
    start_index = 0
    exempt: list[str] = []
    if checkpoint is not None:
        store.value.restore_states(checkpoint.state)
        start_index = checkpoint.phase_index
        exempt = rewritten_files(
            store=store.value,
            next_phase=start_index,
            bundled_manifest_path=ctx.bundled_manifest_path,
            root=workspace.root,
        )

    if not options.skip_repo_checks:
        clean = check_clean_tree(repo, exempt=exempt)
        if isinstance(clean, Err):
            return clean

    if checkpoint is not None:
        saved_on = checkpoint.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
        console.info(f"Restoring from checkpoint saved on {saved_on}")

    checkpoint_options = options.checkpoint_options()

    def save_progress(next_index: int) -> Result[Checkpoint, PublishError]:
        return manager.save(
            head=head.value,
            phase_index=next_index,
            store=store.value,
            options=checkpoint_options,
        )

    def announce(index: int, phase: Phase[PublishContext]) -> None:
        if phase.implemented:
            console.print(f"[{index}] {phase.name}", Style.DIM)
        else:
            console.print(f"[{index}] {phase.name} (not implemented yet)", Style.DIM)

    state = run_pipeline(
        phases=PHASES,
        ctx=ctx,
        start_index=start_index,
        save_progress=save_progress,
        on_phase=announce,
    )
    if isinstance(state, Done):
        cleared = manager.clear()
        if isinstance(cleared, Err):
            console.warning(cleared.error.pretty())
    return Ok(PublishOutcome(state=state, restored_from=checkpoint))
