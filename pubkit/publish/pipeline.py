"""Phase pipeline state machine.

States are `Pending(i)`, `Failed(i)` and `Done`. Running `Pending(i)`
executes phase i over the whole fabric store; success saves progress
(next index i+1) and advances, a failure stops the machine at `Failed(i)`
without touching the last saved progress.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from pubkit.core.result import Err, Ok, Result
from pubkit.publish.errors import PublishError

C = TypeVar("C")

PhaseRun = Callable[[C], Result[None, PublishError]]
SaveProgress = Callable[[int], Result[object, PublishError]]


@dataclass(frozen=True, slots=True)
class Phase[C]:
    name: str
    run: PhaseRun[C]
    implemented: bool = True


@dataclass(frozen=True, slots=True)
class Pending:
    index: int


@dataclass(frozen=True, slots=True)
class Failed:
    index: int
    error: PublishError


@dataclass(frozen=True, slots=True)
class Done:
    pass


PipelineState = Pending | Failed | Done

DONE = Done()


def not_implemented[C](ctx: C) -> Result[None, PublishError]:
    """Placeholder body for phases kept only to hold their index."""
    return Ok(None)


def _run_phase[C](phase: Phase[C], ctx: C) -> Result[None, PublishError]:
    try:
        return phase.run(ctx)
    except Exception as e:
        return Err(
            PublishError(
                kind="phase_failed",
                message=f"{type(e).__name__}: {e}",
                hint=traceback.format_exc(),
            )
        )


def step[C](
    state: Pending,
    *,
    phases: Sequence[Phase[C]],
    ctx: C,
    save_progress: SaveProgress,
) -> PipelineState:
    """Execute one pending phase and return the next state."""
    if state.index >= len(phases):
        return DONE

    outcome = _run_phase(phases[state.index], ctx)
    if isinstance(outcome, Err):
        return Failed(index=state.index, error=outcome.error)

    next_index = state.index + 1
    saved = save_progress(next_index)
    if isinstance(saved, Err):
        return Failed(index=state.index, error=saved.error)

    if next_index >= len(phases):
        return DONE
    return Pending(index=next_index)


def run_pipeline[C](
    *,
    phases: Sequence[Phase[C]],
    ctx: C,
    start_index: int = 0,
    save_progress: SaveProgress,
    on_phase: Callable[[int, Phase[C]], None] | None = None,
) -> Done | Failed:
    """Run phases from start_index until done or the first failure."""
    if start_index < 0 or start_index > len(phases):
        return Failed(
            index=start_index,
            error=PublishError(
                kind="invalid_input",
                message=f"phase index {start_index} out of range (0..{len(phases)})",
            ),
        )

    current: PipelineState = Pending(index=start_index) if start_index < len(phases) else DONE
    while isinstance(current, Pending):
        if on_phase is not None:
            on_phase(current.index, phases[current.index])
        current = step(current, phases=phases, ctx=ctx, save_progress=save_progress)
    return current
