"""Checkpoint of publish pipeline progress.

After every successful phase the whole run state (HEAD, next phase, the
options that shape package selection, every package state) is written to
one JSON file. A later run against the same HEAD, with the same options and
within the expiration window, continues from there.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pubkit.core.result import Err, Ok, Result
from pubkit.core.structured import StrDict, as_str_dict, get_int, get_str, get_table
from pubkit.platform.files import atomic_write_json
from pubkit.publish.errors import PublishError
from pubkit.publish.fabrics import FabricStore

CHECKPOINT_SCHEMA = 1
DEFAULT_TTL = timedelta(minutes=30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class CheckpointOptions:
    """The run options a checkpoint is bound to."""

    scope: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    dry: bool = False

    def to_dict(self) -> StrDict:
        return {"scope": list(self.scope), "exclude": list(self.exclude), "dry": self.dry}


def canonical_options(options: Mapping[str, object]) -> str:
    return json.dumps(options, sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class Checkpoint:
    timestamp: datetime
    head: str
    phase_index: int
    options: StrDict
    state: StrDict = field(default_factory=dict)

    def to_dict(self) -> StrDict:
        return {
            "schema": CHECKPOINT_SCHEMA,
            "timestamp": self.timestamp.isoformat(),
            "head": self.head,
            "phase_index": self.phase_index,
            "options": self.options,
            "state": self.state,
        }


def parse_checkpoint(obj: object) -> Checkpoint | None:
    """Checkpoint from decoded JSON; None if the payload is not one."""
    data = as_str_dict(obj)
    if data is None or get_int(data, "schema") != CHECKPOINT_SCHEMA:
        return None

    head = get_str(data, "head")
    phase_index = get_int(data, "phase_index")
    options = get_table(data, "options")
    state = get_table(data, "state")
    raw_timestamp = get_str(data, "timestamp")
    if (
        head is None
        or phase_index is None
        or phase_index < 0
        or options is None
        or state is None
        or raw_timestamp is None
    ):
        return None

    try:
        timestamp = datetime.fromisoformat(raw_timestamp)
    except ValueError:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)

    return Checkpoint(
        timestamp=timestamp,
        head=head,
        phase_index=phase_index,
        options=options,
        state=state,
    )


@dataclass(frozen=True, slots=True)
class Inspection:
    """A checkpoint found on disk and why it cannot be used, if it cannot."""

    checkpoint: Checkpoint | None
    reason: str | None

    @property
    def is_valid(self) -> bool:
        return self.checkpoint is not None and self.reason is None


class CheckpointManager:
    """Reads and writes the checkpoint file at one fixed path."""

    def __init__(self, path: Path, *, ttl: timedelta = DEFAULT_TTL, clock: Clock = utc_now) -> None:
        self.path = path
        self.ttl = ttl
        self._clock = clock

    def save(
        self,
        *,
        head: str,
        phase_index: int,
        store: FabricStore,
        options: CheckpointOptions,
    ) -> Result[Checkpoint, PublishError]:
        """Write the checkpoint synchronously, replacing the file atomically."""
        checkpoint = Checkpoint(
            timestamp=self._clock(),
            head=head,
            phase_index=phase_index,
            options=options.to_dict(),
            state=dict(store.snapshot_states()),
        )
        try:
            atomic_write_json(self.path, checkpoint.to_dict())
        except OSError as e:
            return Err(
                PublishError(
                    kind="checkpoint_failed",
                    message=f"failed to write checkpoint: {e}",
                    hint=str(self.path),
                )
            )
        return Ok(checkpoint)

    def load(self) -> Result[Checkpoint | None, PublishError]:
        """Checkpoint on disk, Ok(None) if there is none."""
        if not self.path.exists():
            return Ok(None)
        try:
            obj: object = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            return Err(
                PublishError(
                    kind="checkpoint_failed",
                    message=f"failed to load checkpoint: {e}",
                    hint=str(self.path),
                )
            )

        checkpoint = parse_checkpoint(obj)
        if checkpoint is None:
            return Err(
                PublishError(
                    kind="checkpoint_failed",
                    message="unsupported or incomplete checkpoint file",
                    hint=str(self.path),
                )
            )
        return Ok(checkpoint)

    def is_expired(self, checkpoint: Checkpoint) -> bool:
        return self._clock() - checkpoint.timestamp > self.ttl

    def invalid_reason(
        self, checkpoint: Checkpoint, *, head: str, options: CheckpointOptions
    ) -> str | None:
        """Why checkpoint cannot be resumed from, None when it can."""
        if checkpoint.head != head:
            return f"saved at {checkpoint.head[:8]}, HEAD is now {head[:8]}"
        if self.is_expired(checkpoint):
            return f"older than {int(self.ttl.total_seconds() // 60)} minutes"
        if canonical_options(checkpoint.options) != canonical_options(options.to_dict()):
            return "saved with different --scope/--exclude/--dry options"
        return None

    def inspect(self, *, head: str, options: CheckpointOptions) -> Inspection:
        loaded = self.load()
        if isinstance(loaded, Err):
            return Inspection(checkpoint=None, reason=loaded.error.message)
        if loaded.value is None:
            return Inspection(checkpoint=None, reason=None)
        return Inspection(
            checkpoint=loaded.value,
            reason=self.invalid_reason(loaded.value, head=head, options=options),
        )

    def try_restore(self, *, head: str, options: CheckpointOptions) -> Checkpoint | None:
        """The checkpoint if it is still valid; invalid files are left in place."""
        inspection = self.inspect(head=head, options=options)
        return inspection.checkpoint if inspection.is_valid else None

    def clear(self) -> Result[None, PublishError]:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            return Err(
                PublishError(
                    kind="checkpoint_failed",
                    message=f"failed to delete checkpoint: {e}",
                    hint=str(self.path),
                )
            )
        return Ok(None)
