from __future__ import annotations

import copy
from collections.abc import Mapping
from pathlib import Path

from pubkit.core.result import Err, Ok, Result
from pubkit.core.structured import StrDict
from pubkit.platform.files import atomic_write_json, read_json_object
from pubkit.publish.errors import PublishError


def write_manifest_fields(
    *,
    path: Path,
    manifest: Mapping[str, object],
    updates: Mapping[str, str],
) -> Result[StrDict, PublishError]:
    """Write a copy of manifest with updates applied; key order is kept.

    The in-memory manifest is never mutated.
    """
    data: StrDict = copy.deepcopy(dict(manifest))
    for key, value in updates.items():
        data[key] = value

    try:
        atomic_write_json(path, data)
    except OSError as e:
        return Err(
            PublishError(
                kind="manifest_failed",
                message=f"failed to write {path.name}: {e}",
                hint=str(path),
            )
        )
    return Ok(data)


def update_version_ranges(
    *,
    path: Path,
    ranges: Mapping[str, str],
) -> Result[StrDict, PublishError]:
    """Set `{package: range}` entries in the bundled compatibility manifest."""
    try:
        data = read_json_object(path)
    except FileNotFoundError:
        data = {}
    except (OSError, ValueError) as e:
        return Err(
            PublishError(
                kind="manifest_failed",
                message=f"failed to read {path.name}: {e}",
                hint=str(path),
            )
        )

    data.update(ranges)

    try:
        atomic_write_json(path, data)
    except OSError as e:
        return Err(
            PublishError(
                kind="manifest_failed",
                message=f"failed to write {path.name}: {e}",
                hint=str(path),
            )
        )
    return Ok(data)
