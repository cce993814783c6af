"""Filesystem helpers."""

from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path

from pubkit.core.structured import StrDict, as_str_dict

__all__ = ["atomic_write_json", "atomic_write_text", "read_json_object"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace.

    An existing file keeps its permission bits.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = stat.S_IMODE(path.stat().st_mode) if path.exists() else None

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def atomic_write_json(path: Path, data: object) -> None:
    """Write JSON with 2-space indent and a trailing newline, atomically."""
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json_object(path: Path) -> StrDict:
    """Read a JSON file whose root must be an object.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid JSON or not an object
            (json.JSONDecodeError is a ValueError).
    """
    obj: object = json.loads(path.read_text(encoding="utf-8"))
    data = as_str_dict(obj)
    if data is None:
        raise ValueError(f"{path.name}: JSON root must be an object")
    return data
