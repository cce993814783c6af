from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from pubkit.platform.files import atomic_write_json, atomic_write_text, read_json_object


def test_atomic_write_text_creates_parents(tmp_path: Path) -> None:
    path = tmp_path / "a" / "b" / "out.txt"
    atomic_write_text(path, "hello")
    assert path.read_text(encoding="utf-8") == "hello"


def test_atomic_write_text_leaves_no_temp_files(tmp_path: Path) -> None:
    path = tmp_path / "out.txt"
    atomic_write_text(path, "one")
    atomic_write_text(path, "two")
    assert path.read_text(encoding="utf-8") == "two"
    assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.parametrize("mode", [0o644, 0o664, 0o600])
def test_atomic_write_text_keeps_permissions(tmp_path: Path, mode: int) -> None:
    path = tmp_path / "package.json"
    path.write_text("{}", encoding="utf-8")
    path.chmod(mode)

    atomic_write_text(path, '{"version": "2.0.0"}')

    assert stat.S_IMODE(path.stat().st_mode) == mode
    assert path.read_text(encoding="utf-8") == '{"version": "2.0.0"}'


def test_atomic_write_keeps_old_content_when_replace_fails(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("old", encoding="utf-8")

    with patch("pubkit.platform.files.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            atomic_write_text(path, "new")

    assert path.read_text(encoding="utf-8") == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


def test_atomic_write_json_format(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    atomic_write_json(path, {"name": "é", "version": "1.0.0"})

    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert '  "name": "é"' in text
    assert json.loads(text) == {"name": "é", "version": "1.0.0"}


def test_read_json_object(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text('{"a": 1}', encoding="utf-8")
    assert read_json_object(path) == {"a": 1}


def test_read_json_object_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="object"):
        read_json_object(path)


def test_read_json_object_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_json_object(tmp_path / "missing.json")
