from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

WritePackage = Callable[..., Path]


@pytest.fixture
def write_package(tmp_path: Path) -> WritePackage:
    """Create packages/<dir>/package.json (and optionally CHANGELOG.md)."""

    def write(
        name: str,
        version: str = "1.0.0",
        *,
        directory: str | None = None,
        changelog: str | None = None,
        **fields: object,
    ) -> Path:
        root = tmp_path / "packages" / (directory or name.replace("/", "-").lstrip("@"))
        root.mkdir(parents=True, exist_ok=True)
        manifest = {"name": name, "version": version, **fields}
        (root / "package.json").write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
        if changelog is not None:
            (root / "CHANGELOG.md").write_text(changelog, encoding="utf-8")
        return root

    return write
