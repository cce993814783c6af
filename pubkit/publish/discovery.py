from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pubkit.core.result import Err, Ok, Result
from pubkit.core.structured import get_str
from pubkit.platform.files import read_json_object
from pubkit.publish.errors import PublishError
from pubkit.publish.model import Package

CHANGELOG_FILE_NAME = "CHANGELOG.md"


def parse_name_list(raw: str | None) -> tuple[str, ...]:
    """Split a comma separated CLI value: "a, b,,c" -> ("a", "b", "c")."""
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_package(root: Path) -> Result[Package | None, PublishError]:
    """Read root/package.json; directories without one are not packages."""
    manifest_path = root / "package.json"
    if not manifest_path.is_file():
        return Ok(None)

    try:
        data = read_json_object(manifest_path)
    except (OSError, ValueError) as e:
        return Err(
            PublishError(
                kind="manifest_failed",
                message=f"failed to read package.json: {e}",
                hint=str(manifest_path),
            )
        )

    name = get_str(data, "name")
    version = get_str(data, "version")
    if name is None or version is None:
        return Ok(None)

    return Ok(
        Package(
            name=name,
            version=version,
            root=root,
            manifest=data,
            changelog_path=root / CHANGELOG_FILE_NAME,
        )
    )


def discover_packages(packages_dir: Path) -> Result[list[Package], PublishError]:
    """All packages directly under packages_dir, sorted by name."""
    if not packages_dir.is_dir():
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"packages directory not found: {packages_dir}",
                hint="Set [paths] packages in pubkit.toml",
            )
        )

    packages: list[Package] = []
    for child in sorted(p for p in packages_dir.iterdir() if p.is_dir()):
        loaded = load_package(child)
        if isinstance(loaded, Err):
            return loaded
        if loaded.value is not None:
            packages.append(loaded.value)

    packages.sort(key=lambda p: p.name)
    return Ok(packages)


def filter_packages(
    packages: Iterable[Package],
    *,
    scope: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> list[Package]:
    """Public packages in scope (all when scope is empty), minus exclusions."""
    in_scope = frozenset(scope)
    excluded = frozenset(exclude)
    return [
        p
        for p in packages
        if not p.is_private and (not in_scope or p.name in in_scope) and p.name not in excluded
    ]
