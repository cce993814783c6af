from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from pubkit.core.result import Err, Ok
from pubkit.publish.discovery import (
    discover_packages,
    filter_packages,
    load_package,
    parse_name_list,
)
from pubkit.publish.model import Package

WritePackage = Callable[..., Path]


def test_parse_name_list() -> None:
    assert parse_name_list(None) == ()
    assert parse_name_list("") == ()
    assert parse_name_list("a, b,,c ") == ("a", "b", "c")


def test_load_package(write_package: WritePackage) -> None:
    root = write_package("expo-camera", "9.0.0", gitHead="abc")

    result = load_package(root)

    assert isinstance(result, Ok)
    pkg = result.value
    assert pkg is not None
    assert pkg.name == "expo-camera"
    assert pkg.version == "9.0.0"
    assert pkg.git_head == "abc"
    assert pkg.changelog_path == root / "CHANGELOG.md"
    assert pkg.manifest_path == root / "package.json"


def test_directory_without_manifest_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    assert load_package(tmp_path / "empty") == Ok(None)


def test_invalid_manifest(tmp_path: Path) -> None:
    root = tmp_path / "broken"
    root.mkdir()
    (root / "package.json").write_text("{not json", encoding="utf-8")

    result = load_package(root)

    assert isinstance(result, Err)
    assert result.error.kind == "manifest_failed"


def test_discover_sorts_by_name(tmp_path: Path, write_package: WritePackage) -> None:
    write_package("zeta", directory="a-dir")
    write_package("alpha", directory="z-dir")
    write_package("@scope/mid", directory="m-dir")

    result = discover_packages(tmp_path / "packages")

    assert isinstance(result, Ok)
    assert [p.name for p in result.value] == ["@scope/mid", "alpha", "zeta"]


def test_discover_missing_directory(tmp_path: Path) -> None:
    result = discover_packages(tmp_path / "nope")
    assert isinstance(result, Err)
    assert result.error.kind == "invalid_input"


def _pkg(name: str, **manifest: object) -> Package:
    return Package(
        name=name,
        version="1.0.0",
        root=Path(name),
        manifest={"name": name, **manifest},
        changelog_path=Path(name) / "CHANGELOG.md",
    )


def test_filter_drops_private_packages() -> None:
    packages = [_pkg("a"), _pkg("b", private=True)]
    assert [p.name for p in filter_packages(packages)] == ["a"]


def test_filter_scope_and_exclude() -> None:
    packages = [_pkg("a"), _pkg("b"), _pkg("c")]

    assert [p.name for p in filter_packages(packages, scope=["a", "b"])] == ["a", "b"]
    assert [p.name for p in filter_packages(packages, exclude=["b"])] == ["a", "c"]
    assert [p.name for p in filter_packages(packages, scope=["a", "b"], exclude=["b"])] == ["a"]
