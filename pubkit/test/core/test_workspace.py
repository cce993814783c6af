"""Tests for pubkit.core.workspace module."""

from __future__ import annotations

from pathlib import Path

import pytest

from pubkit.core.config import Config, PathsConfig
from pubkit.core.result import Err, Ok
from pubkit.core.workspace import (
    ROOT_ENV_VAR,
    Workspace,
    detect_workspace,
    find_workspace_upward,
    is_workspace_root,
)


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    (tmp_path / "pubkit.toml").write_text("", encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def _no_root_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ROOT_ENV_VAR, raising=False)


class TestWorkspace:
    def test_paths(self, temp_workspace: Path) -> None:
        ws = Workspace(root=temp_workspace)
        config = Config()

        assert ws.config_path == temp_workspace / "pubkit.toml"
        assert ws.state_dir == temp_workspace / ".pubkit"
        assert ws.packages_dir(config) == temp_workspace / "packages"
        assert ws.bundled_manifest_path(config) == (
            temp_workspace / "packages" / "expo" / "bundledNativeModules.json"
        )
        assert ws.checkpoint_path(config).parent == ws.state_dir

    def test_paths_follow_config(self, temp_workspace: Path) -> None:
        ws = Workspace(root=temp_workspace)
        config = Config(paths=PathsConfig(packages="libs", checkpoint="state.json"))

        assert ws.packages_dir(config) == temp_workspace / "libs"
        assert ws.checkpoint_path(config) == temp_workspace / "state.json"


class TestDetection:
    def test_is_workspace_root(self, temp_workspace: Path, tmp_path_factory: pytest.TempPathFactory) -> None:
        assert is_workspace_root(temp_workspace)
        assert not is_workspace_root(tmp_path_factory.mktemp("other"))

    def test_find_upward(self, temp_workspace: Path) -> None:
        nested = temp_workspace / "packages" / "a" / "src"
        nested.mkdir(parents=True)
        assert find_workspace_upward(nested) == temp_workspace

    def test_detect_from_start_dir(self, temp_workspace: Path) -> None:
        nested = temp_workspace / "packages"
        nested.mkdir()

        result = detect_workspace(start_dir=nested)

        assert isinstance(result, Ok)
        assert result.value.root == temp_workspace.resolve()

    def test_env_var_wins(
        self, temp_workspace: Path, tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(ROOT_ENV_VAR, str(temp_workspace))
        elsewhere = tmp_path_factory.mktemp("elsewhere")

        result = detect_workspace(start_dir=elsewhere)

        assert isinstance(result, Ok)
        assert result.value.root == temp_workspace.resolve()

    def test_invalid_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path / "nope"))

        result = detect_workspace(start_dir=tmp_path)

        assert isinstance(result, Err)
        assert ROOT_ENV_VAR in result.error.message

    def test_not_found(self, tmp_path: Path) -> None:
        result = detect_workspace(start_dir=tmp_path)

        assert isinstance(result, Err)
        assert "pubkit.toml" in result.error.message
