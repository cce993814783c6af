"""Typed configuration loading and access.

The workspace config lives in `pubkit.toml` at the repository root. Every
key is optional; missing keys fall back to the defaults below.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "Config",
    "ConfigError",
    "PathsConfig",
    "PublishConfig",
    "load_config",
    "load_config_or_default",
]

DEFAULT_RELEASE_BRANCH = "main"
DEFAULT_NATIVE_DIRECTORIES = ("ios", "android")
DEFAULT_CHECKPOINT_TTL_MINUTES = 30
DEFAULT_PRERELEASE_ID = "rc"
DEFAULT_RANGE_PREFIX = "~"
DEFAULT_REGISTRY_WORKERS = 8

DEFAULT_PACKAGES_DIR = "packages"
DEFAULT_BUNDLED_MANIFEST = "packages/expo/bundledNativeModules.json"
DEFAULT_CHECKPOINT_PATH = ".pubkit/publish-packages.checkpoint.json"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Release decision and pipeline tuning."""

    release_branch: str = DEFAULT_RELEASE_BRANCH
    native_directories: tuple[str, ...] = DEFAULT_NATIVE_DIRECTORIES
    checkpoint_ttl_minutes: int = DEFAULT_CHECKPOINT_TTL_MINUTES
    default_prerelease_id: str = DEFAULT_PRERELEASE_ID
    range_prefix: str = DEFAULT_RANGE_PREFIX
    registry_workers: int = DEFAULT_REGISTRY_WORKERS


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Paths relative to the workspace root."""

    packages: str = DEFAULT_PACKAGES_DIR
    bundled_manifest: str = DEFAULT_BUNDLED_MANIFEST
    checkpoint: str = DEFAULT_CHECKPOINT_PATH


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    publish: PublishConfig = field(default_factory=PublishConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        publish: StrDict = get_table(data, "publish") or {}
        paths: StrDict = get_table(data, "paths") or {}

        native = get_str_list(publish, "native_directories")
        ttl = get_int(publish, "checkpoint_ttl_minutes")
        workers = get_int(publish, "registry_workers")
        if ttl is not None and ttl <= 0:
            raise ValueError("publish.checkpoint_ttl_minutes must be positive")
        if workers is not None and workers <= 0:
            raise ValueError("publish.registry_workers must be positive")

        return cls(
            publish=PublishConfig(
                release_branch=get_str(publish, "release_branch") or DEFAULT_RELEASE_BRANCH,
                native_directories=(
                    tuple(d.strip("/") for d in native)
                    if native is not None
                    else DEFAULT_NATIVE_DIRECTORIES
                ),
                checkpoint_ttl_minutes=ttl or DEFAULT_CHECKPOINT_TTL_MINUTES,
                default_prerelease_id=(
                    get_str(publish, "default_prerelease_id") or DEFAULT_PRERELEASE_ID
                ),
                # An empty prefix pins exact versions, so only a missing key defaults.
                range_prefix=(
                    publish["range_prefix"]
                    if isinstance(publish.get("range_prefix"), str)
                    else DEFAULT_RANGE_PREFIX
                ),
                registry_workers=workers or DEFAULT_REGISTRY_WORKERS,
            ),
            paths=PathsConfig(
                packages=get_str(paths, "packages") or DEFAULT_PACKAGES_DIR,
                bundled_manifest=get_str(paths, "bundled_manifest") or DEFAULT_BUNDLED_MANIFEST,
                checkpoint=get_str(paths, "checkpoint") or DEFAULT_CHECKPOINT_PATH,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to pubkit.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the defaults."""
    if not path.exists():
        return Ok(Config())
    return load_config(path)
