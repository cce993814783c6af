"""Registry lookups for discovered packages.

The registry is queried through the npm CLI, the same way the publish
command would reach it, so authentication and registry config come from
the operator's npm setup.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pubkit.core.result import Err, Ok, Result
from pubkit.core.structured import as_obj_list, as_str_dict, get_str
from pubkit.platform.process import NPM_ENV
from pubkit.platform.process import run as run_process
from pubkit.publish.errors import PublishError
from pubkit.publish.model import Package, RegistrySnapshot

NPM_TIMEOUT_SECONDS = 60.0


class RegistryClient(Protocol):
    def view(self, name: str, version: str) -> Result[RegistrySnapshot | None, PublishError]:
        """Snapshot of name@version, Ok(None) when it was never published."""
        ...


def _is_not_found(text: str) -> bool:
    lowered = text.lower()
    return "e404" in lowered or "404 not found" in lowered or "is not in this registry" in lowered


def parse_view_output(name: str, version: str, stdout: str) -> RegistrySnapshot | None:
    """Parse `npm view --json`; an empty reply means the version does not exist."""
    text = stdout.strip()
    if not text:
        return None
    obj: object = json.loads(text)
    # A version range can match several releases; npm then prints a list.
    items = as_obj_list(obj)
    if items is not None:
        obj = items[-1] if items else None
    data = as_str_dict(obj)
    if data is None:
        return None
    return RegistrySnapshot(
        name=get_str(data, "name") or name,
        version=get_str(data, "version") or version,
        git_head=get_str(data, "gitHead"),
    )


@dataclass(frozen=True, slots=True)
class NpmRegistry:
    cwd: Path
    timeout: float = NPM_TIMEOUT_SECONDS

    def view(self, name: str, version: str) -> Result[RegistrySnapshot | None, PublishError]:
        result = run_process(
            ["npm", "view", f"{name}@{version}", "--json"],
            cwd=self.cwd,
            extra_env=NPM_ENV,
            timeout=self.timeout,
        )
        if isinstance(result, Err):
            error = result.error
            if _is_not_found(error.output):
                return Ok(None)
            return Err(
                PublishError(
                    kind="registry_failed",
                    message=f"npm view {name}@{version} failed",
                    hint=error.summary(),
                )
            )

        try:
            return Ok(parse_view_output(name, version, result.value))
        except json.JSONDecodeError as e:
            return Err(
                PublishError(
                    kind="registry_failed",
                    message=f"invalid JSON from npm view {name}@{version}: {e}",
                )
            )


@dataclass(frozen=True, slots=True)
class SnapshotResult:
    package: Package
    snapshot: RegistrySnapshot | None
    error: PublishError | None = None


def fetch_snapshots(
    packages: Sequence[Package],
    client: RegistryClient,
    *,
    workers: int,
) -> list[SnapshotResult]:
    """Query the registry for every package concurrently.

    Results come back in input order. A failed lookup is reported in
    `error` and treated as never published; it does not affect the others.
    """

    def fetch(pkg: Package) -> SnapshotResult:
        try:
            result = client.view(pkg.name, pkg.version)
        except Exception as e:
            error = PublishError(kind="registry_failed", message=f"{pkg.name}: {e}")
            return SnapshotResult(package=pkg, snapshot=None, error=error)
        if isinstance(result, Err):
            return SnapshotResult(package=pkg, snapshot=None, error=result.error)
        return SnapshotResult(package=pkg, snapshot=result.value)

    if not packages:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(packages)))) as pool:
        return list(pool.map(fetch, packages))
