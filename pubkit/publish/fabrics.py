"""Fabric store: the per-package working records every phase operates on.

A fabric pairs what is fixed for the run (package, registry snapshot,
changelog handle) with the derived PackageState that phases fill in.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field, replace

from pubkit.core.structured import StrDict, as_str_dict
from pubkit.output.console import ConsoleProtocol
from pubkit.publish.changelog import Changelog, load_from
from pubkit.publish.model import Package, PackageState, RegistrySnapshot
from pubkit.publish.registry import RegistryClient, fetch_snapshots


@dataclass(slots=True)
class Fabric:
    pkg: Package
    registry_snapshot: RegistrySnapshot | None
    changelog: Changelog
    state: PackageState = field(default_factory=PackageState)

    @property
    def name(self) -> str:
        return self.pkg.name


class FabricStore:
    """Ordered fabrics of one run, addressable by package name."""

    def __init__(self, fabrics: Iterable[Fabric]) -> None:
        self._fabrics: list[Fabric] = list(fabrics)
        self._by_name: dict[str, Fabric] = {}
        for fabric in self._fabrics:
            if fabric.name in self._by_name:
                raise ValueError(f"duplicate package name: {fabric.name}")
            self._by_name[fabric.name] = fabric

    @classmethod
    def build(
        cls,
        packages: Sequence[Package],
        registry: RegistryClient,
        *,
        workers: int,
        console: ConsoleProtocol,
    ) -> FabricStore:
        """Fetch registry snapshots for all packages and assemble fabrics.

        Returns only after every lookup has settled. Failed lookups are
        reported and the package is treated as never published.
        """
        fabrics: list[Fabric] = []
        for item in fetch_snapshots(packages, registry, workers=workers):
            if item.error is not None:
                console.warning(
                    f"registry lookup failed for {item.package.name}, "
                    f"treating it as unpublished: {item.error.pretty()}"
                )
            fabrics.append(
                Fabric(
                    pkg=item.package,
                    registry_snapshot=item.snapshot,
                    changelog=load_from(item.package.changelog_path),
                )
            )
        return cls(fabrics)

    def __iter__(self) -> Iterator[Fabric]:
        return iter(self._fabrics)

    def __len__(self) -> int:
        return len(self._fabrics)

    def get(self, name: str) -> Fabric:
        return self._by_name[name]

    def update_state(self, name: str, **changes: object) -> PackageState:
        """Set fields on one package's state.

        Raises:
            KeyError: Unknown package.
            ValueError: Unknown field, or an attempt to unset a field.
        """
        fabric = self._by_name[name]
        unknown = set(changes) - PackageState.field_names()
        if unknown:
            raise ValueError(f"unknown package state fields: {sorted(unknown)}")
        cleared = [k for k, v in changes.items() if v is None]
        if cleared:
            raise ValueError(f"package state fields cannot be cleared: {sorted(cleared)}")
        fabric.state = replace(fabric.state, **changes)
        return fabric.state

    def unpublished(self) -> list[Fabric]:
        return [f for f in self._fabrics if f.state.has_unpublished_changes]

    def selected(self) -> list[Fabric]:
        return [f for f in self._fabrics if f.state.is_selected_to_publish]

    def snapshot_states(self) -> dict[str, StrDict]:
        """Serializable copy of every package state, keyed by name."""
        return {f.name: f.state.to_dict() for f in self._fabrics}

    def restore_states(self, states: Mapping[str, object]) -> list[str]:
        """Overlay saved states onto current ones; saved fields win.

        Packages not present in this run, and states saved under another
        schema, are ignored. Returns the names that were restored.
        """
        restored: list[str] = []
        for fabric in self._fabrics:
            saved = as_str_dict(states.get(fabric.name))
            fields = PackageState.fields_from_dict(saved) if saved is not None else None
            if fields is None:
                continue
            fabric.state = replace(fabric.state, **fields)
            restored.append(fabric.name)
        return restored
