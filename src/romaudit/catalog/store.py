# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Immutable in-memory catalog store."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType

from ..errors import MalformedCatalogEntry
from ..interfaces.catalog import CatalogStore
from ..models import ContentPart, DatHeader, Machine, MachineEntry, Relation, Sample


class InMemoryCatalogStore(CatalogStore):
    """Catalog snapshot holding machines, parts and samples keyed by machine name.

    The store is built once and never mutated; loading new catalog data means
    building a new store.
    """

    def __init__(self, entries: Iterable[MachineEntry], *, header: DatHeader | None = None) -> None:
        """Materialise the snapshot from ``entries``.

        Args:
            entries: Machines bundled with their declared parts and samples.
            header: Optional descriptive header of the source document.

        Raises:
            MalformedCatalogEntry: If a machine is declared twice or an entry
                bundles parts belonging to another machine.
        """

        machines: dict[str, Machine] = {}
        parts: dict[str, tuple[ContentPart, ...]] = {}
        samples: dict[str, tuple[Sample, ...]] = {}
        for position, entry in enumerate(entries):
            name = entry.machine.name
            if not name:
                raise MalformedCatalogEntry("machine without a name", position=position)
            if name in machines:
                raise MalformedCatalogEntry(f"machine '{name}' is declared more than once", position=position)
            _ensure_owned(name, entry.parts, position=position)
            _ensure_owned(name, entry.samples, position=position)
            machines[name] = entry.machine
            parts[name] = tuple(entry.parts)
            samples[name] = tuple(entry.samples)
        ordered = sorted(machines)
        self._machines: Mapping[str, Machine] = MappingProxyType({name: machines[name] for name in ordered})
        self._parts: Mapping[str, tuple[ContentPart, ...]] = MappingProxyType(parts)
        self._samples: Mapping[str, tuple[Sample, ...]] = MappingProxyType(samples)
        self._machine_list: tuple[Machine, ...] = tuple(self._machines.values())
        self._header = header or DatHeader()

    @classmethod
    def from_parts(
        cls,
        machines: Iterable[Machine],
        parts: Iterable[ContentPart] = (),
        samples: Iterable[Sample] = (),
        *,
        header: DatHeader | None = None,
    ) -> InMemoryCatalogStore:
        """Build a store from flat machine, part and sample sequences.

        Args:
            machines: Machines to include.
            parts: Parts, grouped onto machines through ``ContentPart.machine``.
            samples: Samples, grouped through ``Sample.machine``.
            header: Optional descriptive header.

        Returns:
            InMemoryCatalogStore: Snapshot containing the supplied entities.
        """

        machine_list = list(machines)
        grouped_parts: dict[str, list[ContentPart]] = {machine.name: [] for machine in machine_list}
        grouped_samples: dict[str, list[Sample]] = {machine.name: [] for machine in machine_list}
        for part in parts:
            if part.machine not in grouped_parts:
                raise MalformedCatalogEntry(f"part '{part.name}' references unknown machine '{part.machine}'")
            grouped_parts[part.machine].append(part)
        for sample in samples:
            if sample.machine not in grouped_samples:
                raise MalformedCatalogEntry(f"sample '{sample.name}' references unknown machine '{sample.machine}'")
            grouped_samples[sample.machine].append(sample)
        entries = (
            MachineEntry(
                machine=machine,
                parts=tuple(grouped_parts[machine.name]),
                samples=tuple(grouped_samples[machine.name]),
            )
            for machine in machine_list
        )
        return cls(entries, header=header)

    @property
    def header(self) -> DatHeader:
        """Return the descriptive header of the source document."""

        return self._header

    def get_machine(self, name: str) -> Machine | None:
        return self._machines.get(name)

    def list_machines(self) -> Sequence[Machine]:
        return self._machine_list

    def get_parts_of(self, name: str) -> Sequence[ContentPart]:
        return self._parts.get(name, ())

    def get_samples_of(self, name: str) -> Sequence[Sample]:
        return self._samples.get(name, ())

    def resolve_parent(self, name: str, relation: Relation) -> str | None:
        machine = self._machines.get(name)
        if machine is None:
            return None
        return machine.parent(relation)

    def resolve_sample_parent(self, name: str) -> str | None:
        machine = self._machines.get(name)
        if machine is None:
            return None
        return machine.sampleof or None

    def __len__(self) -> int:
        return len(self._machines)

    def __contains__(self, name: object) -> bool:
        return name in self._machines

    def __iter__(self) -> Iterator[Machine]:
        return iter(self._machine_list)


def _ensure_owned(name: str, items: Iterable[ContentPart | Sample], *, position: int) -> None:
    """Raise when any of ``items`` belongs to a machine other than ``name``."""

    for item in items:
        if item.machine != name:
            raise MalformedCatalogEntry(
                f"'{item.name}' belongs to '{item.machine}' but is bundled with '{name}'",
                position=position,
            )


__all__ = ["InMemoryCatalogStore"]
