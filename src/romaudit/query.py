# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Aggregate catalog questions answered from the checksum index and the store."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from .catalog.index import ChecksumIndex
from .errors import ResolutionError
from .interfaces.catalog import CatalogStore
from .models import Checksum, PartKind, PartRef, Relation
from .policy import PackagingPolicy
from .resolution import ResolutionEngine

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DerivableSet:
    """A machine whose inherited content is fully provided by an ancestor.

    Attributes:
        machine: Machine that can be derived.
        ancestor: ``romof`` or ``cloneof`` ancestor providing the shared content.
        shared: Part names of ``machine`` whose content the ancestor holds.
        new: Part names specific to ``machine``.
    """

    machine: str
    ancestor: str
    shared: tuple[str, ...]
    new: tuple[str, ...]


class CatalogStats(BaseModel):
    """Summary counters describing a catalog."""

    model_config = ConfigDict(frozen=True)

    machines: int
    distinct_checksums: int
    nodump_parts: int
    device_machines: int
    bios_machines: int = 0
    clones: int = 0
    parts: int = 0
    roms: int = 0
    disks: int = 0
    samples: int = 0
    device_refs: int = 0


class QueryEngine:
    """Answer catalog-wide questions without touching any collection."""

    def __init__(self, store: CatalogStore, index: ChecksumIndex, resolver: ResolutionEngine) -> None:
        self._store = store
        self._index = index
        self._resolver = resolver

    def shared_content(self) -> dict[Checksum, tuple[str, ...]]:
        """Return every piece of content declared by at least two distinct machines.

        Declarations that match each other (a CRC32-only entry and a full
        CRC32/SHA1 entry for the same bytes, say) are reported once, keyed by
        the declaration carrying the most digests.

        Returns:
            dict[Checksum, tuple[str, ...]]: Checksum mapped to the sorted machines declaring it.
        """

        groups: list[tuple[Checksum, set[str]]] = []
        by_digest: dict[tuple[str, str], list[int]] = defaultdict(list)
        for checksum, refs in sorted(self._index, key=lambda item: (-_digest_count(item[0]), str(item[0]))):
            machines = {ref.machine for ref in refs}
            keys = _digest_keys(checksum)
            position = next(
                (
                    candidate
                    for key in keys
                    for candidate in by_digest.get(key, ())
                    if groups[candidate][0].matches(checksum)
                ),
                None,
            )
            if position is None:
                position = len(groups)
                groups.append((checksum, set()))
            groups[position][1].update(machines)
            for key in keys:
                if position not in by_digest[key]:
                    by_digest[key].append(position)
        shared = {checksum: tuple(sorted(machines)) for checksum, machines in groups if len(machines) >= 2}
        return dict(sorted(shared.items(), key=lambda item: str(item[0])))

    def derivable_sets(self) -> tuple[DerivableSet, ...]:
        """Return ``(machine, ancestor)`` pairs where the ancestor supplies all merged content.

        A pair qualifies when every merge-tagged part of the machine's
        non-merged set is present by checksum in the ancestor's non-merged set
        and at least one part is shared. Machines that fail to resolve are
        skipped.
        """

        results: list[DerivableSet] = []
        for machine in self._store.list_machines():
            try:
                own = self._resolver.resolve(machine.name, PackagingPolicy.NON_MERGED)
                ancestors = self._ancestors_of(machine.name)
            except ResolutionError as exc:
                LOGGER.debug("skipping %s in derivable search: %s", machine.name, exc)
                continue
            dumped = [part for part in own.parts if part.checksum is not None]
            if not dumped:
                continue
            for ancestor in ancestors:
                try:
                    provided = self._resolver.resolve(ancestor, PackagingPolicy.NON_MERGED)
                except ResolutionError as exc:
                    LOGGER.debug("skipping ancestor %s of %s: %s", ancestor, machine.name, exc)
                    continue
                available = [part.checksum for part in provided.parts if part.checksum is not None]
                held = {part.name for part in dumped if part.checksum is not None and _held(part.checksum, available)}
                shared = tuple(part.name for part in dumped if part.name in held)
                merged_ok = all(part.name in held for part in dumped if part.merge is not None)
                if shared and merged_ok:
                    new = tuple(part.name for part in dumped if part.name not in shared)
                    results.append(DerivableSet(machine=machine.name, ancestor=ancestor, shared=shared, new=new))
        return tuple(results)

    def stats(self) -> CatalogStats:
        """Return summary counters for the catalog."""

        machines = self._store.list_machines()
        parts = [part for machine in machines for part in self._store.get_parts_of(machine.name)]
        return CatalogStats(
            machines=len(machines),
            distinct_checksums=self._index.distinct_checksums,
            nodump_parts=sum(1 for part in parts if part.is_nodump),
            device_machines=sum(1 for machine in machines if machine.is_device),
            bios_machines=sum(1 for machine in machines if machine.is_bios),
            clones=sum(1 for machine in machines if machine.cloneof),
            parts=len(parts),
            roms=sum(1 for part in parts if part.kind is PartKind.ROM),
            disks=sum(1 for part in parts if part.kind is PartKind.DISK),
            samples=sum(len(self._store.get_samples_of(machine.name)) for machine in machines),
            device_refs=sum(len(machine.device_refs) for machine in machines),
        )

    def rom_usage(self, machine: str, part: str) -> tuple[PartRef, ...]:
        """Return the other parts declaring the same content as ``machine:part``.

        Raises:
            KeyError: If the machine does not declare a part called ``part``.
        """

        declared = next((item for item in self._store.get_parts_of(machine) if item.name == part), None)
        if declared is None:
            raise KeyError(f"'{machine}' declares no part named '{part}'")
        if declared.checksum is None:
            return ()
        origin = PartRef(machine=machine, name=part)
        return tuple(ref for ref in self._index.lookup(declared.checksum) if ref != origin)

    def machines_sharing(self, machine: str) -> dict[str, tuple[str, ...]]:
        """Return other machines sharing content with ``machine``.

        Returns:
            dict[str, tuple[str, ...]]: Other machine mapped to the part names of
            ``machine`` it shares, both sorted.
        """

        shared: dict[str, set[str]] = defaultdict(set)
        for part in self._store.get_parts_of(machine):
            if part.checksum is None:
                continue
            for other in self._index.machines_for(part.checksum):
                if other != machine:
                    shared[other].add(part.name)
        return {other: tuple(sorted(names)) for other, names in sorted(shared.items())}

    def _ancestors_of(self, name: str) -> tuple[str, ...]:
        ordered: list[str] = []
        for relation in (Relation.ROM_OF, Relation.CLONE_OF):
            for ancestor in self._resolver.ancestors(name, relation).names:
                if ancestor not in ordered:
                    ordered.append(ancestor)
        return tuple(ordered)


def _held(checksum: Checksum, pool: list[Checksum]) -> bool:
    return any(candidate.matches(checksum) for candidate in pool)


def _digest_keys(checksum: Checksum) -> tuple[tuple[str, str], ...]:
    fields = (("sha1", checksum.sha1), ("crc32", checksum.crc32), ("md5", checksum.md5))
    return tuple((label, value) for label, value in fields if value is not None)


def _digest_count(checksum: Checksum) -> int:
    return len(_digest_keys(checksum))


__all__ = ["CatalogStats", "DerivableSet", "QueryEngine"]
