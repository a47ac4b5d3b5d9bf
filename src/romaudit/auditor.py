# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Facade wiring catalog, resolution, verification and queries into one snapshot."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path

from .archives import DirectoryArchiveReader, MemoryArchiveReader
from .catalog.importer import load_dat
from .catalog.index import ChecksumIndex
from .config import AuditConfig
from .errors import ConfigError, ResolutionError
from .interfaces.archive import ArchiveEntry, ArchiveReader, ContentView
from .interfaces.catalog import CatalogStore
from .models import Checksum, PartRef
from .orchestration.runner import ReportHook, RunResult, VerificationRunner
from .policy import DEFAULT_POLICY, PackagingPolicy
from .query import CatalogStats, DerivableSet, QueryEngine
from .resolution import EffectiveSet, ResolutionEngine
from .verification.collection import ArchiveMapper, CollectionContentView
from .verification.engine import VerificationEngine
from .verification.hashing import DEFAULT_CHUNK_SIZE, HashCache, chunked_digest
from .verification.report import MachineReport

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuditSnapshot:
    """Immutable bundle of every component derived from one catalog store."""

    store: CatalogStore
    index: ChecksumIndex
    resolver: ResolutionEngine
    verifier: VerificationEngine
    queries: QueryEngine
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, store: CatalogStore, *, warnings: Sequence[str] = ()) -> AuditSnapshot:
        """Derive the index and engines from ``store``."""

        index = ChecksumIndex.build(store)
        resolver = ResolutionEngine(store)
        return cls(
            store=store,
            index=index,
            resolver=resolver,
            verifier=VerificationEngine(resolver, index),
            queries=QueryEngine(store, index, resolver),
            warnings=tuple(warnings),
        )


class Auditor:
    """Entry point answering resolution, verification and catalog queries.

    Every call works against the snapshot current when it starts. ``reload``
    builds a new snapshot and swaps it in; calls already running keep using
    the old one.
    """

    def __init__(self, store: CatalogStore, *, warnings: Sequence[str] = ()) -> None:
        self._snapshot = AuditSnapshot.build(store, warnings=warnings)
        self._lock = threading.Lock()

    @classmethod
    def from_dat(cls, path: Path, *, strict: bool = False) -> Auditor:
        """Import the DAT at ``path`` and return an auditor over it.

        Raises:
            MalformedCatalogEntry: If the document is unreadable, or malformed in strict mode.
        """

        imported = load_dat(path, strict=strict)
        return cls(imported.store, warnings=imported.warnings)

    @property
    def snapshot(self) -> AuditSnapshot:
        """Return the snapshot currently served."""

        with self._lock:
            return self._snapshot

    def reload(self, store: CatalogStore, *, warnings: Sequence[str] = ()) -> AuditSnapshot:
        """Rebuild every derived component from ``store`` and swap it in atomically.

        Returns:
            AuditSnapshot: The snapshot now being served.
        """

        fresh = AuditSnapshot.build(store, warnings=warnings)
        with self._lock:
            self._snapshot = fresh
        LOGGER.info("catalog reloaded with %d machines", len(store.list_machines()))
        return fresh

    def reload_dat(self, path: Path, *, strict: bool = False) -> AuditSnapshot:
        """Re-import the DAT at ``path`` and swap the result in."""

        imported = load_dat(path, strict=strict)
        return self.reload(imported.store, warnings=imported.warnings)

    def resolve(self, machine: str, policy: PackagingPolicy | str = DEFAULT_POLICY) -> EffectiveSet:
        """Return the effective content set of ``machine``; see :meth:`ResolutionEngine.resolve`."""

        return self.snapshot.resolver.resolve(machine, policy)

    def content_view(
        self,
        reader: ArchiveReader,
        *,
        policy: PackagingPolicy | str = DEFAULT_POLICY,
        sample_reader: ArchiveReader | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> CollectionContentView:
        """Return a collection view over ``reader`` suited to ``policy``.

        Under the merged policy donors are also searched in the merged archive
        of every machine declaring the content.
        """

        return _view_for(self.snapshot, reader, PackagingPolicy.parse(policy), sample_reader, chunk_size)

    def verify(
        self,
        machine: str,
        supplied_files: Sequence[ArchiveEntry],
        policy: PackagingPolicy | str = DEFAULT_POLICY,
        view: ContentView | None = None,
    ) -> MachineReport:
        """Verify ``supplied_files`` as ``machine``'s archive.

        Without a ``view`` the rest of the collection is treated as empty.
        """

        snapshot = self.snapshot
        if view is None:
            view = CollectionContentView(MemoryArchiveReader(), snapshot.index)
        return snapshot.verifier.verify(machine, supplied_files, policy, view)

    def run(
        self,
        reader: ArchiveReader,
        *,
        machines: Sequence[str] | None = None,
        policy: PackagingPolicy | str = DEFAULT_POLICY,
        jobs: int | None = None,
        sample_reader: ArchiveReader | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        after_machine: ReportHook | None = None,
    ) -> RunResult:
        """Verify a whole collection, or ``machines`` of it, on a worker pool.

        Args:
            reader: Reader over the rom archives.
            machines: Machines to verify; defaults to every machine with an
                archive in the collection or content placed in a present archive.
            policy: Packaging policy the collection follows.
            jobs: Worker count.
            sample_reader: Reader over sample archives.
            chunk_size: Bytes read per hashing iteration.
            after_machine: Callback invoked with each completed report.

        Returns:
            RunResult: Reports sorted by machine name, plus the archives of the
            collection that name no catalog machine.
        """

        snapshot = self.snapshot
        resolved_policy = PackagingPolicy.parse(policy)
        view = _view_for(snapshot, reader, resolved_policy, sample_reader, chunk_size)
        present = tuple(reader.list_archives())
        if machines is None:
            targets = self._present_machines(snapshot, present, resolved_policy)
        else:
            targets = list(machines)
        unknown = tuple(name for name in present if snapshot.store.get_machine(name) is None)
        if unknown:
            LOGGER.info("%d archives match no catalog machine", len(unknown))
        runner = VerificationRunner(snapshot.verifier, view, policy=resolved_policy, jobs=jobs, after_machine=after_machine)
        return replace(runner.run(targets), unknown_archives=unknown)

    def shared_content(self) -> dict[Checksum, tuple[str, ...]]:
        """Return checksums declared by at least two machines."""

        return self.snapshot.queries.shared_content()

    def derivable_sets(self) -> tuple[DerivableSet, ...]:
        """Return machines fully derivable from an ancestor."""

        return self.snapshot.queries.derivable_sets()

    def stats(self) -> CatalogStats:
        """Return catalog summary counters."""

        return self.snapshot.queries.stats()

    def rom_usage(self, machine: str, part: str) -> tuple[PartRef, ...]:
        """Return the other parts declaring the same content as ``machine:part``."""

        return self.snapshot.queries.rom_usage(machine, part)

    def machines_sharing(self, machine: str) -> dict[str, tuple[str, ...]]:
        """Return other machines sharing content with ``machine``."""

        return self.snapshot.queries.machines_sharing(machine)

    @staticmethod
    def _present_machines(snapshot: AuditSnapshot, archives: Sequence[str], policy: PackagingPolicy) -> list[str]:
        """Return machines with an archive in the collection or content placed in one."""

        present = set(archives)
        targets: list[str] = []
        for machine in snapshot.store.list_machines():
            if machine.name in present:
                targets.append(machine.name)
                continue
            try:
                locations = snapshot.resolver.resolve(machine.name, policy).locations
            except ResolutionError:
                targets.append(machine.name)
                continue
            if any(location in present for location in locations):
                targets.append(machine.name)
        return targets


def _view_for(
    snapshot: AuditSnapshot,
    reader: ArchiveReader,
    policy: PackagingPolicy,
    sample_reader: ArchiveReader | None,
    chunk_size: int,
) -> CollectionContentView:
    archive_for: ArchiveMapper | None = snapshot.resolver.merged_root if policy is PackagingPolicy.MERGED else None
    return CollectionContentView(
        reader,
        snapshot.index,
        HashCache(chunked_digest(chunk_size)),
        sample_reader=sample_reader,
        archive_for=archive_for,
    )


def audit_collection(
    config: AuditConfig,
    *,
    machines: Sequence[str] | None = None,
    auditor: Auditor | None = None,
    after_machine: ReportHook | None = None,
) -> RunResult:
    """Verify the collection described by ``config``.

    Args:
        config: Settings naming the DAT, the rom directory and run parameters.
        machines: Machines to verify; defaults to those present in the collection.
        auditor: Auditor to reuse instead of importing ``config.dat``.
        after_machine: Callback invoked with each completed report.

    Returns:
        RunResult: Reports sorted by machine name.

    Raises:
        ConfigError: If the configuration names no rom directory, or no DAT
            while ``auditor`` is omitted.
    """

    if config.roms_dir is None:
        raise ConfigError("no rom directory configured")
    if auditor is None:
        if config.dat is None:
            raise ConfigError("no DAT file configured")
        auditor = Auditor.from_dat(config.dat, strict=config.strict_import)
    sample_reader = DirectoryArchiveReader(config.samples_dir) if config.samples_dir is not None else None
    return auditor.run(
        DirectoryArchiveReader(config.roms_dir),
        machines=machines,
        policy=config.policy,
        jobs=config.jobs,
        sample_reader=sample_reader,
        chunk_size=config.chunk_size,
        after_machine=after_machine,
    )


__all__ = ["AuditSnapshot", "Auditor", "audit_collection"]
