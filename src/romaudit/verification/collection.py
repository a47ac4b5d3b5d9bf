# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Content view over a whole collection backed by on-demand hashing."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable, Collection, Iterable, Iterator, Sequence
from threading import Lock

from ..catalog.index import ChecksumIndex
from ..errors import ArchiveReadError, RomAuditError
from ..interfaces.archive import ArchiveEntry, ArchiveReader, ContentLocation, ContentView
from ..models import Checksum, Digest
from .hashing import HashCache

LOGGER = logging.getLogger(__name__)

ArchiveMapper = Callable[[str], str]


class CollectionContentView(ContentView):
    """Answer content questions about a collection of archives.

    Archive listings and entry digests are memoised for the lifetime of the
    view, so one view should be shared by every machine verified in a run.
    ``locate`` first opens the archives named after machines that declare the
    requested content, plus the archive ``archive_for`` maps such a machine to
    (its merged archive, for instance). When none of them holds it, every
    archive of the collection is hashed once and searched.
    """

    def __init__(
        self,
        reader: ArchiveReader,
        index: ChecksumIndex,
        hashes: HashCache | None = None,
        *,
        sample_reader: ArchiveReader | None = None,
        archive_for: ArchiveMapper | None = None,
    ) -> None:
        """Create the view.

        Args:
            reader: Reader enumerating the rom archives of the collection.
            index: Catalog checksum index used to pick candidate archives.
            hashes: Shared digest memo; a private one is created when omitted.
            sample_reader: Reader over sample archives; samples stay unchecked without one.
            archive_for: Optional mapping from a machine to the archive holding its content.
        """

        self._reader = reader
        self._index = index
        self._hashes = hashes or HashCache()
        self._sample_reader = sample_reader
        self._archive_for = archive_for
        self._lock = Lock()
        self._archives: dict[str, tuple[ArchiveEntry, ...] | None] = {}
        self._samples: dict[str, frozenset[str]] = {}
        self._failures: dict[str, str] = {}
        self._inventory_lock = Lock()
        self._collection: tuple[tuple[ContentLocation, Digest], ...] | None = None

    @property
    def hashes(self) -> HashCache:
        """Return the digest memo shared by this view."""

        return self._hashes

    def entries(self, archive: str) -> Sequence[ArchiveEntry] | None:
        with self._lock:
            if archive in self._archives:
                return self._archives[archive]
            failure = self._failures.get(archive)
        if failure is not None:
            raise ArchiveReadError(failure, archive=archive)
        try:
            listed = self._reader.read_archive(archive)
        except ArchiveReadError as exc:
            with self._lock:
                self._failures[archive] = str(exc)
            raise
        result = None if listed is None else tuple(listed)
        with self._lock:
            return self._archives.setdefault(archive, result)

    def digest_of(self, entry: ArchiveEntry) -> Digest:
        return self._hashes.digest(entry)

    def locate(self, checksum: Checksum, *, exclude: Collection[str] = ()) -> tuple[ContentLocation, ...]:
        found = self._scan(self._candidates(checksum), checksum, exclude)
        if found:
            return found
        # content may sit in an archive no declaring machine is named after
        return tuple(
            location
            for location, digest in self._inventory()
            if location.archive not in exclude and digest.checksum.matches(checksum)
        )

    def sample_names(self, archive: str) -> frozenset[str] | None:
        if self._sample_reader is None:
            return None
        with self._lock:
            cached = self._samples.get(archive)
        if cached is not None:
            return cached
        entries = self._sample_reader.read_archive(archive)
        names = frozenset(posixpath.basename(entry.name) for entry in entries or ())
        with self._lock:
            return self._samples.setdefault(archive, names)

    def _scan(
        self,
        archives: Sequence[str],
        checksum: Checksum,
        exclude: Collection[str],
    ) -> tuple[ContentLocation, ...]:
        found: list[ContentLocation] = []
        for archive, entry, digest in self._hashed_entries(archive for archive in archives if archive not in exclude):
            if digest.checksum.matches(checksum):
                found.append(ContentLocation(archive=archive, entry=entry.name))
        return tuple(sorted(set(found)))

    def _hashed_entries(self, archives: Iterable[str]) -> Iterator[tuple[str, ArchiveEntry, Digest]]:
        for archive in archives:
            try:
                entries = self.entries(archive)
            except ArchiveReadError as exc:
                LOGGER.debug("skipping unreadable donor archive %s: %s", archive, exc)
                continue
            for entry in entries or ():
                try:
                    digest = self.digest_of(entry)
                except ArchiveReadError as exc:
                    LOGGER.debug("skipping unreadable donor entry %s/%s: %s", archive, entry.name, exc)
                    continue
                yield archive, entry, digest

    def _inventory(self) -> tuple[tuple[ContentLocation, Digest], ...]:
        """Return every readable entry of the collection with its digest, built once per view."""

        with self._inventory_lock:
            if self._collection is None:
                archives = self._reader.list_archives()
                LOGGER.debug("indexing %d archives for donor search", len(archives))
                self._collection = tuple(
                    sorted(
                        (
                            (ContentLocation(archive=archive, entry=entry.name), digest)
                            for archive, entry, digest in self._hashed_entries(archives)
                        ),
                        key=lambda item: item[0],
                    ),
                )
            return self._collection

    def _candidates(self, checksum: Checksum) -> list[str]:
        archives: set[str] = set()
        for machine in self._index.machines_for(checksum):
            archives.add(machine)
            if self._archive_for is None:
                continue
            try:
                archives.add(self._archive_for(machine))
            except RomAuditError as exc:
                LOGGER.debug("no mapped archive for %s: %s", machine, exc)
        return sorted(archives)


__all__ = ["ArchiveMapper", "CollectionContentView"]
