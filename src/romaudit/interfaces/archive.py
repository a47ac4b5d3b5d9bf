# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Archive and collection contracts consumed by the verification engine."""

from __future__ import annotations

import io
from abc import abstractmethod
from collections.abc import Callable, Collection, Hashable, Sequence
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol, runtime_checkable

from romaudit.models import Checksum, Digest

StreamOpener = Callable[[], BinaryIO]
ChecksumFunction = Callable[[BinaryIO], Digest]


@dataclass(frozen=True, slots=True, eq=False)
class ArchiveEntry:
    """A named, read-once byte stream exposed by an archive.

    ``identity`` keys hash memoization. Readers supply a stable value (for
    example the archive path, entry name, size and modification time) so that
    enumerating an archive twice never hashes the same bytes twice; entries
    created without one get a unique identity.
    """

    name: str
    opener: StreamOpener
    identity: Hashable = field(default_factory=object)
    size: int | None = None

    def open(self) -> BinaryIO:
        """Return a fresh stream over the entry's bytes."""

        return self.opener()

    @classmethod
    def from_bytes(cls, name: str, data: bytes, *, identity: Hashable | None = None) -> ArchiveEntry:
        """Build an entry serving ``data`` from memory.

        Args:
            name: Entry name inside its archive.
            data: Entry payload.
            identity: Optional memoization identity; a unique one is allocated when omitted.

        Returns:
            ArchiveEntry: Entry whose opener yields a new ``BytesIO`` on each call.
        """

        payload = bytes(data)

        def _open() -> BinaryIO:
            return io.BytesIO(payload)

        return cls(name=name, opener=_open, identity=identity if identity is not None else object(), size=len(payload))


@dataclass(frozen=True, slots=True, order=True)
class ContentLocation:
    """Where a piece of content physically lives in the collection."""

    archive: str
    entry: str

    def __str__(self) -> str:
        return f"{self.archive}/{self.entry}"


@runtime_checkable
class ArchiveReader(Protocol):
    """Enumerate archives of a collection and the entries they contain."""

    @abstractmethod
    def list_archives(self) -> Sequence[str]:
        """Return the identifiers of every archive currently present.

        Returns:
            Sequence[str]: Archive identifiers sorted by name.
        """
        raise NotImplementedError("ArchiveReader.list_archives must be implemented")

    @abstractmethod
    def read_archive(self, name: str) -> Sequence[ArchiveEntry] | None:
        """Return the entries of archive ``name``.

        Args:
            name: Archive identifier, conventionally the machine name.

        Returns:
            Sequence[ArchiveEntry] | None: Entries, or ``None`` when the archive is absent.

        Raises:
            ArchiveReadError: If the archive exists but cannot be enumerated.
        """
        raise NotImplementedError("ArchiveReader.read_archive must be implemented")


@runtime_checkable
class ContentView(Protocol):
    """Read-only view over the content of a whole collection."""

    @abstractmethod
    def entries(self, archive: str) -> Sequence[ArchiveEntry] | None:
        """Return the entries of ``archive`` or ``None`` when it is absent.

        Raises:
            ArchiveReadError: If the archive exists but cannot be enumerated.
        """
        raise NotImplementedError("ContentView.entries must be implemented")

    @abstractmethod
    def digest_of(self, entry: ArchiveEntry) -> Digest:
        """Return the digest of ``entry``, hashing it at most once per run.

        Raises:
            ArchiveReadError: If the entry's bytes cannot be read.
        """
        raise NotImplementedError("ContentView.digest_of must be implemented")

    @abstractmethod
    def locate(self, checksum: Checksum, *, exclude: Collection[str] = ()) -> tuple[ContentLocation, ...]:
        """Return every known location holding content matching ``checksum``.

        Args:
            checksum: Content identity to search for.
            exclude: Archive identifiers that must not be reported.

        Returns:
            tuple[ContentLocation, ...]: Sorted locations, empty when the content is unknown.
        """
        raise NotImplementedError("ContentView.locate must be implemented")

    @abstractmethod
    def sample_names(self, archive: str) -> frozenset[str] | None:
        """Return the sample names present in sample archive ``archive``.

        Returns:
            frozenset[str] | None: Names present, or ``None`` when samples are not checked.
        """
        raise NotImplementedError("ContentView.sample_names must be implemented")


__all__ = [
    "ArchiveEntry",
    "ArchiveReader",
    "ChecksumFunction",
    "ContentLocation",
    "ContentView",
    "StreamOpener",
]
