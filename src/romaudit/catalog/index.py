# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog-wide checksum index mapping content to the parts declaring it."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..interfaces.catalog import CatalogStore
from ..models import Checksum, PartRef


@dataclass(frozen=True, slots=True)
class IndexedPart:
    """A part reference paired with the checksum it was declared with."""

    ref: PartRef
    checksum: Checksum


class ChecksumIndex:
    """Immutable snapshot of every checksum declared by a catalog.

    Parts are indexed under every digest they declare (SHA1, CRC32, MD5), so
    catalog entries carrying a single digest still match digests computed
    from real bytes. Duplicate content across names or machines is preserved.
    """

    def __init__(self, parts: Mapping[Checksum, tuple[PartRef, ...]]) -> None:
        """Create the index from a mapping of declared checksums to references.

        Args:
            parts: Declared checksum mapped to the references declaring it exactly.
        """

        by_sha1: dict[str, list[IndexedPart]] = defaultdict(list)
        by_crc: dict[str, list[IndexedPart]] = defaultdict(list)
        by_md5: dict[str, list[IndexedPart]] = defaultdict(list)
        for checksum, refs in parts.items():
            for ref in refs:
                item = IndexedPart(ref=ref, checksum=checksum)
                if checksum.sha1 is not None:
                    by_sha1[checksum.sha1].append(item)
                if checksum.crc32 is not None:
                    by_crc[checksum.crc32].append(item)
                if checksum.md5 is not None:
                    by_md5[checksum.md5].append(item)
        self._declared: Mapping[Checksum, tuple[PartRef, ...]] = MappingProxyType(
            {checksum: tuple(sorted(set(refs))) for checksum, refs in parts.items()},
        )
        self._by_sha1: Mapping[str, tuple[IndexedPart, ...]] = MappingProxyType(
            {key: tuple(items) for key, items in by_sha1.items()},
        )
        self._by_crc: Mapping[str, tuple[IndexedPart, ...]] = MappingProxyType(
            {key: tuple(items) for key, items in by_crc.items()},
        )
        self._by_md5: Mapping[str, tuple[IndexedPart, ...]] = MappingProxyType(
            {key: tuple(items) for key, items in by_md5.items()},
        )

    @classmethod
    def build(cls, store: CatalogStore) -> ChecksumIndex:
        """Index every part of ``store`` that carries a real checksum.

        Args:
            store: Catalog store to index.

        Returns:
            ChecksumIndex: Snapshot safe to share between concurrent readers.
        """

        declared: dict[Checksum, list[PartRef]] = defaultdict(list)
        for machine in store.list_machines():
            for part in store.get_parts_of(machine.name):
                if part.checksum is None:
                    continue
                declared[part.checksum].append(PartRef(machine=machine.name, name=part.name))
        return cls({checksum: tuple(refs) for checksum, refs in declared.items()})

    def lookup(self, checksum: Checksum) -> tuple[PartRef, ...]:
        """Return every part whose declared checksum matches ``checksum``.

        Args:
            checksum: Declared or computed content identity.

        Returns:
            tuple[PartRef, ...]: Matching references, sorted and de-duplicated.
        """

        candidates: list[IndexedPart] = []
        if checksum.sha1 is not None:
            candidates.extend(self._by_sha1.get(checksum.sha1, ()))
        if checksum.crc32 is not None:
            candidates.extend(self._by_crc.get(checksum.crc32, ()))
        if checksum.md5 is not None:
            candidates.extend(self._by_md5.get(checksum.md5, ()))
        matches = {item.ref for item in candidates if item.checksum.matches(checksum)}
        return tuple(sorted(matches))

    def machines_for(self, checksum: Checksum) -> tuple[str, ...]:
        """Return the distinct machines declaring content matching ``checksum``."""

        return tuple(sorted({ref.machine for ref in self.lookup(checksum)}))

    def __contains__(self, checksum: object) -> bool:
        if not isinstance(checksum, Checksum):
            return False
        return bool(self.lookup(checksum))

    def __len__(self) -> int:
        return len(self._declared)

    def __iter__(self) -> Iterator[tuple[Checksum, tuple[PartRef, ...]]]:
        return iter(self._declared.items())

    @property
    def distinct_checksums(self) -> int:
        """Return the number of distinct declared checksums."""

        return len(self._declared)


__all__ = ["ChecksumIndex", "IndexedPart"]
