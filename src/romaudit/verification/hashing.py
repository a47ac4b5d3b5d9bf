# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Streaming checksum computation and run-wide hash memoisation."""

from __future__ import annotations

import binascii
import hashlib
import logging
from collections.abc import Hashable
from dataclasses import dataclass
from threading import Lock
from typing import BinaryIO, Final

from ..errors import ArchiveReadError
from ..interfaces.archive import ArchiveEntry, ChecksumFunction
from ..models import Checksum, Digest

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE: Final[int] = 65536


def compute_digest(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Digest:
    """Return the CRC32, SHA1, MD5 and size of ``stream`` read in ``chunk_size`` blocks.

    Args:
        stream: Binary stream positioned at the start of the content.
        chunk_size: Number of bytes read per iteration.

    Returns:
        Digest: Checksums and byte count of the stream.
    """

    crc = 0
    sha1 = hashlib.sha1(usedforsecurity=False)
    md5 = hashlib.md5(usedforsecurity=False)
    size = 0
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        crc = binascii.crc32(chunk, crc)
        sha1.update(chunk)
        md5.update(chunk)
        size += len(chunk)
    checksum = Checksum(crc32=format(crc & 0xFFFFFFFF, "08x"), sha1=sha1.hexdigest(), md5=md5.hexdigest())
    return Digest(checksum=checksum, size=size)


def chunked_digest(chunk_size: int) -> ChecksumFunction:
    """Return a checksum function reading streams in ``chunk_size`` blocks."""

    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    def _digest(stream: BinaryIO) -> Digest:
        return compute_digest(stream, chunk_size)

    return _digest


@dataclass(frozen=True, slots=True)
class HashCacheInfo:
    """Counters describing hash cache usage.

    Attributes:
        entries: Identities with a recorded digest or failure.
        hits: Lookups answered without reading bytes.
        computed: Streams actually hashed.
    """

    entries: int
    hits: int
    computed: int


class HashCache:
    """Thread-safe memo of entry digests keyed by entry identity.

    Each identity is hashed at most once per cache: concurrent requests for
    the same identity wait on a per-identity lock while the first caller
    reads the stream. Read failures are remembered and re-raised.
    """

    def __init__(self, checksum: ChecksumFunction = compute_digest) -> None:
        self._checksum = checksum
        self._lock = Lock()
        self._entry_locks: dict[Hashable, Lock] = {}
        self._digests: dict[Hashable, Digest] = {}
        self._failures: dict[Hashable, str] = {}
        self._hits = 0
        self._computed = 0

    def digest(self, entry: ArchiveEntry) -> Digest:
        """Return the digest of ``entry``, hashing its stream on first use.

        Args:
            entry: Archive entry to hash.

        Returns:
            Digest: Checksums and size of the entry's bytes.

        Raises:
            ArchiveReadError: If the entry's stream cannot be opened or read.
        """

        key = entry.identity
        with self._lock:
            entry_lock = self._entry_locks.setdefault(key, Lock())
        with entry_lock:
            with self._lock:
                cached = self._digests.get(key)
                failure = self._failures.get(key)
                if cached is not None or failure is not None:
                    self._hits += 1
            if cached is not None:
                return cached
            if failure is not None:
                raise ArchiveReadError(failure, entry=entry.name)
            try:
                with entry.open() as stream:
                    digest = self._checksum(stream)
            except ArchiveReadError as exc:
                self._remember_failure(key, str(exc))
                raise
            except OSError as exc:
                message = f"cannot read '{entry.name}': {exc}"
                self._remember_failure(key, message)
                raise ArchiveReadError(message, entry=entry.name) from exc
            with self._lock:
                self._digests[key] = digest
                self._computed += 1
            LOGGER.debug("hashed %s: %s", entry.name, digest.checksum)
            return digest

    def _remember_failure(self, key: Hashable, message: str) -> None:
        with self._lock:
            self._failures[key] = message

    def info(self) -> HashCacheInfo:
        """Return usage counters for diagnostics and tests."""

        with self._lock:
            return HashCacheInfo(
                entries=len(self._digests) + len(self._failures),
                hits=self._hits,
                computed=self._computed,
            )


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "HashCache",
    "HashCacheInfo",
    "chunked_digest",
    "compute_digest",
]
