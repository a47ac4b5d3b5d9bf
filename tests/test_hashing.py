# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for streaming digests and the shared hash memo."""

from __future__ import annotations

import io
from concurrent.futures import ThreadPoolExecutor
from typing import BinaryIO

import pytest

from romaudit.errors import ArchiveReadError
from romaudit.interfaces.archive import ArchiveEntry
from romaudit.verification import HashCache, chunked_digest, compute_digest

CHECK_INPUT = b"123456789"
CHECK_CRC32 = "cbf43926"
CHECK_SHA1 = "f7c3bc1d808e04732adf679965ccc34ca7ae3441"
CHECK_MD5 = "25f9e794323b453885f5181f1b624d0b"


@pytest.mark.parametrize("chunk_size", [1, 2, 4096])
def test_digest_of_known_bytes(chunk_size: int) -> None:
    digest = chunked_digest(chunk_size)(io.BytesIO(CHECK_INPUT))

    assert digest.checksum.crc32 == CHECK_CRC32
    assert digest.checksum.sha1 == CHECK_SHA1
    assert digest.checksum.md5 == CHECK_MD5
    assert digest.size == len(CHECK_INPUT)


def test_digest_of_empty_stream() -> None:
    digest = compute_digest(io.BytesIO(b""))

    assert digest.checksum.crc32 == "00000000"
    assert digest.checksum.sha1 == "da39a3ee5e6b4b0d3255bfef95601890afd80709"
    assert digest.checksum.md5 == "d41d8cd98f00b204e9800998ecf8427e"
    assert digest.size == 0


class _CountingOpener:
    def __init__(self, data: bytes | None) -> None:
        self.data = data
        self.calls = 0

    def __call__(self) -> BinaryIO:
        self.calls += 1
        if self.data is None:
            raise OSError("gone")
        return io.BytesIO(self.data)


def test_cache_hashes_each_identity_once() -> None:
    opener = _CountingOpener(CHECK_INPUT)
    cache = HashCache()
    first = ArchiveEntry(name="a", opener=opener, identity=("set", "a"))
    again = ArchiveEntry(name="a", opener=opener, identity=("set", "a"))

    assert cache.digest(first) == cache.digest(again)
    assert opener.calls == 1
    info = cache.info()
    assert (info.entries, info.hits, info.computed) == (1, 1, 1)


def test_cache_remembers_failures() -> None:
    opener = _CountingOpener(None)
    cache = HashCache()
    entry = ArchiveEntry(name="broken", opener=opener)

    for _ in range(2):
        with pytest.raises(ArchiveReadError, match="gone"):
            cache.digest(entry)

    assert opener.calls == 1


def test_concurrent_requests_share_one_computation() -> None:
    opener = _CountingOpener(CHECK_INPUT * 1000)
    cache = HashCache(chunked_digest(7))
    entries = [ArchiveEntry(name="big", opener=opener, identity="big") for _ in range(16)]

    with ThreadPoolExecutor(max_workers=8) as executor:
        digests = list(executor.map(cache.digest, entries))

    assert len({digest.checksum for digest in digests}) == 1
    assert opener.calls == 1
    assert cache.info().computed == 1
