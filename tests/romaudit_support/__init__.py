# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog and collection builders shared by the test-suite."""

from __future__ import annotations

import hashlib
import zlib
from collections.abc import Iterable, Mapping

from romaudit.auditor import Auditor
from romaudit.catalog import InMemoryCatalogStore
from romaudit.models import Checksum, ContentPart, DumpStatus, Machine, PartKind, Sample


def blob(label: str, size: int = 48) -> bytes:
    """Return deterministic bytes unique to ``label``."""

    seed = hashlib.sha256(label.encode("utf-8")).digest()
    return (seed * (size // len(seed) + 1))[:size]


def checksum_of(data: bytes) -> Checksum:
    """Return the checksum a catalog would declare for ``data``."""

    return Checksum(
        crc32=f"{zlib.crc32(data) & 0xFFFFFFFF:08x}",
        sha1=hashlib.sha1(data).hexdigest(),
        md5=hashlib.md5(data).hexdigest(),
    )


def rom(
    machine: str,
    name: str,
    data: bytes | None = None,
    *,
    merge: str | None = None,
    optional: bool = False,
    kind: PartKind = PartKind.ROM,
) -> ContentPart:
    """Return a part declaring ``data``; ``None`` declares a no-dump."""

    if data is None:
        return ContentPart(machine=machine, name=name, kind=kind, status=DumpStatus.NODUMP, merge=merge, optional=optional)
    return ContentPart(
        machine=machine,
        name=name,
        kind=kind,
        size=len(data),
        checksum=checksum_of(data),
        merge=merge,
        optional=optional,
    )


def build_store(
    machines: Iterable[Machine],
    parts: Iterable[ContentPart] = (),
    samples: Iterable[Sample] = (),
) -> InMemoryCatalogStore:
    return InMemoryCatalogStore.from_parts(machines, parts, samples)


CONTENT: Mapping[str, bytes] = {label: blob(label) for label in ("bios", "x", "y", "z", "w", "snd")}


def family_store() -> InMemoryCatalogStore:
    """Return a parent ``p`` with clones ``c`` and ``d`` sharing merged content.

    ``p`` declares x and y. ``c`` inherits x and adds z. ``d`` inherits y under
    the name ``y_alt`` and adds w.
    """

    return build_store(
        [
            Machine("p"),
            Machine("c", cloneof="p", romof="p"),
            Machine("d", cloneof="p", romof="p"),
        ],
        [
            rom("p", "x", CONTENT["x"]),
            rom("p", "y", CONTENT["y"]),
            rom("c", "x", CONTENT["x"], merge="x"),
            rom("c", "z", CONTENT["z"]),
            rom("d", "y_alt", CONTENT["y"], merge="y"),
            rom("d", "w", CONTENT["w"]),
        ],
    )


def auditor_for(store: InMemoryCatalogStore) -> Auditor:
    return Auditor(store)


__all__ = ["CONTENT", "auditor_for", "blob", "build_store", "checksum_of", "family_store", "rom"]
