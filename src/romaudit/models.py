# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable catalog entities shared across the romaudit package."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from re import Pattern
from typing import Final

_HEX: Final[Pattern[str]] = re.compile(r"^[0-9a-f]+$")
CRC32_LENGTH: Final[int] = 8
SHA1_LENGTH: Final[int] = 40
MD5_LENGTH: Final[int] = 32


def _normalise_hex(value: str | None, *, length: int, label: str) -> str | None:
    """Return ``value`` lower-cased and validated as a ``length`` digit hex string."""

    if value is None:
        return None
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        return None
    if len(text) < length:
        text = text.zfill(length)
    if len(text) != length or not _HEX.match(text):
        raise ValueError(f"invalid {label} checksum '{value}'")
    return text


@dataclass(frozen=True, slots=True)
class Checksum:
    """Content identity of a part, compared field by field.

    Catalog data may carry any subset of the digests (disks declare SHA1
    only, some DATs declare CRC32 only, others add MD5). Digests computed
    from real bytes always carry all three.
    """

    crc32: str | None = None
    sha1: str | None = None
    md5: str | None = None

    def __post_init__(self) -> None:
        """Normalise casing and reject empty or malformed digests."""

        object.__setattr__(self, "crc32", _normalise_hex(self.crc32, length=CRC32_LENGTH, label="crc32"))
        object.__setattr__(self, "sha1", _normalise_hex(self.sha1, length=SHA1_LENGTH, label="sha1"))
        object.__setattr__(self, "md5", _normalise_hex(self.md5, length=MD5_LENGTH, label="md5"))
        if self.crc32 is None and self.sha1 is None and self.md5 is None:
            raise ValueError("a checksum requires a crc32, sha1 or md5 digest")

    def matches(self, other: Checksum) -> bool:
        """Return ``True`` when every digest present on both sides is equal."""

        compared = False
        if self.sha1 is not None and other.sha1 is not None:
            if self.sha1 != other.sha1:
                return False
            compared = True
        if self.crc32 is not None and other.crc32 is not None:
            if self.crc32 != other.crc32:
                return False
            compared = True
        if self.md5 is not None and other.md5 is not None:
            if self.md5 != other.md5:
                return False
            compared = True
        return compared

    def __str__(self) -> str:
        parts = []
        if self.crc32 is not None:
            parts.append(f"crc32:{self.crc32}")
        if self.sha1 is not None:
            parts.append(f"sha1:{self.sha1}")
        if self.md5 is not None:
            parts.append(f"md5:{self.md5}")
        return " ".join(parts)


@dataclass(frozen=True, slots=True)
class Digest:
    """Checksums and size computed from real bytes."""

    checksum: Checksum
    size: int


class PartKind(str, Enum):
    """Kinds of content parts a machine may declare."""

    ROM = "rom"
    DISK = "disk"


class DumpStatus(str, Enum):
    """Dump quality declared by the catalog for a part."""

    GOOD = "good"
    BADDUMP = "baddump"
    NODUMP = "nodump"
    VERIFIED = "verified"


class Relation(str, Enum):
    """Parent relations a machine may declare."""

    CLONE_OF = "cloneof"
    ROM_OF = "romof"


@dataclass(frozen=True, slots=True)
class Machine:
    """A named set of required content parts."""

    name: str
    cloneof: str | None = None
    romof: str | None = None
    sampleof: str | None = None
    is_device: bool = False
    is_bios: bool = False
    runnable: bool = True
    description: str | None = None
    year: str | None = None
    manufacturer: str | None = None
    source_file: str | None = None
    device_refs: tuple[str, ...] = ()

    def parent(self, relation: Relation) -> str | None:
        """Return the parent named through ``relation``, if any."""

        value = self.cloneof if relation is Relation.CLONE_OF else self.romof
        return value or None


@dataclass(frozen=True, slots=True)
class ContentPart:
    """A rom or disk declared by a machine."""

    machine: str
    name: str
    kind: PartKind = PartKind.ROM
    size: int | None = None
    checksum: Checksum | None = None
    status: DumpStatus = DumpStatus.GOOD
    merge: str | None = None
    optional: bool = False

    def __post_init__(self) -> None:
        """Coerce no-dump parts so they never carry a checksum."""

        if self.checksum is None and self.status is not DumpStatus.NODUMP:
            object.__setattr__(self, "status", DumpStatus.NODUMP)
        if self.status is DumpStatus.NODUMP and self.checksum is not None:
            object.__setattr__(self, "checksum", None)

    @property
    def is_nodump(self) -> bool:
        """Return ``True`` when the part's content is unknown."""

        return self.checksum is None


@dataclass(frozen=True, slots=True)
class Sample:
    """A sample declared by a machine, verified by presence only."""

    machine: str
    name: str


@dataclass(frozen=True, slots=True, order=True)
class PartRef:
    """Reference to a logical part declared by a machine."""

    machine: str
    name: str

    def __str__(self) -> str:
        return f"{self.machine}:{self.name}"


@dataclass(frozen=True, slots=True)
class DatHeader:
    """Descriptive header of a catalog document."""

    name: str = ""
    description: str = ""
    version: str = ""
    extra: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class MachineEntry:
    """A machine bundled with the parts and samples it declares."""

    machine: Machine
    parts: tuple[ContentPart, ...] = field(default_factory=tuple)
    samples: tuple[Sample, ...] = field(default_factory=tuple)


__all__ = [
    "Checksum",
    "ContentPart",
    "DatHeader",
    "Digest",
    "DumpStatus",
    "Machine",
    "MachineEntry",
    "PartKind",
    "PartRef",
    "Relation",
    "Sample",
]
