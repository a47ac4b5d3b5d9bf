# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Value objects describing the resolved content requirement of a machine."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..models import Checksum, ContentPart, DumpStatus, PartKind, PartRef
from ..policy import PackagingPolicy


@dataclass(frozen=True, slots=True)
class ExpectedPart:
    """A part a machine needs, placed in the archive that must physically hold it.

    Attributes:
        name: Entry name expected inside ``location``.
        origin: Machine declaring the part.
        declared_name: Logical name used by ``origin``; differs from ``name``
            when the part is inherited under another name or renamed to avoid
            a collision in a merged archive.
        location: Archive expected to hold the bytes.
        checksum: Expected content, ``None`` for no-dump parts.
        required: ``False`` for no-dump and optional parts.
    """

    name: str
    origin: str
    declared_name: str
    location: str
    checksum: Checksum | None
    required: bool = True
    kind: PartKind = PartKind.ROM
    size: int | None = None
    status: DumpStatus = DumpStatus.GOOD
    merge: str | None = None

    @property
    def ref(self) -> PartRef:
        """Return the reference of the declaring part."""

        return PartRef(machine=self.origin, name=self.declared_name)

    @property
    def is_nodump(self) -> bool:
        """Return ``True`` when the expected content is unknown."""

        return self.checksum is None

    @classmethod
    def placed(cls, part: ContentPart, *, location: str, name: str | None = None) -> ExpectedPart:
        """Return ``part`` expected in ``location`` under ``name`` (its own name by default)."""

        return cls(
            name=name or part.name,
            origin=part.machine,
            declared_name=part.name,
            location=location,
            checksum=part.checksum,
            required=not (part.is_nodump or part.optional),
            kind=part.kind,
            size=part.size,
            status=part.status,
            merge=part.merge,
        )


@dataclass(frozen=True, slots=True)
class ExpectedSample:
    """A sample a machine needs together with the sample archive holding it."""

    name: str
    origin: str
    location: str


@dataclass(frozen=True, slots=True)
class CatalogIssue:
    """Non-fatal catalog inconsistency detected while resolving a machine."""

    machine: str
    message: str
    part: str | None = None

    def __str__(self) -> str:
        if self.part is None:
            return f"{self.machine}: {self.message}"
        return f"{self.machine}:{self.part}: {self.message}"


@dataclass(frozen=True, slots=True)
class EffectiveSet:
    """Fully resolved content requirement of one machine under one policy."""

    machine: str
    policy: PackagingPolicy
    parts: tuple[ExpectedPart, ...] = field(default_factory=tuple)
    samples: tuple[ExpectedSample, ...] = field(default_factory=tuple)
    device_parts: tuple[ContentPart, ...] = field(default_factory=tuple)
    issues: tuple[CatalogIssue, ...] = field(default_factory=tuple)

    @property
    def locations(self) -> tuple[str, ...]:
        """Return every archive holding at least one expected part, sorted."""

        return tuple(sorted({part.location for part in self.parts}))

    def parts_at(self, location: str) -> tuple[ExpectedPart, ...]:
        """Return the expected parts placed in archive ``location``."""

        return tuple(part for part in self.parts if part.location == location)

    def part_named(self, name: str, *, location: str | None = None) -> ExpectedPart | None:
        """Return the expected part called ``name``, optionally restricted to ``location``."""

        for part in self.parts:
            if part.name == name and (location is None or part.location == location):
                return part
        return None


__all__ = ["CatalogIssue", "EffectiveSet", "ExpectedPart", "ExpectedSample"]
