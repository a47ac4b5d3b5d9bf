# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Serializable verification report models."""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models import Checksum
from ..policy import PackagingPolicy


class PartStatus(str, Enum):
    """Verification outcome of one expected part."""

    OK = "ok"
    MISNAMED = "misnamed"
    DUPLICATE_CONTENT_UNRESOLVED = "duplicate_content_unresolved"
    FIXABLE = "fixable"
    MISSING = "missing"
    UNKNOWN = "unknown"


REPAIRABLE_STATUSES: frozenset[PartStatus] = frozenset({PartStatus.MISNAMED, PartStatus.FIXABLE})


class MachineStatus(str, Enum):
    """Overall verification outcome of a machine."""

    COMPLETE = "complete"
    FIXABLE = "fixable"
    INCOMPLETE = "incomplete"


class SampleStatus(str, Enum):
    """Presence of a sample in its sample archive."""

    PRESENT = "present"
    MISSING = "missing"
    UNCHECKED = "unchecked"


class FixSuggestion(BaseModel):
    """A repair the user can apply by hand, expressed as ``archive/entry`` paths."""

    model_config = ConfigDict(frozen=True)

    action: Literal["rename", "copy"]
    source: str
    target: str

    def __str__(self) -> str:
        return f"{self.action} {self.source} -> {self.target}"


class PartReport(BaseModel):
    """Classification of one expected part."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str
    origin: str
    declared_name: str
    status: PartStatus
    required: bool = True
    crc32: str | None = None
    sha1: str | None = None
    md5: str | None = None
    size: int | None = None
    found: str | None = None
    suggestion: FixSuggestion | None = None
    donors: tuple[str, ...] = ()
    cause: str | None = None


class UnneededFile(BaseModel):
    """A supplied file that no expected part of the machine consumed."""

    model_config = ConfigDict(frozen=True)

    archive: str
    name: str
    crc32: str | None = None
    sha1: str | None = None
    md5: str | None = None
    size: int | None = None
    misplaced: bool = False
    required_by: tuple[str, ...] = ()


class UnreadableFile(BaseModel):
    """A supplied file whose bytes could not be read."""

    model_config = ConfigDict(frozen=True)

    archive: str
    name: str
    error: str


class SampleReport(BaseModel):
    """Presence check of one expected sample."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: str
    status: SampleStatus


class ReportError(BaseModel):
    """An error attached to a machine report instead of aborting the run."""

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str
    archive: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException, *, archive: str | None = None) -> ReportError:
        """Return the report error describing ``exc``."""

        return cls(kind=type(exc).__name__, message=str(exc), archive=archive)


class MachineReport(BaseModel):
    """Actionable verification result for one machine."""

    model_config = ConfigDict(frozen=True)

    machine: str
    policy: PackagingPolicy
    status: MachineStatus
    parts: tuple[PartReport, ...] = ()
    samples: tuple[SampleReport, ...] = ()
    unneeded: tuple[UnneededFile, ...] = ()
    unreadable: tuple[UnreadableFile, ...] = ()
    errors: tuple[ReportError, ...] = ()
    issues: tuple[str, ...] = Field(default_factory=tuple)

    def part(self, name: str) -> PartReport:
        """Return the report of the expected part called ``name``.

        Raises:
            KeyError: If no expected part carries that name.
        """

        for item in self.parts:
            if item.name == name or item.declared_name == name:
                return item
        raise KeyError(name)

    def count(self, status: PartStatus) -> int:
        """Return how many parts were classified with ``status``."""

        return sum(1 for item in self.parts if item.status is status)

    def summary(self) -> dict[str, int]:
        """Return part counts keyed by status value, omitting empty statuses."""

        counts = Counter(item.status.value for item in self.parts)
        return {status.value: counts[status.value] for status in PartStatus if counts[status.value]}

    def suggestions(self) -> tuple[FixSuggestion, ...]:
        """Return every rename or copy suggestion in part order."""

        return tuple(item.suggestion for item in self.parts if item.suggestion is not None)


def checksum_fields(checksum: Checksum | None) -> dict[str, str | None]:
    """Return the ``crc32``/``sha1``/``md5`` report fields of ``checksum``."""

    if checksum is None:
        return {"crc32": None, "sha1": None, "md5": None}
    return {"crc32": checksum.crc32, "sha1": checksum.sha1, "md5": checksum.md5}


__all__ = [
    "REPAIRABLE_STATUSES",
    "FixSuggestion",
    "MachineReport",
    "MachineStatus",
    "PartReport",
    "PartStatus",
    "ReportError",
    "SampleReport",
    "SampleStatus",
    "UnneededFile",
    "UnreadableFile",
    "checksum_fields",
]
