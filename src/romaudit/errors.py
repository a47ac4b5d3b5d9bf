# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared across romaudit subsystems."""

from __future__ import annotations


class RomAuditError(Exception):
    """Base class for every error raised by romaudit."""


class CatalogIntegrityError(RomAuditError):
    """Raised when catalog data violates semantic invariants for a machine.

    Attributes:
        machine: Name of the machine whose catalog entry is inconsistent, when known.
    """

    def __init__(self, message: str, *, machine: str | None = None) -> None:
        """Create the integrity error bound to an optional ``machine``.

        Args:
            message: Human readable description of the violation.
            machine: Machine the violation was detected on.
        """

        super().__init__(message)
        self.machine = machine


class ResolutionError(CatalogIntegrityError):
    """Raised when a machine's effective content set cannot be resolved."""


class MalformedCatalogEntry(RomAuditError):
    """Raised by the importer when a catalog record cannot be interpreted."""

    def __init__(self, message: str, *, position: int | None = None) -> None:
        """Create the error with the record ``position`` inside the document.

        Args:
            message: Description of the malformed record.
            position: Ordinal of the record within the document, when known.
        """

        super().__init__(message if position is None else f"{message} (record {position})")
        self.position = position


class ArchiveReadError(RomAuditError, OSError):
    """Raised when an archive or one of its entries cannot be read."""

    def __init__(self, message: str, *, archive: str | None = None, entry: str | None = None) -> None:
        """Create the read error with the failing ``archive`` and ``entry``.

        Args:
            message: Description of the failure.
            archive: Archive identifier that failed to open or read.
            entry: Entry name inside the archive, when the failure is entry-specific.
        """

        super().__init__(message)
        self.archive = archive
        self.entry = entry


class ConfigError(RomAuditError):
    """Raised when configuration input is invalid."""


__all__ = [
    "ArchiveReadError",
    "CatalogIntegrityError",
    "ConfigError",
    "MalformedCatalogEntry",
    "ResolutionError",
    "RomAuditError",
]
