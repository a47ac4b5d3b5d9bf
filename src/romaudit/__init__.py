# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""ROM set resolution and archive verification against DAT catalogs."""

from __future__ import annotations

from importlib import metadata

from .auditor import AuditSnapshot, Auditor, audit_collection
from .errors import (
    ArchiveReadError,
    CatalogIntegrityError,
    ConfigError,
    MalformedCatalogEntry,
    ResolutionError,
    RomAuditError,
)
from .policy import PackagingPolicy

__all__ = [
    "ArchiveReadError",
    "AuditSnapshot",
    "Auditor",
    "CatalogIntegrityError",
    "ConfigError",
    "MalformedCatalogEntry",
    "PackagingPolicy",
    "ResolutionError",
    "RomAuditError",
    "__version__",
    "audit_collection",
]

try:
    __version__ = metadata.version("romaudit")
except metadata.PackageNotFoundError:  # pragma: no cover - local development fallback
    __version__ = "0.0.0"
