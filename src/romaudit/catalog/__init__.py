# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Public export surface for romaudit's catalog components."""

from __future__ import annotations

from .importer import DatImport, load_dat, parse_dat_text
from .index import ChecksumIndex, IndexedPart
from .store import InMemoryCatalogStore

__all__ = [
    "ChecksumIndex",
    "DatImport",
    "InMemoryCatalogStore",
    "IndexedPart",
    "load_dat",
    "parse_dat_text",
]
