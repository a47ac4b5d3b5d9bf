# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Archive verification against resolved content requirements."""

from __future__ import annotations

from .collection import CollectionContentView
from .engine import VerificationEngine
from .hashing import DEFAULT_CHUNK_SIZE, HashCache, HashCacheInfo, chunked_digest, compute_digest
from .report import (
    FixSuggestion,
    MachineReport,
    MachineStatus,
    PartReport,
    PartStatus,
    ReportError,
    SampleReport,
    SampleStatus,
    UnneededFile,
    UnreadableFile,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "CollectionContentView",
    "FixSuggestion",
    "HashCache",
    "HashCacheInfo",
    "MachineReport",
    "MachineStatus",
    "PartReport",
    "PartStatus",
    "ReportError",
    "SampleReport",
    "SampleStatus",
    "UnneededFile",
    "UnreadableFile",
    "VerificationEngine",
    "chunked_digest",
    "compute_digest",
]
