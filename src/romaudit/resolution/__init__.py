# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Clone/merge resolution of machine content requirements."""

from __future__ import annotations

from .engine import AncestorChain, ResolutionEngine, same_content
from .models import CatalogIssue, EffectiveSet, ExpectedPart, ExpectedSample

__all__ = [
    "AncestorChain",
    "CatalogIssue",
    "EffectiveSet",
    "ExpectedPart",
    "ExpectedSample",
    "ResolutionEngine",
    "same_content",
]
