# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Packaging policies controlling where inherited content physically lives."""

from __future__ import annotations

from enum import Enum
from typing import Final


class PackagingPolicy(str, Enum):
    """Physical layout of a collection relative to clone/merge relationships."""

    SPLIT = "split"
    MERGED = "merged"
    NON_MERGED = "non-merged"

    @classmethod
    def parse(cls, value: str | PackagingPolicy) -> PackagingPolicy:
        """Return the policy named by ``value``, accepting common spellings.

        Args:
            value: Policy name such as ``split``, ``merged``, ``non-merged`` or ``full``.

        Returns:
            PackagingPolicy: Matching policy member.

        Raises:
            ValueError: If ``value`` does not name a known policy.
        """

        if isinstance(value, PackagingPolicy):
            return value
        key = value.strip().lower().replace("_", "-")
        try:
            return _ALIASES[key]
        except KeyError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"unknown packaging policy '{value}', expected one of: {choices}") from exc


_ALIASES: Final[dict[str, PackagingPolicy]] = {
    "split": PackagingPolicy.SPLIT,
    "merged": PackagingPolicy.MERGED,
    "merge": PackagingPolicy.MERGED,
    "non-merged": PackagingPolicy.NON_MERGED,
    "nonmerged": PackagingPolicy.NON_MERGED,
    "full": PackagingPolicy.NON_MERGED,
}

DEFAULT_POLICY: Final[PackagingPolicy] = PackagingPolicy.NON_MERGED

__all__ = ["DEFAULT_POLICY", "PackagingPolicy"]
