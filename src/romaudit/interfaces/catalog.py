# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog store contracts consumed by the resolution and query engines."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from romaudit.models import ContentPart, Machine, Relation, Sample


@runtime_checkable
class CatalogStore(Protocol):
    """Define read-only access to parsed catalog entities."""

    @abstractmethod
    def get_machine(self, name: str) -> Machine | None:
        """Return the machine called ``name``.

        Args:
            name: Unique machine identifier.

        Returns:
            Machine | None: Machine entity, or ``None`` when the store does not hold it.
        """
        raise NotImplementedError("CatalogStore.get_machine must be implemented")

    @abstractmethod
    def list_machines(self) -> Sequence[Machine]:
        """Return every machine held by the store in a stable order.

        Returns:
            Sequence[Machine]: Machines sorted by name.
        """
        raise NotImplementedError("CatalogStore.list_machines must be implemented")

    @abstractmethod
    def get_parts_of(self, name: str) -> Sequence[ContentPart]:
        """Return the roms and disks declared by machine ``name``.

        Args:
            name: Machine identifier.

        Returns:
            Sequence[ContentPart]: Parts in declaration order, empty for unknown machines.
        """
        raise NotImplementedError("CatalogStore.get_parts_of must be implemented")

    @abstractmethod
    def get_samples_of(self, name: str) -> Sequence[Sample]:
        """Return the samples declared by machine ``name``.

        Args:
            name: Machine identifier.

        Returns:
            Sequence[Sample]: Samples in declaration order, empty for unknown machines.
        """
        raise NotImplementedError("CatalogStore.get_samples_of must be implemented")

    @abstractmethod
    def resolve_parent(self, name: str, relation: Relation) -> str | None:
        """Return the parent of ``name`` through ``relation``.

        Args:
            name: Machine identifier.
            relation: ``cloneof`` or ``romof`` relation to follow.

        Returns:
            str | None: Parent identifier, which may name a machine absent from the store.
        """
        raise NotImplementedError("CatalogStore.resolve_parent must be implemented")

    @abstractmethod
    def resolve_sample_parent(self, name: str) -> str | None:
        """Return the machine whose samples ``name`` shares.

        Args:
            name: Machine identifier.

        Returns:
            str | None: Sample parent identifier, if declared.
        """
        raise NotImplementedError("CatalogStore.resolve_sample_parent must be implemented")


__all__ = ["CatalogStore"]
