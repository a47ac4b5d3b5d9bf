# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Clone/merge resolution of effective content sets."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..errors import ResolutionError
from ..interfaces.catalog import CatalogStore
from ..models import Checksum, ContentPart, Machine, PartRef, Relation
from ..policy import DEFAULT_POLICY, PackagingPolicy
from .models import CatalogIssue, EffectiveSet, ExpectedPart, ExpectedSample

LOGGER = logging.getLogger(__name__)

ParentStep = Callable[[str], "str | None"]


@dataclass(frozen=True, slots=True)
class AncestorChain:
    """Ancestors of a machine through one relation, nearest first.

    Attributes:
        names: Ancestors present in the store.
        missing: Name of the first referenced ancestor absent from the store.
    """

    names: tuple[str, ...] = ()
    missing: str | None = None

    @property
    def root(self) -> str | None:
        """Return the top-most ancestor present in the store."""

        return self.names[-1] if self.names else None


@dataclass(frozen=True, slots=True)
class _Placement:
    """Entry of a merged archive: the declaring part and its name inside the archive."""

    name: str
    part: ContentPart


def same_content(left: Checksum | None, right: Checksum | None) -> bool:
    """Return ``True`` when two declared checksums describe the same content.

    Two no-dump declarations are considered equal; a no-dump never equals a
    dumped part.
    """

    if left is None or right is None:
        return left is None and right is None
    return left.matches(right)


class ResolutionEngine:
    """Compute effective content sets from an immutable catalog store.

    The engine walks ``romof``, ``cloneof`` and ``sampleof`` references by name
    through the store, bounding every walk by the number of machines in the
    catalog. Results are memoised per ``(machine, policy)`` and safe to share
    across worker threads.
    """

    def __init__(self, store: CatalogStore) -> None:
        """Bind the engine to ``store`` and index clone relationships.

        Args:
            store: Immutable catalog store to resolve against.
        """

        self._store = store
        machines = store.list_machines()
        self._limit = len(machines)
        clones: dict[str, list[str]] = defaultdict(list)
        for machine in machines:
            parent = machine.cloneof
            if parent and parent != machine.name:
                clones[parent].append(machine.name)
        self._clones: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {parent: tuple(sorted(children)) for parent, children in clones.items()},
        )
        self._sets: dict[tuple[str, PackagingPolicy], EffectiveSet] = {}
        self._layouts: dict[str, Mapping[PartRef, _Placement]] = {}
        self._lock = threading.Lock()

    @property
    def store(self) -> CatalogStore:
        """Return the catalog store the engine resolves against."""

        return self._store

    def clones_of(self, name: str) -> tuple[str, ...]:
        """Return the direct clones of ``name`` sorted by name."""

        return self._clones.get(name, ())

    def resolve(self, machine: str, policy: PackagingPolicy | str = DEFAULT_POLICY) -> EffectiveSet:
        """Return the effective content set of ``machine`` under ``policy``.

        Args:
            machine: Machine identifier.
            policy: Packaging policy deciding where content must reside.

        Returns:
            EffectiveSet: Resolved parts, samples, excluded device parts and
            non-fatal catalog issues.

        Raises:
            ResolutionError: If the machine is unknown, takes part in an ancestry
                cycle, or declares one logical name with conflicting content.
        """

        resolved_policy = PackagingPolicy.parse(policy)
        key = (machine, resolved_policy)
        with self._lock:
            cached = self._sets.get(key)
        if cached is not None:
            return cached
        result = self._resolve(machine, resolved_policy)
        with self._lock:
            return self._sets.setdefault(key, result)

    def ancestors(self, name: str, relation: Relation) -> AncestorChain:
        """Return the ancestors of ``name`` through ``relation``.

        ``romof`` walks fall back to ``cloneof`` for machines that declare a
        clone parent without a rom parent.

        Raises:
            ResolutionError: If the chain revisits a machine or exceeds the catalog size.
        """

        step = self._rom_parent if relation is Relation.ROM_OF else self._clone_parent
        return self._walk(name, step, relation.value)

    def sample_ancestors(self, name: str) -> AncestorChain:
        """Return the ``sampleof`` ancestors of ``name``.

        Raises:
            ResolutionError: If the chain revisits a machine or exceeds the catalog size.
        """

        return self._walk(name, self._sample_parent, "sampleof")

    def merged_root(self, name: str) -> str:
        """Return the machine whose archive holds ``name``'s content under the merged policy.

        Raises:
            ResolutionError: If the ``cloneof`` chain of ``name`` is cyclic.
        """

        return self.ancestors(name, Relation.CLONE_OF).root or name

    # Internal helpers -----------------------------------------------------------------

    def _rom_parent(self, name: str) -> str | None:
        return self._store.resolve_parent(name, Relation.ROM_OF) or self._store.resolve_parent(
            name,
            Relation.CLONE_OF,
        )

    def _clone_parent(self, name: str) -> str | None:
        return self._store.resolve_parent(name, Relation.CLONE_OF)

    def _sample_parent(self, name: str) -> str | None:
        parent = self._store.resolve_sample_parent(name)
        # listxml names a machine's own sample set with sampleof="<itself>"
        return None if parent == name else parent

    def _walk(self, name: str, step: ParentStep, label: str) -> AncestorChain:
        visited = {name}
        names: list[str] = []
        current = name
        while True:
            parent = step(current)
            if parent is None:
                return AncestorChain(names=tuple(names))
            if parent in visited:
                raise ResolutionError(f"cyclic {label} chain: '{current}' refers back to '{parent}'", machine=name)
            if len(names) >= self._limit:
                raise ResolutionError(f"{label} chain of '{name}' exceeds the catalog size", machine=name)
            if self._store.get_machine(parent) is None:
                return AncestorChain(names=tuple(names), missing=parent)
            visited.add(parent)
            names.append(parent)
            current = parent

    def _resolve(self, name: str, policy: PackagingPolicy) -> EffectiveSet:
        machine = self._store.get_machine(name)
        if machine is None:
            raise ResolutionError(f"unknown machine '{name}'", machine=name)
        rom_chain = self.ancestors(name, Relation.ROM_OF)
        clone_chain = self.ancestors(name, Relation.CLONE_OF)
        sample_chain = self.sample_ancestors(name)

        issues: list[CatalogIssue] = []
        if rom_chain.missing is not None:
            issues.append(CatalogIssue(name, f"romof ancestor '{rom_chain.missing}' is not in the catalog"))
        if clone_chain.missing is not None and clone_chain.missing != rom_chain.missing:
            issues.append(CatalogIssue(name, f"cloneof ancestor '{clone_chain.missing}' is not in the catalog"))

        declared = self._declared_parts(name, issues)
        devices = self._device_keys(machine)
        kept = [part for part in declared if (part.name, part.checksum) not in devices]
        device_parts = tuple(part for part in declared if (part.name, part.checksum) in devices)

        expected: list[ExpectedPart] = []
        if policy is PackagingPolicy.NON_MERGED:
            expected.extend(ExpectedPart.placed(part, location=name) for part in kept)
        elif policy is PackagingPolicy.SPLIT:
            expected.extend(self._place_split(part, rom_chain, issues) for part in kept)
        else:
            root = clone_chain.root or name
            layout = self._merged_layout(root)
            expected.extend(self._place_merged(part, root, layout, rom_chain, issues) for part in kept)
            expected.extend(self._inherited_clone_parts(name, root, layout, expected))

        LOGGER.debug("resolved %s under %s: %d parts, %d issues", name, policy.value, len(expected), len(issues))
        return EffectiveSet(
            machine=name,
            policy=policy,
            parts=tuple(expected),
            samples=self._place_samples(name, policy, sample_chain),
            device_parts=device_parts,
            issues=tuple(issues),
        )

    def _declared_parts(self, name: str, issues: list[CatalogIssue]) -> tuple[ContentPart, ...]:
        unique: dict[str, ContentPart] = {}
        for part in self._store.get_parts_of(name):
            existing = unique.get(part.name)
            if existing is None:
                unique[part.name] = part
                continue
            if existing.kind is part.kind and same_content(existing.checksum, part.checksum):
                issues.append(CatalogIssue(name, "duplicate declaration collapsed", part=part.name))
                continue
            raise ResolutionError(f"part '{part.name}' is declared twice with different content", machine=name)
        return tuple(unique.values())

    def _device_keys(self, machine: Machine) -> frozenset[tuple[str, Checksum | None]]:
        keys: set[tuple[str, Checksum | None]] = set()
        for device in machine.device_refs:
            if device == machine.name:
                continue
            if self._store.get_machine(device) is None:
                LOGGER.debug("device '%s' referenced by '%s' is not in the catalog", device, machine.name)
                continue
            keys.update((part.name, part.checksum) for part in self._store.get_parts_of(device))
        return frozenset(keys)

    def _find_part(self, machine: str, name: str) -> ContentPart | None:
        for part in self._store.get_parts_of(machine):
            if part.name == name:
                return part
        return None

    def _merge_owner(
        self,
        part: ContentPart,
        chain: AncestorChain,
        issues: list[CatalogIssue],
    ) -> ContentPart | None:
        """Return the ancestor part finally holding the bytes of merge-tagged ``part``.

        Returns ``None`` and records an issue when the merge cannot be honoured.
        """

        target = part.merge
        for ancestor in chain.names:
            if target is None:
                break
            candidate = self._find_part(ancestor, target)
            if candidate is None:
                continue
            if not same_content(candidate.checksum, part.checksum):
                issues.append(
                    CatalogIssue(part.machine, f"merge target '{ancestor}:{target}' has different content", part=part.name),
                )
                return None
            if candidate.merge is None:
                return candidate
            target = candidate.merge
        if chain.missing is not None:
            reason = f"merge target '{target}' lies beyond missing ancestor '{chain.missing}'"
        elif not chain.names:
            reason = f"merge target '{target}' declared without a romof parent"
        else:
            reason = f"merge target '{target}' is not declared by any romof ancestor"
        issues.append(CatalogIssue(part.machine, reason, part=part.name))
        return None

    def _place_split(self, part: ContentPart, chain: AncestorChain, issues: list[CatalogIssue]) -> ExpectedPart:
        if part.merge is None:
            return ExpectedPart.placed(part, location=part.machine)
        owner = self._merge_owner(part, chain, issues)
        if owner is None:
            return ExpectedPart.placed(part, location=part.machine)
        return ExpectedPart.placed(part, location=owner.machine, name=owner.name)

    def _place_merged(
        self,
        part: ContentPart,
        root: str,
        layout: Mapping[PartRef, _Placement],
        chain: AncestorChain,
        issues: list[CatalogIssue],
    ) -> ExpectedPart:
        owner = self._merge_owner(part, chain, issues) if part.merge is not None else None
        if owner is None:
            placement = layout.get(PartRef(machine=part.machine, name=part.name))
            return ExpectedPart.placed(part, location=root, name=placement.name if placement else part.name)
        try:
            owner_root = self.merged_root(owner.machine)
        except ResolutionError as exc:
            issues.append(CatalogIssue(part.machine, f"owner '{owner.machine}' cannot be merged: {exc}", part=part.name))
            owner_root = owner.machine
        owner_layout = self._merged_layout(owner_root)
        placement = owner_layout.get(PartRef(machine=owner.machine, name=owner.name))
        return ExpectedPart.placed(part, location=owner_root, name=placement.name if placement else owner.name)

    def _inherited_clone_parts(
        self,
        name: str,
        root: str,
        layout: Mapping[PartRef, _Placement],
        expected: list[ExpectedPart],
    ) -> Iterator[ExpectedPart]:
        """Yield the parts of ``name``'s clones that live in the merged archive."""

        descendants = set(self._descendants(name))
        taken = {part.name for part in expected if part.location == root}
        for ref, placement in layout.items():
            if ref.machine not in descendants or placement.name in taken:
                continue
            taken.add(placement.name)
            yield ExpectedPart.placed(placement.part, location=root, name=placement.name)

    def _descendants(self, name: str) -> Iterator[str]:
        queue = deque(self.clones_of(name))
        seen = {name}
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            yield current
            queue.extend(self.clones_of(current))

    def _merged_layout(self, root: str) -> Mapping[PartRef, _Placement]:
        """Return the entries of the merged archive named after ``root``.

        Members are laid out root first, then clones breadth first in name
        order. A clone part whose name is already taken by different content
        is placed under ``<clone>/<name>``.
        """

        with self._lock:
            cached = self._layouts.get(root)
        if cached is not None:
            return cached
        entries: dict[str, Checksum | None] = {}
        layout: dict[PartRef, _Placement] = {}
        for member in (root, *self._descendants(root)):
            machine = self._store.get_machine(member)
            if machine is None:
                continue
            try:
                chain = self.ancestors(member, Relation.ROM_OF)
                parts = self._declared_parts(member, [])
            except ResolutionError as exc:
                LOGGER.debug("leaving '%s' out of merged archive '%s': %s", member, root, exc)
                continue
            devices = self._device_keys(machine)
            for part in parts:
                if (part.name, part.checksum) in devices:
                    continue
                if part.merge is not None and self._merge_owner(part, chain, []) is not None:
                    continue
                entry = part.name
                if entry in entries and not same_content(entries[entry], part.checksum):
                    entry = f"{member}/{part.name}"
                entries.setdefault(entry, part.checksum)
                layout[PartRef(machine=member, name=part.name)] = _Placement(name=entry, part=part)
        frozen = MappingProxyType(layout)
        with self._lock:
            return self._layouts.setdefault(root, frozen)

    def _place_samples(
        self,
        name: str,
        policy: PackagingPolicy,
        chain: AncestorChain,
    ) -> tuple[ExpectedSample, ...]:
        samples: list[ExpectedSample] = []
        seen: set[str] = set()
        for sample in self._store.get_samples_of(name):
            if sample.name in seen:
                continue
            seen.add(sample.name)
            location = name
            if policy is not PackagingPolicy.NON_MERGED:
                for ancestor in chain.names:
                    if any(item.name == sample.name for item in self._store.get_samples_of(ancestor)):
                        location = ancestor
            samples.append(ExpectedSample(name=sample.name, origin=name, location=location))
        return tuple(samples)


__all__ = ["AncestorChain", "ResolutionEngine", "same_content"]
