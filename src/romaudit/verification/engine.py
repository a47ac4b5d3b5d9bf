# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Match supplied archive content against a machine's effective content set."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ..catalog.index import ChecksumIndex
from ..errors import ArchiveReadError, ResolutionError
from ..interfaces.archive import ArchiveEntry, ContentView
from ..models import Digest, PartRef
from ..policy import DEFAULT_POLICY, PackagingPolicy
from ..resolution import EffectiveSet, ExpectedPart, ExpectedSample, ResolutionEngine
from .report import (
    REPAIRABLE_STATUSES,
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
    checksum_fields,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _HashedEntry:
    entry: ArchiveEntry
    digest: Digest
    consumed: bool = False

    @property
    def name(self) -> str:
        return self.entry.name


@dataclass(slots=True)
class _ArchiveContent:
    """Hashed view of one archive, local to a single machine verification."""

    name: str
    files: list[_HashedEntry] = field(default_factory=list)
    unreadable: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    def named(self, name: str) -> _HashedEntry | None:
        for item in self.files:
            if item.name == name:
                return item
        return None


def _content_matches(part: ExpectedPart, digest: Digest) -> bool:
    if part.checksum is None:
        return False
    if part.size is not None and part.size != digest.size:
        return False
    return part.checksum.matches(digest.checksum)


class VerificationEngine:
    """Classify the content of a machine's archives against its effective set."""

    def __init__(self, resolver: ResolutionEngine, index: ChecksumIndex) -> None:
        """Create the engine.

        Args:
            resolver: Engine producing effective content sets.
            index: Catalog checksum index used to explain unneeded files.
        """

        self._resolver = resolver
        self._index = index

    def verify(
        self,
        machine: str,
        supplied_files: Sequence[ArchiveEntry] | None,
        policy: PackagingPolicy | str = DEFAULT_POLICY,
        view: ContentView | None = None,
    ) -> MachineReport:
        """Verify ``supplied_files`` as the archive of ``machine``.

        Args:
            machine: Machine identifier.
            supplied_files: Entries of the machine's own archive, or ``None`` to
                read that archive through ``view``; a failure to enumerate it
                leaves every part located there missing with the cause.
            policy: Packaging policy the collection follows.
            view: Read-only view of the rest of the collection, used to read
                inherited archives and to locate donors for missing content.

        Returns:
            MachineReport: Per-part classification, leftovers and attached errors.
        """

        resolved_policy = PackagingPolicy.parse(policy)
        if view is None:
            raise ValueError("a content view is required to verify a machine")
        try:
            effective = self._resolver.resolve(machine, resolved_policy)
        except ResolutionError as exc:
            LOGGER.warning("cannot resolve %s: %s", machine, exc)
            return MachineReport(
                machine=machine,
                policy=resolved_policy,
                status=MachineStatus.INCOMPLETE,
                errors=(ReportError.from_exception(exc),),
            )

        errors: list[ReportError] = []
        archives: dict[str, _ArchiveContent] = {
            machine: (
                self._hash_remote(machine, view, errors)
                if supplied_files is None
                else self._hash_local(machine, supplied_files, view)
            ),
        }
        for location in effective.locations:
            if location not in archives:
                archives[location] = self._hash_remote(location, view, errors)

        parts = self._classify(effective, archives, view)
        samples = self._check_samples(effective.samples, view, errors)
        unneeded = self._unneeded(effective, archives[machine])
        unreadable = sorted(
            (
                UnreadableFile(archive=content.name, name=name, error=message)
                for content in archives.values()
                for name, message in content.unreadable.items()
            ),
            key=lambda item: (item.archive, item.name),
        )
        return MachineReport(
            machine=machine,
            policy=resolved_policy,
            status=_machine_status(parts, samples),
            parts=tuple(parts),
            samples=tuple(samples),
            unneeded=tuple(unneeded),
            unreadable=tuple(unreadable),
            errors=tuple(errors),
            issues=tuple(str(issue) for issue in effective.issues),
        )

    def _hash_local(self, machine: str, supplied: Sequence[ArchiveEntry], view: ContentView) -> _ArchiveContent:
        content = _ArchiveContent(name=machine)
        for entry in sorted(supplied, key=lambda item: item.name):
            self._hash_into(content, entry, view)
        return content

    def _hash_remote(self, location: str, view: ContentView, errors: list[ReportError]) -> _ArchiveContent:
        content = _ArchiveContent(name=location)
        try:
            entries = view.entries(location)
        except ArchiveReadError as exc:
            content.error = str(exc)
            errors.append(ReportError.from_exception(exc, archive=location))
            return content
        for entry in sorted(entries or (), key=lambda item: item.name):
            self._hash_into(content, entry, view)
        return content

    @staticmethod
    def _hash_into(content: _ArchiveContent, entry: ArchiveEntry, view: ContentView) -> None:
        try:
            digest = view.digest_of(entry)
        except ArchiveReadError as exc:
            LOGGER.debug("unreadable entry %s/%s: %s", content.name, entry.name, exc)
            content.unreadable[entry.name] = str(exc)
            return
        content.files.append(_HashedEntry(entry=entry, digest=digest))

    def _classify(
        self,
        effective: EffectiveSet,
        archives: dict[str, _ArchiveContent],
        view: ContentView,
    ) -> list[PartReport]:
        results: dict[int, PartReport] = {}
        pending: list[tuple[int, ExpectedPart]] = []
        placeholders: list[ExpectedPart] = []

        for position, part in enumerate(effective.parts):
            content = archives[part.location]
            if part.checksum is None:
                placeholders.append(part)
                results[position] = _report(part, PartStatus.UNKNOWN)
                continue
            exact = content.named(part.name)
            if exact is not None and not exact.consumed and _content_matches(part, exact.digest):
                exact.consumed = True
                results[position] = _report(part, PartStatus.OK, found=exact.name)
            else:
                pending.append((position, part))

        unresolved: list[tuple[int, ExpectedPart]] = []
        for position, part in pending:
            content = archives[part.location]
            candidate = next(
                (item for item in content.files if not item.consumed and _content_matches(part, item.digest)),
                None,
            )
            if candidate is None:
                unresolved.append((position, part))
                continue
            candidate.consumed = True
            results[position] = _report(
                part,
                PartStatus.MISNAMED,
                found=candidate.name,
                suggestion=FixSuggestion(
                    action="rename",
                    source=f"{content.name}/{candidate.name}",
                    target=f"{content.name}/{part.name}",
                ),
            )

        # a no-dump only claims its same-named file once no dumped part wants those bytes
        for part in placeholders:
            placeholder = archives[part.location].named(part.name)
            if placeholder is not None and not placeholder.consumed:
                placeholder.consumed = True

        for position, part in unresolved:
            results[position] = self._classify_absent(part, archives[part.location], view)
        return [results[position] for position in range(len(effective.parts))]

    @staticmethod
    def _classify_absent(part: ExpectedPart, content: _ArchiveContent, view: ContentView) -> PartReport:
        """Classify a part whose content is not available under any unused local file."""

        if part.checksum is None:
            return _report(part, PartStatus.UNKNOWN)
        if content.error is not None:
            return _report(part, PartStatus.MISSING, cause=content.error)
        sibling = next((item for item in content.files if _content_matches(part, item.digest)), None)
        if sibling is not None:
            return _report(
                part,
                PartStatus.DUPLICATE_CONTENT_UNRESOLVED,
                found=sibling.name,
                suggestion=FixSuggestion(
                    action="copy",
                    source=f"{content.name}/{sibling.name}",
                    target=f"{content.name}/{part.name}",
                ),
            )
        donors = tuple(str(donor) for donor in view.locate(part.checksum, exclude=(content.name,)))
        cause = content.unreadable.get(part.name)
        if cause is not None:
            return _report(part, PartStatus.MISSING, donors=donors, cause=cause)
        if donors:
            return _report(part, PartStatus.FIXABLE, donors=donors)
        return _report(part, PartStatus.MISSING)

    @staticmethod
    def _check_samples(
        samples: Sequence[ExpectedSample],
        view: ContentView,
        errors: list[ReportError],
    ) -> list[SampleReport]:
        reports: list[SampleReport] = []
        failed: set[str] = set()
        for sample in samples:
            try:
                names = None if sample.location in failed else view.sample_names(sample.location)
            except ArchiveReadError as exc:
                failed.add(sample.location)
                errors.append(ReportError.from_exception(exc, archive=sample.location))
                names = frozenset()
            if sample.location in failed:
                status = SampleStatus.MISSING
            elif names is None:
                status = SampleStatus.UNCHECKED
            elif f"{sample.name}.wav" in names or sample.name in names:
                status = SampleStatus.PRESENT
            else:
                status = SampleStatus.MISSING
            reports.append(SampleReport(name=sample.name, location=sample.location, status=status))
        return reports

    def _unneeded(self, effective: EffectiveSet, local: _ArchiveContent) -> list[UnneededFile]:
        satisfied_here = {part.ref for part in effective.parts if part.location == effective.machine}
        leftovers: list[UnneededFile] = []
        for item in local.files:
            if item.consumed:
                continue
            refs: tuple[PartRef, ...] = self._index.lookup(item.digest.checksum)
            elsewhere = tuple(str(ref) for ref in refs if ref not in satisfied_here)
            leftovers.append(
                UnneededFile(
                    archive=local.name,
                    name=item.name,
                    size=item.digest.size,
                    misplaced=bool(elsewhere),
                    required_by=elsewhere,
                    **checksum_fields(item.digest.checksum),
                ),
            )
        return leftovers


def _report(
    part: ExpectedPart,
    status: PartStatus,
    *,
    found: str | None = None,
    suggestion: FixSuggestion | None = None,
    donors: tuple[str, ...] = (),
    cause: str | None = None,
) -> PartReport:
    return PartReport(
        name=part.name,
        location=part.location,
        origin=part.origin,
        declared_name=part.declared_name,
        status=status,
        required=part.required,
        size=part.size,
        found=found,
        suggestion=suggestion,
        donors=donors,
        cause=cause,
        **checksum_fields(part.checksum),
    )


def _machine_status(parts: Sequence[PartReport], samples: Sequence[SampleReport]) -> MachineStatus:
    """Return the overall status; optional and no-dump parts never lower it."""

    if any(sample.status is SampleStatus.MISSING for sample in samples):
        return MachineStatus.INCOMPLETE
    outstanding = [part.status for part in parts if part.required and part.status is not PartStatus.OK]
    if not outstanding:
        return MachineStatus.COMPLETE
    if all(status in REPAIRABLE_STATUSES for status in outstanding):
        return MachineStatus.FIXABLE
    return MachineStatus.INCOMPLETE


__all__ = ["VerificationEngine"]
