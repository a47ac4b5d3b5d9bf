# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Importer turning Logiqx and MAME XML catalogs into an in-memory store."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from ..errors import MalformedCatalogEntry
from ..models import Checksum, ContentPart, DatHeader, DumpStatus, Machine, MachineEntry, PartKind, Sample
from .store import InMemoryCatalogStore

LOGGER = logging.getLogger(__name__)

MACHINE_TAGS: Final[frozenset[str]] = frozenset({"machine", "game"})
HEADER_FIELDS: Final[tuple[str, ...]] = ("name", "description", "version")
_TRUE_VALUES: Final[frozenset[str]] = frozenset({"yes", "true", "1"})


@dataclass(frozen=True, slots=True)
class DatImport:
    """Result of importing a catalog document."""

    store: InMemoryCatalogStore
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def header(self) -> DatHeader:
        """Return the header parsed from the document."""

        return self.store.header


def load_dat(path: Path, *, strict: bool = False) -> DatImport:
    """Parse the XML catalog at ``path``.

    Attribute keys and tag names are matched case-insensitively. Malformed
    records are skipped and reported as warnings unless ``strict`` is set.

    Args:
        path: Location of the DAT document.
        strict: Raise on the first malformed record instead of skipping it.

    Returns:
        DatImport: Store built from the document together with import warnings.

    Raises:
        MalformedCatalogEntry: If the document is not well-formed XML, or on the
            first malformed record when ``strict`` is enabled.
    """

    parser = _DatParser(strict=strict)
    try:
        for event, element in ET.iterparse(str(path), events=("start", "end")):
            parser.feed(event, element)
    except ET.ParseError as exc:
        raise MalformedCatalogEntry(f"{path}: {exc}") from exc
    return parser.result()


def parse_dat_text(text: str, *, strict: bool = False) -> DatImport:
    """Parse an XML catalog held in memory; see :func:`load_dat`."""

    parser = _DatParser(strict=strict)
    try:
        pull = ET.XMLPullParser(events=("start", "end"))
        pull.feed(text)
        pull.close()
        for event, element in pull.read_events():
            parser.feed(event, element)
    except ET.ParseError as exc:
        raise MalformedCatalogEntry(str(exc)) from exc
    return parser.result()


class _DatParser:
    """Incremental consumer of ``iterparse`` events."""

    def __init__(self, *, strict: bool) -> None:
        self._strict = strict
        self._entries: list[MachineEntry] = []
        self._seen: set[str] = set()
        self._warnings: list[str] = []
        self._header = DatHeader()
        self._position = 0

    def feed(self, event: str, element: ET.Element) -> None:
        if event != "end":
            return
        tag = element.tag.lower()
        if tag == "header":
            self._header = _read_header(element)
            element.clear()
        elif tag in MACHINE_TAGS:
            self._position += 1
            self._consume_machine(element)
            element.clear()

    def result(self) -> DatImport:
        store = InMemoryCatalogStore(self._entries, header=self._header)
        return DatImport(store=store, warnings=tuple(self._warnings))

    def _consume_machine(self, element: ET.Element) -> None:
        try:
            entry = self._read_machine(element)
        except MalformedCatalogEntry as exc:
            self._reject(exc)
            return
        name = entry.machine.name
        if name in self._seen:
            self._reject(MalformedCatalogEntry(f"duplicate machine '{name}'", position=self._position))
            return
        self._seen.add(name)
        self._entries.append(entry)

    def _reject(self, error: MalformedCatalogEntry) -> None:
        if self._strict:
            raise error
        LOGGER.warning("skipping catalog record: %s", error)
        self._warnings.append(str(error))

    def _read_machine(self, element: ET.Element) -> MachineEntry:
        attrs = _attributes(element)
        name = attrs.get("name", "").strip()
        if not name:
            raise MalformedCatalogEntry("machine without a name", position=self._position)
        texts = {child.tag.lower(): (child.text or "").strip() for child in element if len(child) == 0}
        parts: list[ContentPart] = []
        samples: list[Sample] = []
        device_refs: list[str] = []
        for child in element:
            tag = child.tag.lower()
            if tag in {"rom", "disk"}:
                part = self._read_part(name, PartKind(tag), _attributes(child))
                if part is not None:
                    parts.append(part)
            elif tag == "sample":
                sample_name = _attributes(child).get("name", "").strip()
                if sample_name:
                    samples.append(Sample(machine=name, name=sample_name))
            elif tag == "device_ref":
                device_name = _attributes(child).get("name", "").strip()
                if device_name and device_name not in device_refs:
                    device_refs.append(device_name)
        machine = Machine(
            name=name,
            cloneof=attrs.get("cloneof") or None,
            romof=attrs.get("romof") or None,
            sampleof=attrs.get("sampleof") or None,
            is_device=_flag(attrs.get("isdevice")),
            is_bios=_flag(attrs.get("isbios")),
            runnable=attrs.get("runnable", "yes").lower() not in {"no", "false", "0"},
            description=texts.get("description") or None,
            year=texts.get("year") or None,
            manufacturer=texts.get("manufacturer") or texts.get("publisher") or None,
            source_file=attrs.get("sourcefile") or None,
            device_refs=tuple(device_refs),
        )
        return MachineEntry(machine=machine, parts=tuple(parts), samples=tuple(samples))

    def _read_part(self, machine: str, kind: PartKind, attrs: Mapping[str, str]) -> ContentPart | None:
        name = attrs.get("name", "").strip()
        if not name:
            self._reject(MalformedCatalogEntry(f"{kind.value} without a name in '{machine}'", position=self._position))
            return None
        status = _status(attrs.get("status"))
        checksum: Checksum | None = None
        if status is not DumpStatus.NODUMP:
            try:
                checksum = Checksum(crc32=attrs.get("crc"), sha1=attrs.get("sha1"), md5=attrs.get("md5"))
            except ValueError as exc:
                if attrs.get("crc") or attrs.get("sha1") or attrs.get("md5"):
                    self._reject(
                        MalformedCatalogEntry(f"{kind.value} '{name}' in '{machine}': {exc}", position=self._position),
                    )
                    return None
                LOGGER.debug("treating %s '%s' in '%s' without checksum as nodump", kind.value, name, machine)
                status = DumpStatus.NODUMP
        size = _size(attrs.get("size"))
        return ContentPart(
            machine=machine,
            name=name,
            kind=kind,
            size=size,
            checksum=checksum,
            status=status,
            merge=attrs.get("merge") or None,
            optional=_flag(attrs.get("optional")),
        )


def _attributes(element: ET.Element) -> dict[str, str]:
    """Return the element attributes keyed by lower-cased name."""

    return {key.lower(): value for key, value in element.attrib.items()}


def _flag(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUE_VALUES


def _status(value: str | None) -> DumpStatus:
    if not value:
        return DumpStatus.GOOD
    try:
        return DumpStatus(value.strip().lower())
    except ValueError:
        LOGGER.debug("unknown dump status '%s', assuming good", value)
        return DumpStatus.GOOD


def _size(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    text = value.strip().lower()
    try:
        return int(text, 16) if text.startswith("0x") else int(text)
    except ValueError:
        LOGGER.debug("ignoring unparsable size '%s'", value)
        return None


def _read_header(element: ET.Element) -> DatHeader:
    values = {child.tag.lower(): (child.text or "").strip() for child in element}
    extra = tuple((key, value) for key, value in values.items() if key not in HEADER_FIELDS and value)
    return DatHeader(
        name=values.get("name", ""),
        description=values.get("description", ""),
        version=values.get("version", ""),
        extra=extra,
    )


__all__ = ["DatImport", "load_dat", "parse_dat_text"]
