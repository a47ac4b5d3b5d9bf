# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the Logiqx and MAME listxml importer."""

from __future__ import annotations

from pathlib import Path

import pytest

from romaudit.catalog import load_dat, parse_dat_text
from romaudit.errors import MalformedCatalogEntry
from romaudit.models import DumpStatus, PartKind, Relation

MAME_LISTXML = """<?xml version="1.0"?>
<mame build="0.250">
  <machine name="neogeo" isbios="yes">
    <description>Neo-Geo</description>
    <rom name="sp-s2.sp1" size="131072" crc="9036d879" sha1="4f5ed7105b7128794654ce82b51723e16e389543"/>
    <device_ref name="z80"/>
    <device_ref name="z80"/>
  </machine>
  <machine name="z80" isdevice="yes" runnable="no">
    <rom name="z80.bin" size="0x10" crc="11111111"/>
  </machine>
  <machine name="game" romof="neogeo" sampleof="game" sourcefile="neogeo.cpp">
    <description>Game</description>
    <year>1990</year>
    <manufacturer>SNK</manufacturer>
    <rom name="sp-s2.sp1" merge="sp-s2.sp1" size="131072" crc="9036d879" sha1="4f5ed7105b7128794654ce82b51723e16e389543"/>
    <rom name="lost.bin" size="1024" status="nodump"/>
    <rom name="bare.bin" size="2048"/>
    <disk name="game-cd" sha1="0123456789abcdef0123456789abcdef01234567" optional="yes"/>
    <sample name="explosion"/>
  </machine>
</mame>
"""


def test_load_dat_reads_logiqx_file(dat_path: Path) -> None:
    imported = load_dat(dat_path)

    assert imported.warnings == ()
    assert imported.header.name == "family"
    assert imported.header.description == "Family test set"
    store = imported.store
    assert [machine.name for machine in store.list_machines()] == ["c", "d", "p"]
    assert store.get_machine("c").description == "Clone C"
    assert store.resolve_parent("d", Relation.CLONE_OF) == "p"
    assert store.get_parts_of("d")[0].merge == "y"


def test_listxml_attributes_and_flags() -> None:
    store = parse_dat_text(MAME_LISTXML).store

    bios = store.get_machine("neogeo")
    assert bios.is_bios
    assert bios.device_refs == ("z80",)
    device = store.get_machine("z80")
    assert device.is_device
    assert not device.runnable
    assert store.get_parts_of("z80")[0].size == 16

    game = store.get_machine("game")
    assert (game.year, game.manufacturer, game.source_file) == ("1990", "SNK", "neogeo.cpp")
    assert game.sampleof == "game"
    assert [sample.name for sample in store.get_samples_of("game")] == ["explosion"]


def test_listxml_parts_kinds_and_dump_status() -> None:
    parts = {part.name: part for part in parse_dat_text(MAME_LISTXML).store.get_parts_of("game")}

    assert parts["lost.bin"].status is DumpStatus.NODUMP
    assert parts["bare.bin"].is_nodump
    disk = parts["game-cd"]
    assert disk.kind is PartKind.DISK
    assert disk.optional
    assert disk.checksum is not None and disk.checksum.crc32 is None
    assert parts["sp-s2.sp1"].checksum.crc32 == "9036d879"


def test_tags_and_attribute_keys_are_case_insensitive() -> None:
    text = """<DATAFILE>
      <GAME NAME="Upper" CloneOf="base">
        <ROM Name="a.bin" SIZE="4" CRC="DEADBEEF"/>
      </GAME>
      <game name="base"><rom name="a.bin" size="4" crc="deadbeef"/></game>
    </DATAFILE>"""

    store = parse_dat_text(text).store

    assert store.resolve_parent("Upper", Relation.CLONE_OF) == "base"
    part = store.get_parts_of("Upper")[0]
    assert part.checksum.crc32 == "deadbeef"
    assert part.size == 4


def test_md5_digests_are_kept() -> None:
    text = """<datafile>
      <game name="m">
        <rom name="a.bin" size="9" crc="cbf43926" md5="25F9E794323B453885F5181F1B624D0B"/>
        <rom name="b.bin" size="9" md5="25f9e794323b453885f5181f1b624d0b"/>
      </game>
    </datafile>"""

    first, second = parse_dat_text(text).store.get_parts_of("m")

    assert first.checksum.md5 == "25f9e794323b453885f5181f1b624d0b"
    assert second.checksum.crc32 is None
    assert second.checksum.matches(first.checksum)


def test_malformed_records_are_skipped_with_warnings() -> None:
    text = """<datafile>
      <machine><rom name="a" crc="00000001"/></machine>
      <machine name="good"><rom name="a" crc="00000001"/><rom name="bad" crc="xyz!"/></machine>
      <machine name="good"><rom name="b" crc="00000002"/></machine>
      <machine name="nameless-rom"><rom crc="00000003"/></machine>
    </datafile>"""

    imported = parse_dat_text(text)

    assert [machine.name for machine in imported.store.list_machines()] == ["good", "nameless-rom"]
    assert [part.name for part in imported.store.get_parts_of("good")] == ["a"]
    assert len(imported.warnings) == 4
    assert imported.warnings[0] == "machine without a name (record 1)"
    assert "duplicate machine 'good'" in imported.warnings[2]


def test_strict_import_raises_on_first_malformed_record() -> None:
    text = '<datafile><machine name="ok"/><machine/></datafile>'

    with pytest.raises(MalformedCatalogEntry) as excinfo:
        parse_dat_text(text, strict=True)

    assert excinfo.value.position == 2


def test_unparsable_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.dat"
    path.write_text("<datafile><machine name='x'>", encoding="utf-8")

    with pytest.raises(MalformedCatalogEntry, match="broken.dat"):
        load_dat(path)
