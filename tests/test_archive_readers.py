# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the directory and in-memory archive readers."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from romaudit.archives import DirectoryArchiveReader, MemoryArchiveReader
from romaudit.auditor import Auditor
from romaudit.errors import ArchiveReadError
from romaudit.models import Machine
from romaudit.verification import HashCache, MachineStatus, PartStatus
from romaudit_support import CONTENT, build_store, checksum_of, rom


def _write_zip(path: Path, members: dict[str, bytes], *, compression: int = zipfile.ZIP_DEFLATED) -> Path:
    with zipfile.ZipFile(path, "w", compression=compression) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return path


def test_lists_zip_files_and_directories(tmp_path: Path) -> None:
    _write_zip(tmp_path / "p.zip", {"x": CONTENT["x"]})
    (tmp_path / "c").mkdir()
    (tmp_path / "c" / "z").write_bytes(CONTENT["z"])
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    reader = DirectoryArchiveReader(tmp_path)

    assert reader.list_archives() == ("c", "p")
    assert reader.read_archive("absent") is None
    assert DirectoryArchiveReader(tmp_path / "missing").list_archives() == ()


def test_zip_wins_over_directory_of_the_same_name(tmp_path: Path) -> None:
    _write_zip(tmp_path / "m.zip", {"from_zip": b"zip"})
    (tmp_path / "m").mkdir()
    (tmp_path / "m" / "from_dir").write_bytes(b"dir")

    entries = DirectoryArchiveReader(tmp_path).read_archive("m")

    assert [entry.name for entry in entries] == ["from_zip"]


def test_zip_members_hash_to_their_content(tmp_path: Path) -> None:
    _write_zip(tmp_path / "p.zip", {"sub/x": CONTENT["x"], "y": CONTENT["y"]})

    entries = DirectoryArchiveReader(tmp_path).read_archive("p")
    cache = HashCache()

    assert [entry.name for entry in entries] == ["sub/x", "y"]
    assert cache.digest(entries[0]).checksum == checksum_of(CONTENT["x"])
    assert entries[1].size == len(CONTENT["y"])


def test_directory_entries_use_relative_posix_names(tmp_path: Path) -> None:
    nested = tmp_path / "m" / "inner"
    nested.mkdir(parents=True)
    (nested / "a.bin").write_bytes(CONTENT["x"])

    entries = DirectoryArchiveReader(tmp_path).read_archive("m")

    assert [entry.name for entry in entries] == ["inner/a.bin"]
    assert HashCache().digest(entries[0]).size == len(CONTENT["x"])


def test_rereading_an_archive_reuses_identities(tmp_path: Path) -> None:
    _write_zip(tmp_path / "p.zip", {"x": CONTENT["x"]})
    reader = DirectoryArchiveReader(tmp_path)
    cache = HashCache()

    cache.digest(reader.read_archive("p")[0])
    cache.digest(reader.read_archive("p")[0])

    assert cache.info().computed == 1


def test_corrupt_zip_raises_archive_error(tmp_path: Path) -> None:
    (tmp_path / "broken.zip").write_bytes(b"this is not a zip file")

    with pytest.raises(ArchiveReadError) as excinfo:
        DirectoryArchiveReader(tmp_path).read_archive("broken")

    assert excinfo.value.archive == "broken"


def test_member_with_bad_crc_is_unreadable(tmp_path: Path) -> None:
    path = _write_zip(tmp_path / "m.zip", {"a": b"A" * 64}, compression=zipfile.ZIP_STORED)
    path.write_bytes(path.read_bytes().replace(b"A" * 64, b"B" * 64))
    store = build_store([Machine("m")], [rom("m", "a", b"A" * 64)])

    result = Auditor(store).run(DirectoryArchiveReader(tmp_path), jobs=1)

    report = result.report_for("m")
    assert report is not None
    assert report.part("a").status is PartStatus.MISSING
    assert [item.name for item in report.unreadable] == ["a"]
    assert report.status is MachineStatus.INCOMPLETE


def test_collection_on_disk_verifies_complete(tmp_path: Path) -> None:
    _write_zip(tmp_path / "m.zip", {"a": CONTENT["x"], "b": CONTENT["y"]})
    store = build_store([Machine("m"), Machine("elsewhere")], [rom("m", "a", CONTENT["x"]), rom("m", "b", CONTENT["y"])])

    result = Auditor(store).run(DirectoryArchiveReader(tmp_path), jobs=1)

    assert [report.machine for report in result.reports] == ["m"]
    assert result.ok


def test_memory_reader_serves_sorted_entries() -> None:
    reader = MemoryArchiveReader({"m": {"b": b"2", "a": b"1"}})

    entries = reader.read_archive("m")

    assert [entry.name for entry in entries] == ["a", "b"]
    assert entries[0].open().read() == b"1"
    assert reader.list_archives() == ("m",)
    assert reader.read_archive("other") is None
