# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the audit facade and snapshot reloads."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from romaudit import Auditor, ConfigError, PackagingPolicy, audit_collection
from romaudit.archives import MemoryArchiveReader
from romaudit.catalog import InMemoryCatalogStore
from romaudit.config import AuditConfig
from romaudit.models import Machine
from romaudit.verification import MachineStatus
from romaudit_support import CONTENT, blob, build_store, rom


def test_reload_swaps_every_component(family: InMemoryCatalogStore) -> None:
    auditor = Auditor(family)
    before = auditor.snapshot
    effective = auditor.resolve("c", "split")

    fresh = auditor.reload(build_store([Machine("solo")], [rom("solo", "a", CONTENT["x"])]), warnings=["w"])

    assert auditor.snapshot is fresh
    assert fresh.warnings == ("w",)
    assert auditor.stats().machines == 1
    # Work started against the old snapshot keeps its results.
    assert before.resolver.resolve("c", "split") is effective
    assert before.index is not fresh.index


def test_reload_dat_reimports_the_document(dat_path: Path) -> None:
    auditor = Auditor(build_store([Machine("solo")]))

    auditor.reload_dat(dat_path)

    assert [machine.name for machine in auditor.snapshot.store.list_machines()] == ["c", "d", "p"]


def test_from_dat_keeps_import_warnings(tmp_path: Path) -> None:
    path = tmp_path / "warn.dat"
    path.write_text('<datafile><machine/><machine name="ok"/></datafile>', encoding="utf-8")

    auditor = Auditor.from_dat(path)

    assert auditor.snapshot.warnings == ("machine without a name (record 1)",)
    assert auditor.stats().machines == 1


def test_audit_collection_follows_configuration(tmp_path: Path, dat_path: Path) -> None:
    roms = tmp_path / "roms"
    roms.mkdir()
    with zipfile.ZipFile(roms / "p.zip", "w") as archive:
        for name in ("x", "y", "z", "w"):
            archive.writestr(name, CONTENT[name])
    config = AuditConfig(dat=dat_path, roms_dir=roms, policy=PackagingPolicy.MERGED, jobs=2)

    result = audit_collection(config)

    assert [report.machine for report in result.reports] == ["c", "d", "p"]
    assert all(report.status is MachineStatus.COMPLETE for report in result.reports)


def test_audit_collection_requires_locations(dat_path: Path, tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="rom directory"):
        audit_collection(AuditConfig(dat=dat_path))
    with pytest.raises(ConfigError, match="DAT"):
        audit_collection(AuditConfig(roms_dir=tmp_path))


def test_run_lists_archives_matching_no_machine() -> None:
    store = build_store([Machine("m")], [rom("m", "a", CONTENT["x"])])
    reader = MemoryArchiveReader({"m": {"a": CONTENT["x"]}, "stray": {"junk": blob("junk")}})

    result = Auditor(store).run(reader, jobs=1)

    assert result.unknown_archives == ("stray",)
    assert [report.machine for report in result.reports] == ["m"]
    assert result.ok
