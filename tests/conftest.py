# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from romaudit.archives import MemoryArchiveReader
from romaudit.catalog import InMemoryCatalogStore
from romaudit_support import CONTENT, checksum_of, family_store


@pytest.fixture
def family() -> InMemoryCatalogStore:
    """Return the parent/clone catalog used across resolution and verification tests."""

    return family_store()


@pytest.fixture
def split_collection() -> MemoryArchiveReader:
    """Return a complete split-packaged collection for :func:`family`."""

    return MemoryArchiveReader(
        {
            "p": {"x": CONTENT["x"], "y": CONTENT["y"]},
            "c": {"z": CONTENT["z"]},
            "d": {"w": CONTENT["w"]},
        },
    )


@pytest.fixture
def dat_path(tmp_path: Path) -> Path:
    """Write a small Logiqx DAT describing :func:`family` and return its path."""

    path = tmp_path / "family.dat"
    path.write_text(FAMILY_DAT, encoding="utf-8")
    return path


def _rom_line(name: str, label: str, merge: str | None = None) -> str:
    data = CONTENT[label]
    checksum = checksum_of(data)
    merge_attr = f' merge="{merge}"' if merge else ""
    return f'    <rom name="{name}" size="{len(data)}" crc="{checksum.crc32}" sha1="{checksum.sha1}"{merge_attr}/>'


FAMILY_DAT = "\n".join(
    [
        '<?xml version="1.0"?>',
        "<datafile>",
        "  <header><name>family</name><description>Family test set</description><version>1</version></header>",
        '  <machine name="p">',
        "    <description>Parent</description>",
        _rom_line("x", "x"),
        _rom_line("y", "y"),
        "  </machine>",
        '  <machine name="c" cloneof="p" romof="p">',
        "    <description>Clone C</description>",
        _rom_line("x", "x", merge="x"),
        _rom_line("z", "z"),
        "  </machine>",
        '  <machine name="d" cloneof="p" romof="p">',
        _rom_line("y_alt", "y", merge="y"),
        _rom_line("w", "w"),
        "  </machine>",
        "</datafile>",
    ],
)
