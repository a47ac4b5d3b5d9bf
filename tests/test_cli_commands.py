# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the romaudit command line."""

from __future__ import annotations

import json
import logging
import zipfile
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from romaudit.cli import app
from romaudit_support import CONTENT

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    yield
    logger = logging.getLogger("romaudit")
    handler = getattr(logger, "_romaudit_handler", None)
    if handler is not None:
        logger.removeHandler(handler)
        delattr(logger, "_romaudit_handler")
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def roms(tmp_path: Path) -> Path:
    """Write a split-packaged collection of the family catalog to disk."""

    folder = tmp_path / "roms"
    folder.mkdir()
    layout = {"p": ("x", "y"), "c": ("z",), "d": ("w",)}
    for archive, members in layout.items():
        with zipfile.ZipFile(folder / f"{archive}.zip", "w") as handle:
            for member in members:
                handle.writestr(member, CONTENT[member])
    return folder


def test_stats_json(dat_path: Path) -> None:
    result = runner.invoke(app, ["stats", str(dat_path), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["stats"]["machines"] == 3
    assert payload["stats"]["clones"] == 2
    assert payload["warnings"] == []


def test_stats_table(dat_path: Path) -> None:
    result = runner.invoke(app, ["stats", str(dat_path), "--no-color"])

    assert result.exit_code == 0, result.output
    assert "distinct checksums" in result.stdout


def test_resolve_json_under_split(dat_path: Path) -> None:
    result = runner.invoke(app, ["resolve", str(dat_path), "c", "--policy", "split", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    (effective,) = payload["sets"]
    assert effective["policy"] == "split"
    assert {(part["location"], part["name"]) for part in effective["parts"]} == {("p", "x"), ("c", "z")}


def test_resolve_unknown_machine_fails(dat_path: Path) -> None:
    result = runner.invoke(app, ["resolve", str(dat_path), "p", "ghost", "--no-emoji"])

    assert result.exit_code == 1
    assert "unknown machine 'ghost'" in result.output


def test_verify_complete_collection(dat_path: Path, roms: Path) -> None:
    result = runner.invoke(app, ["verify", str(dat_path), str(roms), "--policy", "split", "--jobs", "2", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [report["machine"] for report in payload["reports"]] == ["c", "d", "p"]
    assert {report["status"] for report in payload["reports"]} == {"complete"}


def test_verify_reports_fixable_parts(dat_path: Path, roms: Path) -> None:
    result = runner.invoke(app, ["verify", str(dat_path), str(roms), "c", "--no-color", "--no-emoji"])

    assert result.exit_code == 1
    assert "fixable" in result.stdout
    assert "p/x" in result.stdout


def test_verify_uses_configuration_file(dat_path: Path, roms: Path, tmp_path: Path) -> None:
    (tmp_path / "romaudit.toml").write_text('policy = "split"\njobs = 1\n', encoding="utf-8")

    result = runner.invoke(app, ["verify", str(dat_path), str(roms), "--json"])

    assert result.exit_code == 0, result.output
    assert {report["policy"] for report in json.loads(result.stdout)["reports"]} == {"split"}


def test_verify_rejects_bad_policy(dat_path: Path, roms: Path) -> None:
    result = runner.invoke(app, ["verify", str(dat_path), str(roms), "--policy", "zipped", "--no-emoji"])

    assert result.exit_code == 2
    assert "unknown packaging policy" in result.output


def test_verify_requires_rom_directory(dat_path: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["verify", str(dat_path), str(tmp_path / "nowhere"), "--no-emoji"])

    assert result.exit_code == 2
    assert "does not exist" in result.output


def test_missing_dat_is_reported(tmp_path: Path) -> None:
    result = runner.invoke(app, ["stats", str(tmp_path / "missing.dat"), "--no-emoji"])

    assert result.exit_code == 2
    assert "missing.dat" in result.output


def test_shared_and_machine_sharing(dat_path: Path) -> None:
    shared = runner.invoke(app, ["shared", str(dat_path), "--json"])
    sharing = runner.invoke(app, ["shared", str(dat_path), "--machine", "p", "--json"])

    assert shared.exit_code == 0, shared.output
    assert sorted(sorted(item["machines"]) for item in json.loads(shared.stdout)) == [["c", "p"], ["d", "p"]]
    assert json.loads(sharing.stdout)["shared_with"] == {"c": ["x"], "d": ["y"]}


def test_derivable_json(dat_path: Path) -> None:
    result = runner.invoke(app, ["derivable", str(dat_path), "--json"])

    assert result.exit_code == 0, result.output
    assert {(item["machine"], item["ancestor"]) for item in json.loads(result.stdout)} == {("c", "p"), ("d", "p")}


def test_usage(dat_path: Path) -> None:
    found = runner.invoke(app, ["usage", str(dat_path), "p", "y", "--json"])
    missing = runner.invoke(app, ["usage", str(dat_path), "p", "nothing", "--no-emoji"])

    assert json.loads(found.stdout) == {"part": "p:y", "usage": ["d:y_alt"]}
    assert missing.exit_code == 2
    assert "declares no part named 'nothing'" in missing.output


def test_strict_import_aborts_on_malformed_records(tmp_path: Path) -> None:
    path = tmp_path / "bad.dat"
    path.write_text('<datafile><machine/><machine name="ok"/></datafile>', encoding="utf-8")

    lenient = runner.invoke(app, ["stats", str(path), "--no-emoji", "--no-color"])
    strict = runner.invoke(app, ["stats", str(path), "--strict", "--no-emoji"])

    assert lenient.exit_code == 0
    assert "machine without a name" in lenient.stdout
    assert strict.exit_code == 2
    assert "record 1" in strict.output


def test_verbose_flag_is_accepted(dat_path: Path) -> None:
    result = runner.invoke(app, ["--verbose", "stats", str(dat_path), "--json"])

    assert result.exit_code == 0, result.output
    assert logging.getLogger("romaudit").level == logging.DEBUG
