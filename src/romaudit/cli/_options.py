# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Option and argument aliases shared by romaudit commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

DAT_ARGUMENT = Annotated[
    Path,
    typer.Argument(help="Logiqx or MAME listxml DAT file.", show_default=False),
]
ROMS_ARGUMENT = Annotated[
    Path,
    typer.Argument(help="Directory holding the rom archives.", show_default=False),
]
MACHINES_ARGUMENT = Annotated[
    list[str] | None,
    typer.Argument(help="Machines to process; defaults to every relevant machine.", show_default=False),
]
REQUIRED_MACHINES_ARGUMENT = Annotated[
    list[str],
    typer.Argument(help="Machines to resolve.", show_default=False),
]
MACHINE_ARGUMENT = Annotated[str, typer.Argument(help="Machine name.", show_default=False)]
MACHINE_OPTION = Annotated[
    str | None,
    typer.Option("--machine", "-m", help="Only list machines sharing content with this one.", show_default=False),
]
PART_ARGUMENT = Annotated[str, typer.Argument(help="Part name declared by the machine.", show_default=False)]
POLICY_OPTION = Annotated[
    str | None,
    typer.Option("--policy", "-p", help="Packaging policy: split, merged or non-merged.", show_default=False),
]
JOBS_OPTION = Annotated[
    int | None,
    typer.Option("--jobs", "-j", min=1, help="Worker threads; defaults to 75% of the CPU cores.", show_default=False),
]
SAMPLES_OPTION = Annotated[
    Path | None,
    typer.Option("--samples", help="Directory holding the sample archives.", show_default=False),
]
CONFIG_OPTION = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Configuration file used instead of romaudit.toml.", show_default=False),
]
JSON_OPTION = Annotated[bool, typer.Option("--json", help="Emit JSON instead of tables.")]
SHOW_OK_OPTION = Annotated[bool, typer.Option("--show-ok", help="Also list content that verified cleanly.")]
STRICT_OPTION = Annotated[
    bool | None,
    typer.Option("--strict/--lenient", help="Abort on malformed DAT records instead of skipping them.", show_default=False),
]
NO_COLOR_OPTION = Annotated[bool, typer.Option("--no-color", help="Disable ANSI colour output.")]
EMOJI_OPTION = Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji output.")]
VERBOSE_OPTION = Annotated[bool, typer.Option("--verbose", "-v", help="Log library diagnostics to stderr.")]

__all__ = [
    "CONFIG_OPTION",
    "DAT_ARGUMENT",
    "EMOJI_OPTION",
    "JOBS_OPTION",
    "JSON_OPTION",
    "MACHINES_ARGUMENT",
    "MACHINE_ARGUMENT",
    "MACHINE_OPTION",
    "NO_COLOR_OPTION",
    "PART_ARGUMENT",
    "POLICY_OPTION",
    "REQUIRED_MACHINES_ARGUMENT",
    "ROMS_ARGUMENT",
    "SAMPLES_OPTION",
    "SHOW_OK_OPTION",
    "STRICT_OPTION",
    "VERBOSE_OPTION",
]
