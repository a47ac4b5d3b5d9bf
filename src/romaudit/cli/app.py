# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared services."""

from __future__ import annotations

import typer

from ..logging import configure_logging
from ._options import VERBOSE_OPTION
from .catalog import derivable_command, resolve_command, shared_command, stats_command, usage_command
from .verify import verify_command

app = typer.Typer(
    name="romaudit",
    help="Resolve ROM set inheritance and audit archive collections against DAT catalogs.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_callback(verbose: VERBOSE_OPTION = False) -> None:
    """Resolve ROM set inheritance and audit archive collections against DAT catalogs."""

    configure_logging(verbose=verbose)


app.command("stats")(stats_command)
app.command("resolve")(resolve_command)
app.command("verify")(verify_command)
app.command("shared")(shared_command)
app.command("derivable")(derivable_command)
app.command("usage")(usage_command)


def main() -> None:
    """Run the ``romaudit`` console script."""

    app()


__all__ = ["app", "main"]
