# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Command verifying a collection of archives against a DAT."""

from __future__ import annotations

import typer

from ..auditor import audit_collection
from ..errors import ConfigError
from ..reporting import dumps, render_run, run_payload
from ._options import (
    CONFIG_OPTION,
    DAT_ARGUMENT,
    EMOJI_OPTION,
    JOBS_OPTION,
    JSON_OPTION,
    MACHINES_ARGUMENT,
    NO_COLOR_OPTION,
    POLICY_OPTION,
    ROMS_ARGUMENT,
    SAMPLES_OPTION,
    SHOW_OK_OPTION,
    STRICT_OPTION,
)
from .shared import FAILURE_EXIT_CODE, CLIError, build_cli_logger, exit_with, open_catalog


def verify_command(
    dat: DAT_ARGUMENT,
    roms_dir: ROMS_ARGUMENT,
    machines: MACHINES_ARGUMENT = None,
    policy: POLICY_OPTION = None,
    jobs: JOBS_OPTION = None,
    samples_dir: SAMPLES_OPTION = None,
    show_ok: SHOW_OK_OPTION = False,
    json_output: JSON_OPTION = False,
    strict: STRICT_OPTION = None,
    config_file: CONFIG_OPTION = None,
    no_color: NO_COLOR_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Verify the archives under ROMS_DIR against DAT.

    Exits with status 1 unless every verified machine is complete.
    """

    logger = build_cli_logger(emoji=emoji, no_color=no_color)
    try:
        if not roms_dir.is_dir():
            raise CLIError(f"rom directory {roms_dir} does not exist")
        config, auditor = open_catalog(
            dat,
            config_file=config_file,
            strict=strict,
            logger=logger,
            quiet=json_output,
            overrides={"roms_dir": roms_dir, "policy": policy, "jobs": jobs, "samples_dir": samples_dir},
        )
        result = audit_collection(config, machines=machines or None, auditor=auditor)
    except ConfigError as exc:
        raise exit_with(CLIError(str(exc)), logger) from exc
    except CLIError as exc:
        raise exit_with(exc, logger) from exc

    if json_output:
        payload = run_payload(result)
        payload["warnings"] = list(auditor.snapshot.warnings)
        logger.echo(dumps(payload))
    elif not result.reports and not result.skipped and not result.unknown_archives:
        logger.info(f"no machines from {dat.name} found under {roms_dir}")
    else:
        render_run(logger.console, result, show_ok=show_ok)
        if result.ok:
            logger.ok(f"{len(result.reports)} machines complete")
    if not result.ok:
        raise typer.Exit(code=FAILURE_EXIT_CODE)


__all__ = ["verify_command"]
