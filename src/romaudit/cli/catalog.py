# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Commands answering questions about a DAT without touching a collection."""

from __future__ import annotations

import typer

from ..errors import ResolutionError
from ..models import PartRef
from ..reporting import (
    dumps,
    effective_set_payload,
    render_derivable,
    render_effective_set,
    render_shared,
    render_sharing,
    render_stats,
    render_usage,
)
from ._options import (
    CONFIG_OPTION,
    DAT_ARGUMENT,
    EMOJI_OPTION,
    JSON_OPTION,
    MACHINE_ARGUMENT,
    MACHINE_OPTION,
    NO_COLOR_OPTION,
    PART_ARGUMENT,
    POLICY_OPTION,
    REQUIRED_MACHINES_ARGUMENT,
    STRICT_OPTION,
)
from .shared import FAILURE_EXIT_CODE, CLIError, build_cli_logger, exit_with, open_catalog


def stats_command(
    dat: DAT_ARGUMENT,
    json_output: JSON_OPTION = False,
    strict: STRICT_OPTION = None,
    config_file: CONFIG_OPTION = None,
    no_color: NO_COLOR_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Summarise the machines and content declared by DAT."""

    logger = build_cli_logger(emoji=emoji, no_color=no_color)
    try:
        _, auditor = open_catalog(dat, config_file=config_file, strict=strict, logger=logger, quiet=json_output)
    except CLIError as exc:
        raise exit_with(exc, logger) from exc
    stats = auditor.stats()
    if json_output:
        logger.echo(dumps({"stats": stats.model_dump(), "warnings": list(auditor.snapshot.warnings)}))
        return
    render_stats(logger.console, stats)


def resolve_command(
    dat: DAT_ARGUMENT,
    machines: REQUIRED_MACHINES_ARGUMENT,
    policy: POLICY_OPTION = None,
    json_output: JSON_OPTION = False,
    strict: STRICT_OPTION = None,
    config_file: CONFIG_OPTION = None,
    no_color: NO_COLOR_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Show the effective content set of each MACHINE under a packaging policy."""

    logger = build_cli_logger(emoji=emoji, no_color=no_color)
    try:
        config, auditor = open_catalog(
            dat,
            config_file=config_file,
            strict=strict,
            logger=logger,
            quiet=json_output,
            overrides={"policy": policy},
        )
    except CLIError as exc:
        raise exit_with(exc, logger) from exc

    payload: list[dict[str, object]] = []
    failures: list[str] = []
    for machine in machines:
        try:
            effective = auditor.resolve(machine, config.policy)
        except ResolutionError as exc:
            failures.append(str(exc))
            continue
        if json_output:
            payload.append(effective_set_payload(effective))
        else:
            render_effective_set(logger.console, effective)
    if json_output:
        logger.echo(dumps({"sets": payload, "errors": failures}))
    else:
        for message in failures:
            logger.fail(message)
    if failures:
        raise typer.Exit(code=FAILURE_EXIT_CODE)


def shared_command(
    dat: DAT_ARGUMENT,
    machine: MACHINE_OPTION = None,
    json_output: JSON_OPTION = False,
    strict: STRICT_OPTION = None,
    config_file: CONFIG_OPTION = None,
    no_color: NO_COLOR_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """List content declared by more than one machine."""

    logger = build_cli_logger(emoji=emoji, no_color=no_color)
    try:
        _, auditor = open_catalog(dat, config_file=config_file, strict=strict, logger=logger, quiet=json_output)
        if machine is not None and auditor.snapshot.store.get_machine(machine) is None:
            raise CLIError(f"unknown machine '{machine}'")
    except CLIError as exc:
        raise exit_with(exc, logger) from exc

    if machine is not None:
        sharing = auditor.machines_sharing(machine)
        if json_output:
            logger.echo(dumps({"machine": machine, "shared_with": {key: list(value) for key, value in sharing.items()}}))
        else:
            render_sharing(logger.console, machine, sharing)
        return
    shared = auditor.shared_content()
    if json_output:
        logger.echo(
            dumps(
                [
                    {"crc32": checksum.crc32, "sha1": checksum.sha1, "md5": checksum.md5, "machines": list(names)}
                    for checksum, names in shared.items()
                ],
            ),
        )
        return
    render_shared(logger.console, shared)


def derivable_command(
    dat: DAT_ARGUMENT,
    json_output: JSON_OPTION = False,
    strict: STRICT_OPTION = None,
    config_file: CONFIG_OPTION = None,
    no_color: NO_COLOR_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """List machines whose content mostly comes from an ancestor."""

    logger = build_cli_logger(emoji=emoji, no_color=no_color)
    try:
        _, auditor = open_catalog(dat, config_file=config_file, strict=strict, logger=logger, quiet=json_output)
    except CLIError as exc:
        raise exit_with(exc, logger) from exc
    sets = auditor.derivable_sets()
    if json_output:
        logger.echo(
            dumps(
                [
                    {"machine": item.machine, "ancestor": item.ancestor, "shared": list(item.shared), "new": list(item.new)}
                    for item in sets
                ],
            ),
        )
        return
    render_derivable(logger.console, sets)


def usage_command(
    dat: DAT_ARGUMENT,
    machine: MACHINE_ARGUMENT,
    part: PART_ARGUMENT,
    json_output: JSON_OPTION = False,
    strict: STRICT_OPTION = None,
    config_file: CONFIG_OPTION = None,
    no_color: NO_COLOR_OPTION = False,
    emoji: EMOJI_OPTION = True,
) -> None:
    """Show every other machine part declaring the same content as MACHINE PART."""

    logger = build_cli_logger(emoji=emoji, no_color=no_color)
    try:
        _, auditor = open_catalog(dat, config_file=config_file, strict=strict, logger=logger, quiet=json_output)
        try:
            usage = auditor.rom_usage(machine, part)
        except KeyError as exc:
            raise CLIError(f"{machine} declares no part named '{part}'") from exc
    except CLIError as exc:
        raise exit_with(exc, logger) from exc
    if json_output:
        logger.echo(dumps({"part": str(PartRef(machine, part)), "usage": [str(ref) for ref in usage]}))
        return
    render_usage(logger.console, PartRef(machine, part), usage)


__all__ = ["derivable_command", "resolve_command", "shared_command", "stats_command", "usage_command"]
