# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (logging, errors, loading)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import typer
from rich.console import Console

from ..auditor import Auditor
from ..config import AuditConfig, ConfigLoader
from ..console import detect_tty, get_console_manager
from ..errors import ConfigError, MalformedCatalogEntry
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import warn as core_warn

USAGE_EXIT_CODE: Final[int] = 2
FAILURE_EXIT_CODE: Final[int] = 1


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = USAGE_EXIT_CODE) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI colour and emoji settings."""

    use_emoji: bool
    use_color: bool

    @property
    def console(self) -> Console:
        """Return the console rich renderers should print to."""

        return get_console_manager().get(use_color=self.use_color, use_emoji=self.use_emoji)

    def fail(self, message: str) -> None:
        core_fail(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def warn(self, message: str) -> None:
        core_warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def ok(self, message: str) -> None:
        core_ok(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def info(self, message: str) -> None:
        core_info(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def echo(self, message: str) -> None:
        """Write ``message`` verbatim to stdout."""

        typer.echo(message)


def build_cli_logger(*, emoji: bool, no_color: bool) -> CLILogger:
    """Return a ``CLILogger`` honouring the ``--emoji`` and ``--no-color`` flags."""

    return CLILogger(use_emoji=emoji, use_color=not no_color and detect_tty())


def load_config(config_file: Path | None, overrides: dict[str, Any]) -> AuditConfig:
    """Return the layered configuration for the current directory.

    Raises:
        CLIError: If any configuration source is invalid.
    """

    try:
        return ConfigLoader.for_root(Path.cwd(), config_file=config_file).load(overrides)
    except ConfigError as exc:
        raise CLIError(str(exc)) from exc


def load_auditor(dat: Path, *, strict: bool, logger: CLILogger | None) -> Auditor:
    """Import ``dat`` and surface import warnings through ``logger`` when given.

    Raises:
        CLIError: If the DAT cannot be read, or is malformed in strict mode.
    """

    if not dat.is_file():
        raise CLIError(f"DAT file {dat} does not exist")
    try:
        auditor = Auditor.from_dat(dat, strict=strict)
    except MalformedCatalogEntry as exc:
        raise CLIError(f"cannot import {dat}: {exc}") from exc
    if logger is not None:
        for warning in auditor.snapshot.warnings:
            logger.warn(warning)
    return auditor


def open_catalog(
    dat: Path,
    *,
    config_file: Path | None,
    strict: bool | None,
    logger: CLILogger,
    quiet: bool = False,
    overrides: dict[str, Any] | None = None,
) -> tuple[AuditConfig, Auditor]:
    """Load the layered configuration and import ``dat`` with it.

    Args:
        dat: DAT document to import.
        config_file: Explicit configuration file, if any.
        strict: CLI override of ``strict_import``.
        logger: Destination for import warnings.
        quiet: Leave import warnings to the caller, as JSON output does.
        overrides: Further CLI overrides; ``None`` values are ignored.

    Raises:
        CLIError: If the configuration is invalid or the DAT cannot be imported.
    """

    config = load_config(config_file, {"dat": dat, "strict_import": strict, **(overrides or {})})
    auditor = load_auditor(dat, strict=config.strict_import, logger=None if quiet else logger)
    return config, auditor


def exit_with(error: CLIError, logger: CLILogger) -> typer.Exit:
    """Report ``error`` and return the ``typer.Exit`` to raise."""

    logger.fail(str(error))
    return typer.Exit(code=error.exit_code)


__all__ = [
    "FAILURE_EXIT_CODE",
    "USAGE_EXIT_CODE",
    "CLIError",
    "CLILogger",
    "build_cli_logger",
    "exit_with",
    "load_auditor",
    "load_config",
    "open_catalog",
]
