# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration for romaudit runs."""

from __future__ import annotations

import logging
import math
import os
import tomllib
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .interfaces.config import ConfigSource
from .policy import DEFAULT_POLICY, PackagingPolicy
from .verification.hashing import DEFAULT_CHUNK_SIZE

LOGGER = logging.getLogger(__name__)

PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "romaudit"
CONFIG_FILENAME: Final[str] = "romaudit.toml"
PATH_KEYS: Final[frozenset[str]] = frozenset({"roms_dir", "samples_dir", "dat"})


def default_parallel_jobs() -> int:
    """Return a CPU count scaled down for concurrent verification.

    Returns:
        int: Rounded-down count representing roughly 75% of available CPU
        cores while guaranteeing a minimum of one worker.
    """

    cores = os.cpu_count() or 1
    return max(1, math.floor(cores * 0.75))


class AuditConfig(BaseModel):
    """Settings controlling how a collection is verified."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    policy: PackagingPolicy = DEFAULT_POLICY
    jobs: int = Field(default_factory=default_parallel_jobs, ge=1)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    roms_dir: Path | None = None
    samples_dir: Path | None = None
    dat: Path | None = None
    strict_import: bool = False

    @field_validator("policy", mode="before")
    @classmethod
    def _parse_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return PackagingPolicy.parse(value)
        return value


class DefaultConfigSource(ConfigSource):
    """Return the built-in defaults as a configuration fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        return AuditConfig().model_dump(exclude_none=True)

    def describe(self) -> str:
        return "Built-in defaults"


class TomlConfigSource(ConfigSource):
    """Load configuration data from a standalone TOML document."""

    def __init__(self, path: Path, *, name: str | None = None) -> None:
        self._path = path
        self.name = name or str(path)

    @property
    def path(self) -> Path:
        """Return the document location."""

        return self._path

    def load(self) -> Mapping[str, Any]:
        return _normalise(self._read(), base_dir=self._path.parent)

    def _read(self) -> Mapping[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {self._path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {self._path} must be a table")
        return data

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.romaudit]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        data = self._read()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return _normalise(section, base_dir=self.path.parent)

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


class ConfigLoader:
    """Merge configuration sources, later sources overriding earlier ones."""

    def __init__(self, sources: Iterable[ConfigSource]) -> None:
        self._sources = tuple(sources)

    @property
    def sources(self) -> tuple[ConfigSource, ...]:
        """Return the sources in precedence order, lowest first."""

        return self._sources

    @classmethod
    def for_root(cls, root: Path, *, config_file: Path | None = None) -> ConfigLoader:
        """Return a loader reading defaults, ``pyproject.toml`` and ``romaudit.toml`` under ``root``.

        Args:
            root: Directory searched for configuration files.
            config_file: Explicit configuration document replacing ``romaudit.toml``.

        Raises:
            ConfigError: If ``config_file`` is given but does not exist.
        """

        sources: list[ConfigSource] = [DefaultConfigSource()]
        pyproject = root / "pyproject.toml"
        if pyproject.exists():
            sources.append(PyProjectConfigSource(pyproject))
        if config_file is not None:
            if not config_file.exists():
                raise ConfigError(f"Configuration file {config_file} does not exist")
            sources.append(TomlConfigSource(config_file))
        elif (root / CONFIG_FILENAME).exists():
            sources.append(TomlConfigSource(root / CONFIG_FILENAME))
        return cls(sources)

    def load(self, overrides: Mapping[str, Any] | None = None) -> AuditConfig:
        """Return the merged configuration.

        Args:
            overrides: Highest-precedence values, typically CLI options; ``None``
                values are ignored.

        Returns:
            AuditConfig: Validated configuration.

        Raises:
            ConfigError: If a source is unreadable, names an unknown key, or
                supplies an invalid value.
        """

        merged: dict[str, Any] = {}
        for source in self._sources:
            fragment = source.load()
            if fragment:
                LOGGER.debug("applying %s", source.describe())
            merged.update(fragment)
        if overrides:
            merged.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return AuditConfig.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(_describe_validation(exc)) from exc
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


def _normalise(section: Mapping[str, Any], *, base_dir: Path) -> dict[str, Any]:
    """Return ``section`` with dashed keys underscored and relative paths anchored at ``base_dir``."""

    result: dict[str, Any] = {}
    for raw_key, value in section.items():
        key = str(raw_key).replace("-", "_")
        if key in PATH_KEYS and isinstance(value, str):
            path = Path(value).expanduser()
            value = path if path.is_absolute() else base_dir / path
        result[key] = value
    return result


def _describe_validation(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "config"
        if item.get("type") == "extra_forbidden":
            messages.append(f"unknown configuration key '{location}'")
        else:
            messages.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(messages)


__all__ = [
    "CONFIG_FILENAME",
    "AuditConfig",
    "ConfigLoader",
    "DefaultConfigSource",
    "PyProjectConfigSource",
    "TomlConfigSource",
    "default_parallel_jobs",
]
