# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Configuration models and TOML loaders for pytidy runs."""

from __future__ import annotations

import math
import os
import tomllib
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pytidy.checks.analyzer import DEFAULT_ANALYZER_CHECKERS
from pytidy.core.errors import ConfigError
from pytidy.core.filtering import RULE_SEPARATOR, NameFilter

DEFAULT_CHECKS: Final[str] = "*,-analyzer-*"
CONFIG_FILENAME: Final[str] = ".pytidy.toml"
PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "pytidy"
DEFAULT_INCLUDE_KEY: Final[str] = "include"


def default_parallel_jobs() -> int:
    """Return a CPU count scaled down for concurrent analysis units.

    Returns:
        int: Rounded-down count representing roughly 75% of available CPU
        cores while guaranteeing a minimum of one worker.
    """

    cores = os.cpu_count() or 1
    return max(1, math.floor(cores * 0.75))


class OutputConfig(BaseModel):
    """Console rendering preferences."""

    model_config = ConfigDict(extra="forbid")

    color: bool = True
    emoji: bool = True
    show_stats: bool = True


class TidyConfig(BaseModel):
    """Top-level configuration for a tidy run."""

    model_config = ConfigDict(extra="forbid")

    checks: str = DEFAULT_CHECKS
    default_enabled: bool = True
    fix: bool = False
    jobs: int = Field(default_factory=default_parallel_jobs, ge=1)
    analyzer_checkers: tuple[str, ...] = DEFAULT_ANALYZER_CHECKERS
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("checks", mode="before")
    @classmethod
    def _join_check_list(cls, value: Any) -> Any:
        """Accept the filter as a TOML array as well as a comma separated string."""

        if isinstance(value, (list, tuple)):
            return RULE_SEPARATOR.join(str(item) for item in value)
        return value

    def name_filter(self) -> NameFilter:
        """Return the name filter described by :attr:`checks`."""

        return NameFilter.parse(self.checks, default_enabled=self.default_enabled)

    def with_overrides(self, **overrides: Any) -> TidyConfig:
        """Return a copy with every non-``None`` override applied.

        Args:
            **overrides: Field values supplied on the command line.

        Returns:
            TidyConfig: Updated configuration.
        """

        update = {key: value for key, value in overrides.items() if value is not None}
        if not update:
            return self
        payload = self.model_dump()
        payload.update(update)
        return _validate(payload, source="command line")


class TomlConfigSource:
    """Load configuration data from a TOML document with include support."""

    def __init__(self, path: Path, *, include_key: str = DEFAULT_INCLUDE_KEY) -> None:
        self.path = path
        self._include_key = include_key

    def load(self) -> Mapping[str, Any]:
        """Return the merged document, or an empty mapping when the file is absent.

        Raises:
            ConfigError: If the document or one of its includes is invalid.
        """

        return self._load(self.path, ())

    def describe(self) -> str:
        return f"TOML configuration at {self.path}"

    def _load(self, path: Path, stack: tuple[Path, ...]) -> Mapping[str, Any]:
        if not path.exists():
            return {}
        if path in stack:
            include_chain = " -> ".join(str(entry) for entry in (*stack, path))
            raise ConfigError(f"Circular include detected: {include_chain}")
        try:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc.strerror or exc}") from exc
        document: dict[str, Any] = dict(data)
        includes = document.pop(self._include_key, None)
        merged: dict[str, Any] = {}
        for include_path in self._coerce_includes(includes, path.parent):
            merged = _deep_merge(merged, self._load(include_path, stack + (path,)))
        return _deep_merge(merged, document)

    def _coerce_includes(self, raw: Any, base_dir: Path) -> Iterable[Path]:
        if raw is None:
            return []
        if isinstance(raw, str):
            return [_resolve_path(Path(raw), base_dir)]
        if isinstance(raw, list):
            return [_resolve_path(Path(str(item)), base_dir) for item in raw]
        raise ConfigError(f"Unsupported include declaration: {raw!r}")


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.pytidy]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        data = super().load()
        tool_section = data.get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return dict(section)

    def describe(self) -> str:
        return f"pyproject.toml ({self.path})"


def load_config(root: Path, *, config_path: Path | None = None) -> TidyConfig:
    """Load the configuration that applies to ``root``.

    ``config_path`` wins when given; otherwise ``.pytidy.toml`` is used when
    present, then ``[tool.pytidy]`` from ``pyproject.toml``, then defaults.

    Args:
        root: Project directory searched for configuration files.
        config_path: Explicit configuration file.

    Returns:
        TidyConfig: Validated configuration.

    Raises:
        ConfigError: If a file is unreadable, malformed or fails validation.
    """

    source: TomlConfigSource | None
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Configuration file {config_path} does not exist")
        if config_path.name == PYPROJECT_FILENAME:
            source = PyProjectConfigSource(config_path)
        else:
            source = TomlConfigSource(config_path)
    elif (root / CONFIG_FILENAME).is_file():
        source = TomlConfigSource(root / CONFIG_FILENAME)
    elif (root / PYPROJECT_FILENAME).is_file():
        source = PyProjectConfigSource(root / PYPROJECT_FILENAME)
    else:
        source = None
    if source is None:
        return TidyConfig()
    return _validate(_normalise_keys(source.load()), source=source.describe())


def _validate(payload: Mapping[str, Any], *, source: str) -> TidyConfig:
    try:
        return TidyConfig.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigError(f"Invalid configuration in {source}: {details}") from exc


def _normalise_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``data`` with ``kebab-case`` keys rewritten to ``snake_case``."""

    result: dict[str, Any] = {}
    for key, value in data.items():
        normalised = str(key).replace("-", "_")
        result[normalised] = _normalise_keys(value) if isinstance(value, Mapping) else value
    return result


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], MutableMapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_path(path: Path, base_dir: Path) -> Path:
    return path if path.is_absolute() else (base_dir / path)


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CHECKS",
    "OutputConfig",
    "PyProjectConfigSource",
    "TidyConfig",
    "TomlConfigSource",
    "default_parallel_jobs",
    "load_config",
]
