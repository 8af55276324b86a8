# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared CLI helpers: error type, logger adapter and config loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

from pytidy.config import TidyConfig, load_config
from pytidy.core.errors import ConfigError
from pytidy.logging import fail as core_fail
from pytidy.logging import warn as core_warn

CONFIG_EXIT_CODE = 2


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji settings."""

    use_emoji: bool

    def fail(self, message: str) -> None:
        """Log a failure message honouring emoji preferences."""

        core_fail(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        """Log a warning message honouring emoji preferences."""

        core_warn(message, use_emoji=self.use_emoji)

    def echo(self, message: str) -> None:
        """Write ``message`` to stdout using Typer's echo helper.

        Args:
            message: Text written to standard output.
        """

        typer.echo(message)


def build_cli_logger(*, emoji: bool) -> CLILogger:
    """Return a ``CLILogger`` configured for the provided emoji preference.

    Args:
        emoji: Whether log output may include emoji glyphs.

    Returns:
        CLILogger: Logger writing status lines to standard error.
    """

    return CLILogger(use_emoji=emoji)


def load_effective_config(
    root: Path,
    *,
    config_path: Path | None,
    logger: CLILogger,
    **overrides: Any,
) -> TidyConfig:
    """Load configuration for ``root`` and apply command-line overrides.

    Args:
        root: Project root searched for configuration files.
        config_path: Explicit configuration file.
        logger: Logger used to report failures.
        **overrides: Field values supplied on the command line.

    Returns:
        TidyConfig: Effective configuration.

    Raises:
        CLIError: If the configuration is invalid.
    """

    try:
        return load_config(root, config_path=config_path).with_overrides(**overrides)
    except ConfigError as exc:
        logger.fail(f"Configuration invalid: {exc}")
        raise CLIError(str(exc), exit_code=CONFIG_EXIT_CODE) from exc


__all__ = [
    "CLIError",
    "CLILogger",
    "CONFIG_EXIT_CODE",
    "build_cli_logger",
    "load_effective_config",
]
