# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring the pytidy commands."""

from __future__ import annotations

from pathlib import Path

import typer

from pytidy.core.errors import PytidyError
from pytidy.plugins import discover_registry
from pytidy.runner import apply_exported_fixes, list_enabled_checks

from .shared import CLIError, build_cli_logger, load_effective_config

app = typer.Typer(
    help="Check orchestration core: filter checks, report diagnostics and apply fixes.",
    no_args_is_help=True,
    add_completion=False,
)


@app.command("list-checks", help="List the checks enabled by the filter.")
def list_checks(
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    config: Path | None = typer.Option(None, "--config", help="Configuration file to load."),
    checks: str | None = typer.Option(
        None,
        "--checks",
        help="Comma separated globs enabling or disabling checks (prefix '-' to disable).",
    ),
) -> None:
    """Print every enabled check name, including analyzer checkers."""

    logger = build_cli_logger(emoji=True)
    try:
        effective = load_effective_config(root, config_path=config, logger=logger, checks=checks)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc

    name_filter = effective.name_filter()
    registry = discover_registry()
    for warning in (*name_filter.warnings, *registry.warnings):
        logger.warn(warning)

    names = list_enabled_checks(registry, name_filter, effective.analyzer_checkers)
    if not names:
        logger.fail("No checks enabled.")
        raise typer.Exit(code=1)
    logger.echo("Enabled checks:")
    for name in names:
        logger.echo(f"    {name}")


@app.command("apply-fixes", help="Report exported diagnostics and apply their fixes.")
def apply_fixes(
    export: Path = typer.Argument(..., help="JSON file of exported diagnostics."),
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    config: Path | None = typer.Option(None, "--config", help="Configuration file to load."),
    checks: str | None = typer.Option(None, "--checks", help="Filter applied to the exported diagnostics."),
    fix: bool | None = typer.Option(None, "--fix/--no-fix", help="Write accepted fixes to disk."),
) -> None:
    """Replay exported diagnostics and apply, or preview, their fixes."""

    logger = build_cli_logger(emoji=True)
    try:
        effective = load_effective_config(root, config_path=config, logger=logger, checks=checks, fix=fix)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc

    try:
        result = apply_exported_fixes(export, effective, root=root)
    except PytidyError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc

    if result.has_errors:
        raise typer.Exit(code=1)


def main() -> None:
    """Run the pytidy command-line interface."""

    app()


__all__ = ["app", "main"]
