# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Run entry point wiring checks, aggregation, reporting and fixes together."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from rich.console import Console

from pytidy.checks.analyzer import DEFAULT_ANALYZER_CHECKERS, analyzer_check_names
from pytidy.checks.base import MatchResult
from pytidy.checks.dispatch import CheckDispatcher
from pytidy.checks.registry import CheckRegistry
from pytidy.config import TidyConfig
from pytidy.core.filtering import NameFilter
from pytidy.core.models import Diagnostic, FixLedger, PathDiagnostic, RunStatistics
from pytidy.core.serialization import export_diagnostics, import_diagnostics
from pytidy.core.severity import Severity
from pytidy.core.sources import FileSourceManager
from pytidy.diagnostics.context import DiagnosticContext
from pytidy.fixes.engine import FixItEngine
from pytidy.reporting.console import DiagnosticReporter
from pytidy.runtime.console import get_console_manager

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class AnalysisUnit(Protocol):
    """Translation unit whose matches are produced by an external engine."""

    @property
    def path(self) -> str:  # pragma: no cover - protocol definition
        """Return the main source file of the unit."""
        raise NotImplementedError

    def matches(self) -> Iterable[MatchResult]:  # pragma: no cover - protocol definition
        """Return the pattern matches found in the unit."""
        raise NotImplementedError


@dataclass(slots=True)
class PreparedUnit:
    """Analysis unit whose matches and analyzer findings are already known."""

    path: str
    match_results: Sequence[MatchResult] = ()
    findings: Sequence[PathDiagnostic] = ()

    def matches(self) -> Iterable[MatchResult]:
        return iter(self.match_results)

    def analyzer_findings(self) -> Iterable[PathDiagnostic]:
        return iter(self.findings)


@dataclass(slots=True)
class RunResult:
    """Everything produced by one call to :func:`run_tidy`."""

    diagnostics: list[Diagnostic]
    statistics: RunStatistics
    ledger: FixLedger
    write_enabled: bool = False
    failed_checks: dict[str, frozenset[str]] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @property
    def has_errors(self) -> bool:
        """Return ``True`` when an error-severity diagnostic was displayed."""

        return any(diagnostic.severity is Severity.ERROR for diagnostic in self.diagnostics)


def list_enabled_checks(
    registry: CheckRegistry,
    name_filter: NameFilter,
    known_checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS,
) -> list[str]:
    """Return every check name that would run under ``name_filter``.

    Args:
        registry: Registry of check factories.
        name_filter: Filter deciding which checks run.
        known_checkers: Checker universe of the deep analyzer.

    Returns:
        list[str]: Sorted union of enabled registered names and the analyzer
        control list names.
    """

    names = set(registry.enabled_names(name_filter))
    names.update(analyzer_check_names(name_filter, known_checkers))
    return sorted(names)


def analyse_unit(
    unit: AnalysisUnit,
    registry: CheckRegistry,
    name_filter: NameFilter,
    context: DiagnosticContext,
    *,
    analyzer_checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS,
) -> frozenset[str]:
    """Run the enabled checks and the analyzer merge for one unit.

    Args:
        unit: Unit to analyse.
        registry: Registry of check factories.
        name_filter: Filter deciding which checks run.
        context: Context shared by every unit of the run.
        analyzer_checkers: Checker universe of the deep analyzer.

    Returns:
        frozenset[str]: Names of checks that failed in this unit.
    """

    dispatcher = CheckDispatcher(
        registry,
        name_filter,
        context,
        unit=unit.path,
        analyzer_checkers=analyzer_checkers,
    )
    dispatcher.instantiate_enabled()
    dispatched = dispatcher.dispatch_all(unit.matches())
    findings = getattr(unit, "analyzer_findings", None)
    merged = dispatcher.merge_analyzer_findings(findings()) if callable(findings) else 0
    LOGGER.debug("%s: dispatched %d matches, merged %d analyzer findings", unit.path, dispatched, merged)
    return dispatcher.failed_checks


def analyse_units(
    units: Sequence[AnalysisUnit],
    registry: CheckRegistry,
    name_filter: NameFilter,
    context: DiagnosticContext,
    *,
    jobs: int = 1,
    analyzer_checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS,
) -> dict[str, frozenset[str]]:
    """Analyse ``units`` concurrently into the shared ``context``.

    Args:
        units: Units to analyse.
        registry: Registry of check factories.
        name_filter: Filter deciding which checks run.
        context: Context shared by every unit of the run.
        jobs: Maximum number of worker threads.
        analyzer_checkers: Checker universe of the deep analyzer.

    Returns:
        dict[str, frozenset[str]]: Failed check names keyed by unit path,
        for units where at least one check failed.
    """

    failures: dict[str, frozenset[str]] = {}
    if jobs <= 1 or len(units) <= 1:
        for unit in units:
            failed = analyse_unit(unit, registry, name_filter, context, analyzer_checkers=analyzer_checkers)
            if failed:
                failures[unit.path] = failed
        return failures

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        future_map = {
            executor.submit(
                analyse_unit,
                unit,
                registry,
                name_filter,
                context,
                analyzer_checkers=analyzer_checkers,
            ): unit
            for unit in units
        }
        for future in as_completed(future_map):
            failed = future.result()
            if failed:
                failures[future_map[future].path] = failed
    return failures


def report_and_fix(
    diagnostics: Sequence[Diagnostic],
    statistics: RunStatistics | None,
    *,
    write_enabled: bool,
    console: Console,
    sources: FileSourceManager,
    root: Path | None = None,
    color: bool = True,
    show_stats: bool = True,
    warnings: Sequence[str] = (),
) -> FixLedger:
    """Apply the fixes of ``diagnostics`` and render the run to ``console``.

    Positions are resolved against the content the diagnostics were produced
    for, so files are cached before the engine rewrites them.

    Args:
        diagnostics: Diagnostics in report order.
        statistics: Run statistics, or ``None`` when none were collected.
        write_enabled: Whether accepted edits are written to disk.
        console: Console receiving the report.
        sources: Resolver used for line/column positions.
        root: Directory used to resolve relative paths.
        color: Whether severity labels are colourised.
        show_stats: Whether the statistics footer is printed.
        warnings: Configuration warnings printed before the diagnostics.

    Returns:
        FixLedger: Ledger returned by the fix engine.
    """

    sources.preload(_referenced_paths(diagnostics))
    ledger = FixItEngine(root=root).apply(diagnostics, write_enabled=write_enabled)
    reporter = DiagnosticReporter(console, sources=sources, color=color)
    reporter.report_warnings(warnings)
    reporter.report(diagnostics, ledger)
    if statistics is not None and show_stats:
        reporter.report_statistics(statistics)
    reporter.report_fix_summary(ledger, write_enabled=write_enabled)
    for path in ledger.written_files:
        sources.invalidate(path)
    return ledger


def run_tidy(
    units: Sequence[AnalysisUnit],
    registry: CheckRegistry,
    config: TidyConfig | None = None,
    *,
    root: Path | None = None,
    console: Console | None = None,
    export_path: Path | None = None,
) -> RunResult:
    """Analyse ``units``, report the diagnostics and apply fixes.

    Args:
        units: Units produced by the external matching engine.
        registry: Registry of check factories.
        config: Run configuration; defaults to :class:`TidyConfig`.
        root: Directory used to resolve relative paths.
        console: Console receiving the report; defaults to standard output.
        export_path: File receiving the diagnostics as JSON.

    Returns:
        RunResult: Diagnostics, statistics and fix ledger of the run.
    """

    config = config or TidyConfig()
    name_filter = config.name_filter()
    sources = FileSourceManager(root)
    context = DiagnosticContext(name_filter=name_filter, sources=sources)
    console = console or get_console_manager().get(color=config.output.color, emoji=config.output.emoji)

    failures = analyse_units(
        units,
        registry,
        name_filter,
        context,
        jobs=config.jobs,
        analyzer_checkers=config.analyzer_checkers,
    )
    diagnostics, statistics = context.finish()
    warnings = (*name_filter.warnings, *registry.warnings)
    if export_path is not None:
        export_diagnostics(export_path, diagnostics, sources=[unit.path for unit in units])

    ledger = report_and_fix(
        diagnostics,
        statistics,
        write_enabled=config.fix,
        console=console,
        sources=sources,
        root=root,
        color=config.output.color,
        show_stats=config.output.show_stats,
        warnings=warnings,
    )
    return RunResult(
        diagnostics=diagnostics,
        statistics=statistics,
        ledger=ledger,
        write_enabled=config.fix,
        failed_checks=failures,
        warnings=warnings,
    )


def replay_diagnostics(diagnostics: Iterable[Diagnostic], context: DiagnosticContext) -> int:
    """Report previously exported ``diagnostics`` into ``context``.

    Replayed diagnostics pass through the same filtering, ``NOLINT`` and
    duplicate handling as freshly reported ones.

    Args:
        diagnostics: Diagnostics loaded from an export.
        context: Context receiving them.

    Returns:
        int: Number of diagnostics replayed.
    """

    count = 0
    for diagnostic in diagnostics:
        with context.report(
            diagnostic.check_name,
            diagnostic.location,
            diagnostic.message,
            diagnostic.severity,
        ) as builder:
            for source_range in diagnostic.ranges:
                builder.add_range(source_range)
            for replacement in diagnostic.fixes:
                builder.add_fix(replacement)
        for note in diagnostic.notes:
            builder.add_note(note.location, note.message)
        count += 1
    return count


def apply_exported_fixes(
    path: Path,
    config: TidyConfig | None = None,
    *,
    root: Path | None = None,
    console: Console | None = None,
) -> RunResult:
    """Report and apply the fixes of diagnostics exported by an earlier run.

    Args:
        path: JSON file written by :func:`run_tidy` with ``export_path``.
        config: Run configuration; defaults to :class:`TidyConfig`.
        root: Directory used to resolve relative paths.
        console: Console receiving the report; defaults to standard output.

    Returns:
        RunResult: Replayed diagnostics, statistics and fix ledger.

    Raises:
        PytidyError: If the export cannot be read or parsed.
    """

    config = config or TidyConfig()
    name_filter = config.name_filter()
    sources = FileSourceManager(root)
    context = DiagnosticContext(name_filter=name_filter, sources=sources)
    console = console or get_console_manager().get(color=config.output.color, emoji=config.output.emoji)

    replay_diagnostics(import_diagnostics(path), context)
    diagnostics, statistics = context.finish()
    ledger = report_and_fix(
        diagnostics,
        statistics,
        write_enabled=config.fix,
        console=console,
        sources=sources,
        root=root,
        color=config.output.color,
        show_stats=config.output.show_stats,
        warnings=name_filter.warnings,
    )
    return RunResult(
        diagnostics=diagnostics,
        statistics=statistics,
        ledger=ledger,
        write_enabled=config.fix,
        warnings=name_filter.warnings,
    )


def _referenced_paths(diagnostics: Iterable[Diagnostic]) -> list[str]:
    paths: dict[str, None] = {}
    for diagnostic in diagnostics:
        paths.setdefault(diagnostic.location.path, None)
        for replacement in diagnostic.fixes:
            paths.setdefault(replacement.path, None)
        for note in diagnostic.notes:
            paths.setdefault(note.location.path, None)
    return [path for path in paths if path]


__all__ = [
    "AnalysisUnit",
    "PreparedUnit",
    "RunResult",
    "analyse_unit",
    "analyse_units",
    "apply_exported_fixes",
    "list_enabled_checks",
    "replay_diagnostics",
    "report_and_fix",
    "run_tidy",
]
