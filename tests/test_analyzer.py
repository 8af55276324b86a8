# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the analyzer control list and finding merge."""

from __future__ import annotations

from pytidy.checks.analyzer import (
    AnalyzerBridge,
    analyzer_check_name,
    analyzer_check_names,
    merge_analyzer_findings,
)
from pytidy.core.filtering import NameFilter
from pytidy.core.models import Location, PathDiagnostic, PathStep, SourceRange
from pytidy.core.severity import Severity
from pytidy.diagnostics.context import DiagnosticContext

CHECKERS = (
    "core.DivideZero",
    "core.NullDereference",
    "unix.Malloc",
    "deadcode.DeadStores",
    "debug.DumpCFG",
)


def _finding(checker: str, description: str = "defect") -> PathDiagnostic:
    return PathDiagnostic(
        checker=checker,
        location=Location(path="a.c", offset=12),
        description=description,
        ranges=(SourceRange(path="a.c", start=12, end=15),),
        path=(
            PathStep(location=Location(path="a.c", offset=2), message="assuming 'p' is null"),
            PathStep(
                location=Location(path="a.c", offset=8),
                message="calling 'use'",
                children=(PathStep(location=Location(path="a.c", offset=30), message="entered 'use'"),),
            ),
        ),
    )


def test_analyzer_disabled_by_default_filter() -> None:
    bridge = AnalyzerBridge(NameFilter.parse("*,-analyzer-*"), CHECKERS)

    assert bridge.control_list() == []
    assert bridge.enabled is False


def test_enabling_any_checker_force_enables_core() -> None:
    bridge = AnalyzerBridge(NameFilter.parse("-*,analyzer-unix.Malloc"), CHECKERS)

    assert bridge.control_list() == ["core.DivideZero", "core.NullDereference", "unix.Malloc"]
    assert bridge.check_names()[-1] == "analyzer-unix.Malloc"


def test_debug_checkers_never_run() -> None:
    names = analyzer_check_names(NameFilter.parse("*"), CHECKERS)

    assert analyzer_check_name("debug.DumpCFG") not in names
    assert len(names) == 4


def test_enabling_only_debug_checkers_keeps_analyzer_off() -> None:
    assert analyzer_check_names(NameFilter.parse("-*,analyzer-debug.*"), CHECKERS) == []


def test_merge_reports_warning_with_path_notes() -> None:
    name_filter = NameFilter.parse("-*,analyzer-core.*")
    context = DiagnosticContext(name_filter=name_filter)

    reported = merge_analyzer_findings([_finding("core.NullDereference")], context, name_filter, CHECKERS)

    diagnostics, _ = context.finish()
    assert reported == 1
    diagnostic = diagnostics[0]
    assert diagnostic.check_name == "analyzer-core.NullDereference"
    assert diagnostic.severity is Severity.WARNING
    assert diagnostic.message == "defect"
    assert diagnostic.ranges == (SourceRange(path="a.c", start=12, end=15),)
    assert [note.message for note in diagnostic.notes] == [
        "assuming 'p' is null",
        "calling 'use'",
        "entered 'use'",
    ]


def test_merge_ignores_findings_when_analyzer_is_off() -> None:
    name_filter = NameFilter.parse("*,-analyzer-*")
    context = DiagnosticContext(name_filter=name_filter)

    assert merge_analyzer_findings([_finding("core.DivideZero")], context, name_filter, CHECKERS) == 0
    diagnostics, stats = context.finish()
    assert diagnostics == []
    assert stats.total == 0


def test_force_enabled_core_findings_are_filtered_by_context() -> None:
    name_filter = NameFilter.parse("-*,analyzer-unix.*")
    context = DiagnosticContext(name_filter=name_filter)

    reported = merge_analyzer_findings(
        [_finding("core.DivideZero", "division by zero"), _finding("unix.Malloc", "leak")],
        context,
        name_filter,
        CHECKERS,
    )

    diagnostics, stats = context.finish()
    assert reported == 2
    assert [d.message for d in diagnostics] == ["leak"]
    assert stats.ignored_check_filter == 1


def test_merge_skips_checkers_outside_control_list() -> None:
    name_filter = NameFilter.parse("-*,analyzer-unix.*")
    context = DiagnosticContext(name_filter=name_filter)

    reported = merge_analyzer_findings([_finding("deadcode.DeadStores")], context, name_filter, CHECKERS)

    assert reported == 0
    assert context.finish()[1].total == 0
