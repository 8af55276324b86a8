# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for :mod:`pytidy.diagnostics.context`."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from pytidy.core.errors import AttributionError
from pytidy.core.filtering import NameFilter
from pytidy.core.models import Location, Replacement, SourceRange
from pytidy.core.severity import Severity
from pytidy.core.sources import FileSourceManager
from pytidy.diagnostics.context import DiagnosticContext, IgnoreReason


def test_report_buffers_in_insertion_order() -> None:
    context = DiagnosticContext()
    context.report("b", Location(path="x.cc", offset=9), "second").emit()
    context.report("a", Location(path="x.cc", offset=1), "first", Severity.ERROR).emit()

    diagnostics, stats = context.finish()

    assert [d.check_name for d in diagnostics] == ["b", "a"]
    assert diagnostics[1].severity is Severity.ERROR
    assert stats.displayed == 2
    assert stats.triggered == {"a": 1, "b": 1}


def test_empty_check_name_is_attribution_error() -> None:
    context = DiagnosticContext()

    with pytest.raises(AttributionError):
        context.report("", Location.invalid(), "nameless")


def test_attribution_error_is_an_assertion() -> None:
    assert issubclass(AttributionError, AssertionError)


def test_note_without_active_diagnostic_fails() -> None:
    context = DiagnosticContext()

    with pytest.raises(AttributionError):
        context.add_note(Location.invalid(), "orphan")


def test_notes_thread_onto_latest_diagnostic() -> None:
    context = DiagnosticContext()
    context.report("foo", Location(path="x.cc", offset=1), "first").emit()
    context.report("foo", Location(path="x.cc", offset=2), "second").emit()
    context.add_note(Location(path="x.cc", offset=0), "context for second")

    diagnostics, _ = context.finish()

    assert diagnostics[0].notes == ()
    assert [note.message for note in diagnostics[1].notes] == ["context for second"]


def test_finish_resets_active_diagnostic_and_statistics() -> None:
    context = DiagnosticContext()
    context.report("foo", Location.invalid(), "msg")
    context.finish()

    with pytest.raises(AttributionError):
        context.add_note(Location.invalid(), "stale")
    diagnostics, stats = context.finish()
    assert diagnostics == []
    assert stats.total == 0


def test_builder_rejects_fixes_after_emit() -> None:
    context = DiagnosticContext()
    builder = context.report("foo", Location(path="x.cc"), "msg")
    builder.add_fix(Replacement(path="x.cc", offset=0, length=1, text="y"))
    builder.emit()

    with pytest.raises(AttributionError):
        builder.add_fix(Replacement(path="x.cc", offset=2, text="z"))
    with pytest.raises(AttributionError):
        builder.add_range(SourceRange(path="x.cc", start=0, end=1))
    builder.add_note(Location.invalid(), "notes are still accepted")

    diagnostics, stats = context.finish()
    assert len(diagnostics[0].fixes) == 1
    assert len(diagnostics[0].notes) == 1
    assert stats.with_fixes == 1


def test_with_block_finalizes_builder() -> None:
    context = DiagnosticContext()
    with context.report("foo", Location(path="x.cc"), "msg") as builder:
        builder.add_range(SourceRange(path="x.cc", start=0, end=3))

    assert builder.finalized
    diagnostics, stats = context.finish()
    assert diagnostics[0].ranges == (SourceRange(path="x.cc", start=0, end=3),)
    assert stats.without_fixes == 1


def test_filtered_check_names_are_counted_not_buffered() -> None:
    context = DiagnosticContext(name_filter=NameFilter.parse("*,-analyzer-core.*"))
    builder = context.report("analyzer-core.NullDereference", Location.invalid(), "hidden")
    builder.add_note(Location.invalid(), "dropped with its diagnostic")
    context.report("foo", Location.invalid(), "shown")

    diagnostics, stats = context.finish()

    assert builder.ignored is IgnoreReason.CHECK_FILTER
    assert [d.check_name for d in diagnostics] == ["foo"]
    assert stats.ignored_check_filter == 1
    assert stats.triggered["analyzer-core.NullDereference"] == 1
    assert stats.total == 2


def test_nolint_markers_suppress_matching_checks(
    tmp_path: Path,
    write_source: Callable[[str, str | bytes], Path],
) -> None:
    source = "int a;  // NOLINT\nint b;  // NOLINT(foo, bar)\nint c;\n"
    write_source("x.cc", source)
    context = DiagnosticContext(sources=FileSourceManager(tmp_path))
    second_line = source.index("int b")
    third_line = source.index("int c")

    context.report("foo", Location(path="x.cc", offset=0), "a")
    context.report("foo", Location(path="x.cc", offset=second_line), "b")
    context.report("baz", Location(path="x.cc", offset=second_line), "b")
    context.report("foo", Location(path="x.cc", offset=third_line), "c")

    diagnostics, stats = context.finish()

    assert [(d.check_name, d.message) for d in diagnostics] == [("baz", "b"), ("foo", "c")]
    assert stats.ignored_nolint == 2


def test_exact_duplicates_are_counted_once() -> None:
    context = DiagnosticContext()
    for _ in range(2):
        context.report("foo", Location(path="h.h", offset=4), "same").emit()
    context.report("foo", Location(path="h.h", offset=4), "different").emit()

    diagnostics, stats = context.finish()

    assert len(diagnostics) == 2
    assert stats.ignored_duplicates == 1
    assert stats.displayed == 2
    assert stats.ignored == 1


def test_concurrent_reporting_keeps_notes_with_their_diagnostic() -> None:
    context = DiagnosticContext()
    barrier = threading.Barrier(4)
    errors: list[BaseException] = []

    def worker(index: int) -> None:
        try:
            barrier.wait()
            for round_number in range(50):
                context.report(f"check-{index}", Location.invalid(), f"{index}:{round_number}").emit()
                context.add_note(Location.invalid(), f"note {index}:{round_number}")
        except BaseException as exc:  # pragma: no cover - surfaced through the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    diagnostics, stats = context.finish()

    assert errors == []
    assert stats.displayed == 200
    for diagnostic in diagnostics:
        assert [note.message for note in diagnostic.notes] == [f"note {diagnostic.message}"]


def test_findings_differing_only_in_notes_are_both_kept() -> None:
    context = DiagnosticContext()
    for step in ("taking the true branch", "taking the false branch"):
        builder = context.report("analyzer-core.NullDereference", Location(path="a.cc", offset=8), "null deref")
        builder.emit()
        context.add_note(Location(path="a.cc", offset=2), step)

    diagnostics, stats = context.finish()

    assert [[note.message for note in d.notes] for d in diagnostics] == [
        ["taking the true branch"],
        ["taking the false branch"],
    ]
    assert stats.ignored_duplicates == 0


def test_callback_scope_withdraws_diagnostics_when_raising() -> None:
    context = DiagnosticContext(name_filter=NameFilter.parse("*,-hidden"))
    context.report("kept", Location.invalid(), "before the scope").emit()

    with pytest.raises(RuntimeError):
        with context.callback_scope():
            context.report("foo", Location.invalid(), "started").add_fix(
                Replacement(path="x.cc", offset=0, length=1, text="y")
            )
            context.report("hidden", Location.invalid(), "filtered")
            raise RuntimeError("check failed")

    diagnostics, stats = context.finish()
    assert [d.check_name for d in diagnostics] == ["kept"]
    assert stats.triggered == {"kept": 1}
    assert stats.ignored_check_filter == 0


def test_callback_scope_starts_without_an_active_diagnostic() -> None:
    context = DiagnosticContext()
    context.report("foo", Location.invalid(), "outside").emit()

    with context.callback_scope():
        with pytest.raises(AttributionError):
            context.add_note(Location.invalid(), "belongs to no diagnostic")
        context.report("foo", Location.invalid(), "inside").emit()
        context.add_note(Location.invalid(), "attached")

    with pytest.raises(AttributionError):
        context.add_note(Location.invalid(), "after the scope")
    diagnostics, _ = context.finish()
    assert [len(d.notes) for d in diagnostics] == [0, 1]
