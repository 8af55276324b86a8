# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for :mod:`pytidy.checks.dispatch`."""

from __future__ import annotations

import pytest

from pytidy.checks.base import Check, MatchFinder, MatchResult
from pytidy.checks.dispatch import CheckDispatcher
from pytidy.checks.registry import CheckRegistry
from pytidy.core.errors import AttributionError
from pytidy.core.filtering import NameFilter
from pytidy.core.models import Location
from pytidy.core.severity import Severity
from pytidy.diagnostics.context import DiagnosticContext
from tests.helpers.checks import ExplodingCheck, FlagCheck, HalfFixCheck, NotingCheck, call_match


class _BrokenRegistration(Check):
    def register_matchers(self, finder: MatchFinder) -> None:
        raise ValueError("cannot build matcher")

    def check(self, match: MatchResult) -> None:  # pragma: no cover - never routed
        raise AssertionError("unreachable")


class _MisattributingCheck(Check):
    def register_matchers(self, finder: MatchFinder) -> None:
        finder.add_matcher("call", self)

    def check(self, match: MatchResult) -> None:
        self.note(match.location, "note before any diagnostic")


def _dispatcher(registry: CheckRegistry, checks: str = "*") -> tuple[CheckDispatcher, DiagnosticContext]:
    name_filter = NameFilter.parse(checks)
    context = DiagnosticContext(name_filter=name_filter)
    dispatcher = CheckDispatcher(registry, name_filter, context, unit="main.cc")
    dispatcher.instantiate_enabled()
    return dispatcher, context


def test_matches_reach_interested_checks(registry: CheckRegistry) -> None:
    dispatcher, context = _dispatcher(registry, "*,-fix-spelling")

    dispatched = dispatcher.dispatch_all([call_match("main.cc", 3), call_match("main.cc", 9)])
    dispatcher.dispatch(MatchResult(pattern="decl", unit="main.cc"))

    diagnostics, _ = context.finish()
    assert dispatched == 2
    assert [d.check_name for d in diagnostics] == ["foo", "notes", "foo", "notes"]
    assert [note.message for note in diagnostics[1].notes] == ["declared here"]


def test_disabled_checks_are_not_instantiated(registry: CheckRegistry) -> None:
    dispatcher, _ = _dispatcher(registry, "-*,foo")

    assert [check.name for check in dispatcher.checks] == ["foo"]


def test_failing_check_is_isolated(registry: CheckRegistry) -> None:
    registry.register_factory("explode", ExplodingCheck)
    dispatcher, context = _dispatcher(registry, "-*,foo,explode")

    dispatcher.dispatch_all([call_match("main.cc", 1), call_match("main.cc", 2)])

    diagnostics, _ = context.finish()
    failure = [d for d in diagnostics if d.check_name == "explode"]
    assert [d.check_name for d in diagnostics].count("foo") == 2
    assert len(failure) == 1
    assert failure[0].severity is Severity.NOTE
    assert "RuntimeError: boom" in failure[0].message
    assert failure[0].location == Location(path="main.cc")
    assert dispatcher.failed_checks == frozenset({"explode"})
    exploding = next(check for check in dispatcher.checks if check.name == "explode")
    assert isinstance(exploding, ExplodingCheck)
    assert exploding.calls == 1


def test_matcher_registration_failure_is_isolated() -> None:
    registry = CheckRegistry()
    registry.register_factory("broken", _BrokenRegistration)
    registry.register_factory("foo", FlagCheck)
    dispatcher, context = _dispatcher(registry)

    dispatcher.dispatch(call_match("main.cc"))

    diagnostics, _ = context.finish()
    assert [d.check_name for d in diagnostics] == ["broken", "foo"]
    assert "registering matchers" in diagnostics[0].message


def test_attribution_errors_propagate() -> None:
    registry = CheckRegistry()
    registry.register_factory("bad", _MisattributingCheck)
    dispatcher, _ = _dispatcher(registry)

    with pytest.raises(AttributionError):
        dispatcher.dispatch(call_match("main.cc"))


def test_units_share_one_context(registry: CheckRegistry) -> None:
    name_filter = NameFilter.parse("-*,notes")
    context = DiagnosticContext(name_filter=name_filter)
    for unit in ("a.cc", "b.cc"):
        dispatcher = CheckDispatcher(registry, name_filter, context, unit=unit)
        dispatcher.instantiate_enabled()
        dispatcher.dispatch(call_match(unit))

    diagnostics, stats = context.finish()

    assert [d.location.path for d in diagnostics] == ["a.cc", "b.cc"]
    assert all(len(d.notes) == 1 for d in diagnostics)
    assert stats.triggered == {"notes": 2}


def test_failing_callback_drops_its_partial_diagnostics() -> None:
    registry = CheckRegistry()
    registry.register_factory("half", HalfFixCheck)
    registry.register_factory("foo", FlagCheck)
    dispatcher, context = _dispatcher(registry)

    dispatcher.dispatch(call_match("main.cc"))

    diagnostics, stats = context.finish()
    assert [d.check_name for d in diagnostics] == ["half", "foo"]
    assert "RuntimeError: interrupted" in diagnostics[0].message
    assert all(not d.fixes for d in diagnostics)
    assert stats.triggered == {"half": 1, "foo": 1}
    assert stats.with_fixes == 0


def test_notes_cannot_attach_to_a_previous_units_diagnostic() -> None:
    registry = CheckRegistry()
    registry.register_factory("notes", NotingCheck)
    registry.register_factory("bad", _MisattributingCheck)
    name_filter = NameFilter.parse("*")
    context = DiagnosticContext(name_filter=name_filter)
    first = CheckDispatcher(registry, NameFilter.parse("-*,notes"), context, unit="a.cc")
    first.instantiate_enabled()
    first.dispatch(call_match("a.cc"))
    second = CheckDispatcher(registry, NameFilter.parse("-*,bad"), context, unit="b.cc")
    second.instantiate_enabled()

    with pytest.raises(AttributionError):
        second.dispatch(call_match("b.cc"))

    diagnostics, _ = context.finish()
    assert [note.message for note in diagnostics[0].notes] == ["declared here"]
