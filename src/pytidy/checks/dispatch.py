# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Per-unit adapter routing matches to checks and findings to the context."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pytidy.core.errors import AttributionError
from pytidy.core.filtering import NameFilter
from pytidy.core.models import Location, PathDiagnostic
from pytidy.core.severity import Severity
from pytidy.diagnostics.context import DiagnosticContext

from .analyzer import DEFAULT_ANALYZER_CHECKERS, AnalyzerBridge
from .base import Check, MatchFinder, MatchResult
from .registry import CheckRegistry

LOGGER = logging.getLogger(__name__)


class CheckDispatcher:
    """Bridge between one analysis unit and the shared diagnostic context.

    Each analysis unit gets its own dispatcher and its own check instances,
    while every dispatcher of a run reports into the same context. A check
    whose callback raises loses the diagnostics it started in that callback.
    The failure is then reported once as a note-level diagnostic, and the
    check receives no further matches for the rest of the unit.
    """

    def __init__(
        self,
        registry: CheckRegistry,
        name_filter: NameFilter,
        context: DiagnosticContext,
        *,
        unit: str = "",
        analyzer_checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS,
    ) -> None:
        """Initialise the dispatcher.

        Args:
            registry: Registry holding the check factories.
            name_filter: Filter deciding which checks run.
            context: Shared diagnostic context for the run.
            unit: Path of the analysis unit served by this dispatcher.
            analyzer_checkers: Checker universe known to the deep analyzer.
        """

        self.registry = registry
        self.name_filter = name_filter
        self.context = context
        self.unit = unit
        self.analyzer = AnalyzerBridge(name_filter=name_filter, checkers=tuple(analyzer_checkers))
        self.finder = MatchFinder()
        self._checks: list[Check] = []
        self._failed: set[str] = set()

    @property
    def checks(self) -> tuple[Check, ...]:
        """Return the check instances created for this unit."""

        return tuple(self._checks)

    @property
    def failed_checks(self) -> frozenset[str]:
        """Return names of checks disabled for this unit after an error."""

        return frozenset(self._failed)

    def instantiate_enabled(self) -> list[Check]:
        """Create the enabled checks for this unit and collect their matchers.

        Returns:
            list[Check]: Check instances bound to the shared context.
        """

        self._checks = self.registry.instantiate_enabled(self.name_filter, self.context)
        for check in self._checks:
            try:
                with self.context.callback_scope():
                    check.register_matchers(self.finder)
            except AttributionError:
                raise
            except Exception as exc:  # check plug-ins may raise anything
                self._record_failure(check, exc, phase="registering matchers")
        LOGGER.debug("instantiated %d checks for %s", len(self._checks), self.unit or "<unit>")
        return list(self._checks)

    def dispatch(self, match: MatchResult) -> None:
        """Forward ``match`` to every check interested in its pattern.

        Args:
            match: Match produced by the external matching engine.

        Raises:
            AttributionError: If a check violates the attribution contract.
        """

        for check in self.finder.checks_for(match.pattern):
            if check.name in self._failed:
                continue
            try:
                with self.context.callback_scope():
                    check.run(match)
            except AttributionError:
                raise
            except Exception as exc:  # check plug-ins may raise anything
                self._record_failure(check, exc, phase="analysing a match")

    def dispatch_all(self, matches: Iterable[MatchResult]) -> int:
        """Dispatch every match of ``matches`` in order.

        Args:
            matches: Matches produced for this unit.

        Returns:
            int: Number of matches dispatched.
        """

        count = 0
        for match in matches:
            self.dispatch(match)
            count += 1
        return count

    def merge_analyzer_findings(self, findings: Iterable[PathDiagnostic]) -> int:
        """Report the deep analyzer's path diagnostics into the context.

        Args:
            findings: Path diagnostics produced by the analyzer for this unit.

        Returns:
            int: Number of findings reported.
        """

        with self.context.callback_scope():
            return self.analyzer.merge(findings, self.context)

    def _record_failure(self, check: Check, exc: Exception, *, phase: str) -> None:
        """Disable ``check`` for this unit and report the failure as a note."""

        name = check.name
        self._failed.add(name)
        LOGGER.warning("check %s failed while %s in %s: %s", name, phase, self.unit or "<unit>", exc)
        location = Location(path=self.unit) if self.unit else Location.invalid()
        builder = self.context.report(
            name,
            location,
            f"check '{name}' failed while {phase}: {type(exc).__name__}: {exc}; "
            "its remaining matches in this unit were skipped",
            Severity.NOTE,
        )
        builder.emit()


__all__ = ["CheckDispatcher"]
