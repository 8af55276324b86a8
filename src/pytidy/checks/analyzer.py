# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Bridge ingesting path-sensitive analyzer findings as diagnostics.

Analyzer checkers are exposed to the name filter under
:data:`ANALYZER_CHECK_PREFIX`. As soon as any non-debug analyzer
checker is enabled, every checker of the ``core`` category runs too, since
the other checkers rely on its modelling. Findings of those force-enabled
checkers are still dropped by the diagnostic context when the filter disables
their names.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final

from pytidy.core.filtering import NameFilter
from pytidy.core.models import PathDiagnostic
from pytidy.core.severity import Severity
from pytidy.diagnostics.context import DiagnosticContext

LOGGER = logging.getLogger(__name__)

ANALYZER_CHECK_PREFIX: Final[str] = "analyzer-"
CORE_CATEGORY_PREFIX: Final[str] = "core"
DEBUG_CATEGORY_PREFIX: Final[str] = "debug"

DEFAULT_ANALYZER_CHECKERS: Final[tuple[str, ...]] = (
    "core.CallAndMessage",
    "core.DivideZero",
    "core.DynamicTypePropagation",
    "core.NonNullParamChecker",
    "core.NullDereference",
    "core.StackAddressEscape",
    "core.UndefinedBinaryOperatorResult",
    "core.VLASize",
    "core.builtin.BuiltinFunctions",
    "core.builtin.NoReturnFunctions",
    "core.uninitialized.ArraySubscript",
    "core.uninitialized.Assign",
    "core.uninitialized.Branch",
    "core.uninitialized.CapturedBlockVariable",
    "core.uninitialized.UndefReturn",
    "cplusplus.NewDelete",
    "deadcode.DeadStores",
    "security.FloatLoopCounter",
    "security.insecureAPI.getpw",
    "security.insecureAPI.gets",
    "security.insecureAPI.mktemp",
    "security.insecureAPI.vfork",
    "unix.API",
    "unix.Malloc",
    "unix.MallocSizeof",
    "unix.MismatchedDeallocator",
    "unix.cstring.BadSizeArg",
    "unix.cstring.NullArg",
    "debug.DumpCFG",
    "debug.DumpCallGraph",
    "debug.DumpDominators",
    "debug.DumpLiveVars",
    "debug.ViewCFG",
    "debug.ViewExplodedGraph",
)


def analyzer_check_name(checker: str) -> str:
    """Return the check name synthesized for analyzer ``checker``."""

    return f"{ANALYZER_CHECK_PREFIX}{checker}"


@dataclass(frozen=True, slots=True)
class AnalyzerBridge:
    """Decide which analyzer checkers run and merge their findings.

    Attributes:
        name_filter: Filter the analyzer-prefixed names are evaluated against.
        checkers: Universe of checker identifiers known to the analyzer.
    """

    name_filter: NameFilter
    checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS

    def control_list(self) -> list[str]:
        """Return the checker identifiers the analyzer should run.

        Returns:
            list[str]: Empty when no non-debug checker passes the filter;
            otherwise every core checker plus every enabled non-debug checker,
            in the order of :attr:`checkers`.
        """

        if not any(self._user_enabled(checker) for checker in self.checkers):
            return []
        return [
            checker
            for checker in self.checkers
            if checker.startswith(CORE_CATEGORY_PREFIX) or self._user_enabled(checker)
        ]

    def check_names(self) -> list[str]:
        """Return the analyzer-prefixed names of the control list."""

        return [analyzer_check_name(checker) for checker in self.control_list()]

    @property
    def enabled(self) -> bool:
        """Return ``True`` when the analyzer runs at all."""

        return bool(self.control_list())

    def merge(self, findings: Iterable[PathDiagnostic], context: DiagnosticContext) -> int:
        """Report analyzer ``findings`` into ``context``.

        Each finding becomes one warning whose message is the short
        description, followed by one note per flattened path step in path
        order. Findings are ignored entirely when the analyzer is disabled,
        and findings from checkers outside the control list are skipped.

        Args:
            findings: Path diagnostics produced by the analyzer.
            context: Diagnostic context receiving the converted findings.

        Returns:
            int: Number of findings reported to ``context``.
        """

        running = set(self.control_list())
        if not running:
            return 0
        reported = 0
        for finding in findings:
            if finding.checker not in running:
                LOGGER.debug("skipping finding from inactive analyzer checker %s", finding.checker)
                continue
            builder = context.report(
                analyzer_check_name(finding.checker),
                finding.location,
                finding.description,
                Severity.WARNING,
            )
            for source_range in finding.ranges:
                builder.add_range(source_range)
            builder.emit()
            for step in finding.flattened_path():
                builder.add_note(step.location, step.message)
            reported += 1
        return reported

    def _user_enabled(self, checker: str) -> bool:
        if checker.startswith(DEBUG_CATEGORY_PREFIX):
            return False
        return self.name_filter.is_enabled(analyzer_check_name(checker))


def analyzer_check_names(
    name_filter: NameFilter,
    known_checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS,
) -> list[str]:
    """Return the prefixed names of the analyzer checkers that would run.

    Args:
        name_filter: Filter evaluated against the prefixed checker names.
        known_checkers: Universe of checker identifiers.

    Returns:
        list[str]: Names of the control list, including force-enabled core
        checkers, in the order of ``known_checkers``.
    """

    return AnalyzerBridge(name_filter=name_filter, checkers=tuple(known_checkers)).check_names()


def merge_analyzer_findings(
    findings: Iterable[PathDiagnostic],
    context: DiagnosticContext,
    name_filter: NameFilter,
    known_checkers: Sequence[str] = DEFAULT_ANALYZER_CHECKERS,
) -> int:
    """Report analyzer ``findings`` into ``context`` under ``name_filter``.

    See :meth:`AnalyzerBridge.merge`.
    """

    return AnalyzerBridge(name_filter=name_filter, checkers=tuple(known_checkers)).merge(findings, context)


__all__ = [
    "ANALYZER_CHECK_PREFIX",
    "AnalyzerBridge",
    "DEFAULT_ANALYZER_CHECKERS",
    "analyzer_check_name",
    "analyzer_check_names",
    "merge_analyzer_findings",
]
