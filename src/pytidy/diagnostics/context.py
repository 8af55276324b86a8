# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Run-wide diagnostic aggregation with builder-style construction."""

from __future__ import annotations

import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Final

from pytidy.core.errors import AttributionError
from pytidy.core.filtering import NameFilter
from pytidy.core.models import (
    Diagnostic,
    DiagnosticNote,
    Location,
    Replacement,
    RunStatistics,
    SourceRange,
)
from pytidy.core.severity import Severity
from pytidy.core.sources import SourceResolver

_NOLINT_PATTERN: Final[re.Pattern[str]] = re.compile(r"\bNOLINT(?:\((?P<checks>[^)]*)\))?")
_NOLINT_ALL: Final[str] = "*"


class IgnoreReason(str, Enum):
    """Enumerate the reasons a reported diagnostic is not displayed."""

    CHECK_FILTER = "check-filter"
    NOLINT = "nolint"


class DiagnosticBuilder:
    """Mutable draft of a diagnostic owned by the reporting check.

    Fixes and ranges may be attached until :meth:`emit` is called or the
    ``with`` block exits. Notes may still follow afterwards because they
    thread onto the most recently started diagnostic.
    """

    __slots__ = (
        "check_name",
        "location",
        "message",
        "severity",
        "ignored",
        "_fixes",
        "_ranges",
        "_notes",
        "_finalized",
    )

    def __init__(
        self,
        check_name: str,
        location: Location,
        message: str,
        severity: Severity,
        *,
        ignored: IgnoreReason | None = None,
    ) -> None:
        """Initialise the draft.

        Args:
            check_name: Name of the check owning the diagnostic.
            location: Primary location of the finding.
            message: Human-readable message text.
            severity: Severity of the finding.
            ignored: Reason the diagnostic will not be displayed, if any.
        """

        self.check_name = check_name
        self.location = location
        self.message = message
        self.severity = severity
        self.ignored = ignored
        self._fixes: list[Replacement] = []
        self._ranges: list[SourceRange] = []
        self._notes: list[DiagnosticNote] = []
        self._finalized = False

    @property
    def finalized(self) -> bool:
        """Return ``True`` once fixes and ranges can no longer be attached."""

        return self._finalized

    def add_fix(self, replacement: Replacement) -> DiagnosticBuilder:
        """Attach ``replacement`` to the diagnostic's edit set.

        Args:
            replacement: Proposed edit.

        Returns:
            DiagnosticBuilder: ``self`` to allow chaining.

        Raises:
            AttributionError: If the builder was already finalized.
        """

        self._ensure_open("fix")
        self._fixes.append(replacement)
        return self

    def add_range(self, source_range: SourceRange) -> DiagnosticBuilder:
        """Attach a highlighted source range discovered by the check.

        Args:
            source_range: Range to highlight.

        Returns:
            DiagnosticBuilder: ``self`` to allow chaining.

        Raises:
            AttributionError: If the builder was already finalized.
        """

        self._ensure_open("range")
        self._ranges.append(source_range)
        return self

    def add_note(self, location: Location, message: str) -> DiagnosticBuilder:
        """Attach a secondary note to the diagnostic.

        Args:
            location: Location the note points at.
            message: Note text.

        Returns:
            DiagnosticBuilder: ``self`` to allow chaining.
        """

        self._notes.append(DiagnosticNote(location=location, message=message))
        return self

    def emit(self) -> None:
        """Finalize the draft so no further fixes or ranges are accepted."""

        self._finalized = True

    def build(self) -> Diagnostic:
        """Return the immutable diagnostic described by the draft."""

        return Diagnostic(
            check_name=self.check_name,
            location=self.location,
            severity=self.severity,
            message=self.message,
            ranges=tuple(self._ranges),
            fixes=tuple(self._fixes),
            notes=tuple(self._notes),
        )

    def __enter__(self) -> DiagnosticBuilder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.emit()

    def _ensure_open(self, what: str) -> None:
        if self._finalized:
            raise AttributionError(f"cannot attach a {what} to a finalized diagnostic from '{self.check_name}'")


@dataclass(slots=True)
class _ActiveDiagnostic:
    generation: int
    builder: DiagnosticBuilder


class DiagnosticContext:
    """Collect every diagnostic produced during one run.

    A single context is shared by all analysis units of a run, possibly from
    several worker threads. Buffer and statistics updates are serialised
    through a lock; the diagnostic that notes attach to is tracked per thread
    so a unit's notes always follow its own diagnostic.
    """

    def __init__(
        self,
        *,
        name_filter: NameFilter | None = None,
        sources: SourceResolver | None = None,
    ) -> None:
        """Initialise an empty context.

        Args:
            name_filter: Filter used to drop diagnostics from disabled checks.
                When omitted every check name is accepted.
            sources: Resolver used to honour ``NOLINT`` markers.
        """

        self.name_filter = name_filter
        self.sources = sources
        self._lock = threading.Lock()
        self._local = threading.local()
        self._generation = 0
        self._pending: list[DiagnosticBuilder] = []
        self._stats = RunStatistics()

    def report(
        self,
        check_name: str,
        location: Location,
        message: str,
        severity: Severity = Severity.WARNING,
    ) -> DiagnosticBuilder:
        """Start a new diagnostic attributed to ``check_name``.

        Args:
            check_name: Name of the reporting check.
            location: Primary location of the finding.
            message: Human-readable message text.
            severity: Severity of the finding.

        Returns:
            DiagnosticBuilder: Draft onto which fixes, ranges and notes attach.

        Raises:
            AttributionError: If ``check_name`` is empty.
        """

        if not check_name:
            raise AttributionError(f"diagnostic '{message}' reported without a check name")
        reason = self._ignore_reason(check_name, location)
        builder = DiagnosticBuilder(check_name, location, message, severity, ignored=reason)
        with self._lock:
            triggered = self._stats.triggered
            triggered[check_name] = triggered.get(check_name, 0) + 1
            if reason is IgnoreReason.CHECK_FILTER:
                self._stats.ignored_check_filter += 1
            elif reason is IgnoreReason.NOLINT:
                self._stats.ignored_nolint += 1
            else:
                self._pending.append(builder)
            generation = self._generation
        started: list[DiagnosticBuilder] | None = getattr(self._local, "started", None)
        if started is not None:
            started.append(builder)
        self._local.active = _ActiveDiagnostic(generation=generation, builder=builder)
        return builder

    def add_note(self, location: Location, message: str) -> None:
        """Attach a note to the most recently started diagnostic on this thread.

        Args:
            location: Location the note points at.
            message: Note text.

        Raises:
            AttributionError: If no diagnostic is active on the calling thread.
        """

        active: _ActiveDiagnostic | None = getattr(self._local, "active", None)
        with self._lock:
            current = self._generation
        if active is None or active.generation != current:
            raise AttributionError(f"note '{message}' added without an active diagnostic")
        active.builder.add_note(location, message)

    @contextmanager
    def callback_scope(self) -> Iterator[None]:
        """Scope one check callback on the calling thread.

        Notes inside the scope can only attach to diagnostics reported inside
        it. When the block raises, every diagnostic started inside the scope
        is withdrawn together with its statistics before the exception
        propagates.

        Yields:
            None: Control to the callback.
        """

        previous = getattr(self._local, "started", None)
        started: list[DiagnosticBuilder] = []
        self._local.started = started
        self._local.active = None
        try:
            yield
        except BaseException:
            self._withdraw(started)
            raise
        finally:
            self._local.started = previous
            self._local.active = None

    def finish(self) -> tuple[list[Diagnostic], RunStatistics]:
        """Freeze buffered diagnostics and reset the per-run state.

        Exact duplicates, such as a finding in a header reached from two
        analysis units, are kept once and counted as ignored.

        Returns:
            tuple[list[Diagnostic], RunStatistics]: Diagnostics in the order
            they were reported together with the run statistics.
        """

        with self._lock:
            pending = self._pending
            stats = self._stats
            self._pending = []
            self._stats = RunStatistics()
            self._generation += 1

        diagnostics: list[Diagnostic] = []
        seen: set[tuple[object, ...]] = set()
        for builder in pending:
            builder.emit()
            diagnostic = builder.build()
            key = (
                diagnostic.check_name,
                diagnostic.location,
                diagnostic.message,
                diagnostic.ranges,
                diagnostic.fixes,
                diagnostic.notes,
            )
            if key in seen:
                stats.ignored_duplicates += 1
                continue
            seen.add(key)
            diagnostics.append(diagnostic)
            stats.displayed += 1
            if diagnostic.has_fixes:
                stats.with_fixes += 1
            else:
                stats.without_fixes += 1
        return diagnostics, stats

    def _withdraw(self, builders: list[DiagnosticBuilder]) -> None:
        """Remove ``builders`` from the buffer and undo their statistics."""

        if not builders:
            return
        withdrawn = {id(builder) for builder in builders}
        with self._lock:
            self._pending = [builder for builder in self._pending if id(builder) not in withdrawn]
            triggered = self._stats.triggered
            for builder in builders:
                remaining = triggered.get(builder.check_name, 0) - 1
                if remaining > 0:
                    triggered[builder.check_name] = remaining
                else:
                    triggered.pop(builder.check_name, None)
                if builder.ignored is IgnoreReason.CHECK_FILTER:
                    self._stats.ignored_check_filter -= 1
                elif builder.ignored is IgnoreReason.NOLINT:
                    self._stats.ignored_nolint -= 1

    def _ignore_reason(self, check_name: str, location: Location) -> IgnoreReason | None:
        """Return why a diagnostic from ``check_name`` at ``location`` is hidden."""

        if self.name_filter is not None and not self.name_filter.is_enabled(check_name):
            return IgnoreReason.CHECK_FILTER
        if self.sources is not None and location.is_valid:
            line = self.sources.line_text(location)
            if line and _nolint_applies(line, check_name):
                return IgnoreReason.NOLINT
        return None


def _nolint_applies(line: str, check_name: str) -> bool:
    """Return ``True`` when ``line`` carries a NOLINT marker covering ``check_name``."""

    for match in _NOLINT_PATTERN.finditer(line):
        checks = match.group("checks")
        if checks is None:
            return True
        names = {name.strip() for name in checks.split(",")}
        if _NOLINT_ALL in names or check_name in names:
            return True
    return False


__all__ = ["DiagnosticBuilder", "DiagnosticContext", "IgnoreReason"]
