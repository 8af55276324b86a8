# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Render diagnostics, statistics and fix summaries to a Rich console."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

from rich.console import Console
from rich.text import Text

from pytidy.core.models import Diagnostic, DiagnosticNote, FixLedger, Location, Replacement, RunStatistics
from pytidy.core.severity import Severity, severity_color
from pytidy.core.sources import SourceResolver
from pytidy.fixes.engine import format_fix_summary

FIX_PREFIX: Final[str] = "fix-it"
_ESCAPES: Final[dict[int, str]] = {ord("\\"): "\\\\", ord("\n"): "\\n", ord("\t"): "\\t", ord('"'): '\\"'}


def escape_text(text: str) -> str:
    """Return ``text`` with control characters escaped for single-line output."""

    return text.translate(_ESCAPES)


class DiagnosticReporter:
    """Print diagnostics in ``location: severity: message [check]`` form.

    Each diagnostic is followed by its suggested edits, then by the companion
    notes describing whether those edits were applied, then by its own notes.
    """

    def __init__(
        self,
        console: Console,
        *,
        sources: SourceResolver | None = None,
        color: bool = True,
    ) -> None:
        """Initialise the reporter.

        Args:
            console: Console receiving diagnostic lines.
            sources: Resolver turning offsets into line/column positions.
            color: Whether severity labels are colourised.
        """

        self.console = console
        self.sources = sources
        self.color = color

    def report(self, diagnostics: Sequence[Diagnostic], ledger: FixLedger | None = None) -> None:
        """Print every diagnostic in order.

        Args:
            diagnostics: Diagnostics in report order.
            ledger: Ledger from the fix engine used for companion notes.
        """

        for index, diagnostic in enumerate(diagnostics):
            self.console.print(self.format_diagnostic(diagnostic))
            for replacement in diagnostic.fixes:
                self.console.print(self.format_fix(replacement))
            if ledger is not None:
                for note in ledger.notes_for(index):
                    self.console.print(self.format_note(note))
            for note in diagnostic.notes:
                self.console.print(self.format_note(note))

    def format_location(self, location: Location) -> str:
        """Return the printable form of ``location``, empty for the global location."""

        if not location.is_valid:
            return ""
        if self.sources is not None:
            position = self.sources.position(location)
            if position is not None:
                return position.render()
        return f"{location.path}@{location.offset}"

    def format_diagnostic(self, diagnostic: Diagnostic) -> Text:
        """Return the headline of ``diagnostic``."""

        line = self._prefix(diagnostic.location, diagnostic.severity)
        line.append(diagnostic.message)
        line.append(" [")
        line.append(diagnostic.check_name, style="bold" if self.color else None)
        line.append("]")
        return line

    def format_fix(self, replacement: Replacement) -> Text:
        """Return the inline suggestion line for ``replacement``."""

        line = Text("    ")
        location = self.format_location(replacement.location)
        line.append(f"{FIX_PREFIX}: {location}: ", style="green" if self.color else None)
        text = escape_text(replacement.text)
        if replacement.length == 0:
            line.append(f'insert "{text}"')
        elif not replacement.text:
            line.append(f"remove {replacement.length} byte(s)")
        else:
            line.append(f'replace {replacement.length} byte(s) with "{text}"')
        return line

    def format_note(self, note: DiagnosticNote) -> Text:
        """Return the line rendering ``note``."""

        line = self._prefix(note.location, note.severity)
        line.append(note.message)
        return line

    def report_warnings(self, warnings: Sequence[str]) -> None:
        """Print configuration warnings, one ``warning:`` line each.

        Args:
            warnings: Messages about ignored filter rules or registrations.
        """

        for message in warnings:
            line = Text("warning: ", style=severity_color(Severity.WARNING) if self.color else None)
            line.append(message)
            self.console.print(line)

    def report_statistics(self, stats: RunStatistics) -> None:
        """Print the end-of-run counts.

        Args:
            stats: Statistics returned by the diagnostic context.
        """

        self.console.print(f"{stats.displayed} diagnostic(s) generated ({stats.with_fixes} with fixes).")
        if not stats.ignored:
            return
        details = []
        if stats.ignored_check_filter:
            details.append(f"{stats.ignored_check_filter} by check filter")
        if stats.ignored_nolint:
            details.append(f"{stats.ignored_nolint} NOLINT")
        if stats.ignored_duplicates:
            details.append(f"{stats.ignored_duplicates} duplicate")
        self.console.print(f"Suppressed {stats.ignored} diagnostic(s) ({', '.join(details)}).")

    def report_fix_summary(self, ledger: FixLedger, *, write_enabled: bool) -> None:
        """Print the fixes-applied summary when fixes were written.

        Args:
            ledger: Ledger returned by the fix engine.
            write_enabled: Whether the run wrote fixes to disk.
        """

        if write_enabled and ledger.total_fixes > 0:
            self.console.print(format_fix_summary(ledger))

    def _prefix(self, location: Location, severity: Severity) -> Text:
        line = Text()
        rendered = self.format_location(location)
        if rendered:
            line.append(f"{rendered}: ")
        line.append(f"{severity.value}: ", style=severity_color(severity) if self.color else None)
        return line


__all__ = ["DiagnosticReporter", "FIX_PREFIX", "escape_text"]
