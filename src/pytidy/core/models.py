# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the pytidy package."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator, model_validator

from pytidy.core.severity import Severity


class Location(BaseModel):
    """Byte offset inside a file; an empty path denotes the global location."""

    model_config = ConfigDict(frozen=True)

    path: str = ""
    offset: NonNegativeInt = 0

    @property
    def is_valid(self) -> bool:
        """Return ``True`` when the location points into a file."""

        return bool(self.path)

    @classmethod
    def invalid(cls) -> Location:
        """Return the global location used when no source position applies."""

        return cls()


class SourceRange(BaseModel):
    """Half-open byte range ``[start, end)`` highlighted by a diagnostic."""

    model_config = ConfigDict(frozen=True)

    path: str
    start: NonNegativeInt
    end: NonNegativeInt

    @model_validator(mode="after")
    def _check_order(self) -> SourceRange:
        """Reject ranges whose end precedes their start.

        Returns:
            SourceRange: The validated range.

        Raises:
            ValueError: If ``end`` is smaller than ``start``.
        """

        if self.end < self.start:
            raise ValueError(f"range end {self.end} precedes start {self.start}")
        return self

    @property
    def begin(self) -> Location:
        """Return the location of the first byte in the range."""

        return Location(path=self.path, offset=self.start)


class Replacement(BaseModel):
    """Textual edit replacing ``length`` bytes at ``offset`` with ``text``."""

    model_config = ConfigDict(frozen=True)

    path: str
    offset: NonNegativeInt
    length: NonNegativeInt = 0
    text: str = ""

    @field_validator("path")
    @classmethod
    def _require_path(cls, value: str) -> str:
        """Ensure the replacement targets a concrete file.

        Args:
            value: Candidate file path.

        Returns:
            str: The unchanged path.

        Raises:
            ValueError: If the path is empty.
        """

        if not value:
            raise ValueError("replacement requires a file path")
        return value

    @classmethod
    def insertion(cls, location: Location, text: str) -> Replacement:
        """Return a zero-length replacement inserting ``text`` at ``location``.

        Args:
            location: Insertion point.
            text: Text to insert.

        Returns:
            Replacement: Insertion edit.
        """

        return cls(path=location.path, offset=location.offset, length=0, text=text)

    @classmethod
    def for_range(cls, source_range: SourceRange, text: str) -> Replacement:
        """Return a replacement rewriting ``source_range`` with ``text``.

        Args:
            source_range: Range of bytes being replaced.
            text: Replacement text.

        Returns:
            Replacement: Edit covering the whole range.
        """

        return cls(
            path=source_range.path,
            offset=source_range.start,
            length=source_range.end - source_range.start,
            text=text,
        )

    @property
    def end(self) -> int:
        """Return the exclusive end offset of the replaced bytes."""

        return self.offset + self.length

    @property
    def location(self) -> Location:
        """Return the start location of the edit."""

        return Location(path=self.path, offset=self.offset)

    def overlaps(self, other: Replacement) -> bool:
        """Return ``True`` when this edit conflicts with ``other``.

        Non-empty ranges conflict when they intersect. An insertion conflicts
        only with a range that strictly contains its offset, so insertions at
        the same offset are applied together in report order.

        Args:
            other: Edit to compare against.

        Returns:
            bool: ``True`` when both edits cannot be applied together.
        """

        if self.path != other.path:
            return False
        if self.length == 0 and other.length == 0:
            return False
        if self.length == 0:
            return other.offset < self.offset < other.end
        if other.length == 0:
            return self.offset < other.offset < self.end
        return self.offset < other.end and other.offset < self.end


class DiagnosticNote(BaseModel):
    """Secondary message attached to a diagnostic; always note severity."""

    model_config = ConfigDict(frozen=True)

    location: Location = Field(default_factory=Location)
    message: str

    @property
    def severity(self) -> Severity:
        """Return the fixed note severity."""

        return Severity.NOTE


class Diagnostic(BaseModel):
    """Immutable finding reported by a check during one run."""

    model_config = ConfigDict(frozen=True)

    check_name: str
    location: Location = Field(default_factory=Location)
    severity: Severity = Severity.WARNING
    message: str
    ranges: tuple[SourceRange, ...] = ()
    fixes: tuple[Replacement, ...] = ()
    notes: tuple[DiagnosticNote, ...] = ()

    @field_validator("check_name")
    @classmethod
    def _require_check_name(cls, value: str) -> str:
        """Ensure every diagnostic is attributable to a check.

        Args:
            value: Candidate check name.

        Returns:
            str: The unchanged name.

        Raises:
            ValueError: If the name is empty.
        """

        if not value:
            raise ValueError("diagnostic requires a check name")
        return value

    @property
    def has_fixes(self) -> bool:
        """Return ``True`` when the diagnostic proposes at least one edit."""

        return bool(self.fixes)

    def with_notes(self, *notes: DiagnosticNote) -> Diagnostic:
        """Return a copy with ``notes`` appended after the existing notes."""

        return self.model_copy(update={"notes": self.notes + notes})


class RunStatistics(BaseModel):
    """Counters accumulated by the diagnostic context during one run."""

    triggered: dict[str, int] = Field(default_factory=dict)
    displayed: int = 0
    ignored_check_filter: int = 0
    ignored_nolint: int = 0
    ignored_duplicates: int = 0
    with_fixes: int = 0
    without_fixes: int = 0

    @property
    def total(self) -> int:
        """Return the number of diagnostics reported by checks."""

        return sum(self.triggered.values())

    @property
    def ignored(self) -> int:
        """Return the number of diagnostics suppressed for any reason."""

        return self.ignored_check_filter + self.ignored_nolint + self.ignored_duplicates


class FixStatus(str, Enum):
    """Enumerate the outcome of a single replacement."""

    APPLIED = "applied"
    PENDING = "pending"
    CONFLICT = "conflict"
    REJECTED = "rejected"
    OUT_OF_RANGE = "out-of-range"
    IO_ERROR = "io-error"

    @property
    def accepted(self) -> bool:
        """Return ``True`` when the edit was, or would be, written."""

        return self in {FixStatus.APPLIED, FixStatus.PENDING}


class FixOutcome(BaseModel):
    """Result of attempting one replacement of one diagnostic."""

    model_config = ConfigDict(frozen=True)

    diagnostic_index: int
    replacement: Replacement
    status: FixStatus
    reason: str | None = None

    def as_note(self) -> DiagnosticNote:
        """Return the companion note describing this outcome."""

        if self.status is FixStatus.APPLIED:
            message = "fix-it applied suggested code changes"
        elif self.status is FixStatus.PENDING:
            message = "fix-it would apply suggested code changes"
        else:
            message = "fix-it unable to apply suggested code changes"
            if self.reason:
                message = f"{message} ({self.reason})"
        return DiagnosticNote(location=self.replacement.location, message=message)


class FixLedger(BaseModel):
    """Per-run application ledger of attempted and applied fixes."""

    total_fixes: int = 0
    applied_fixes: int = 0
    outcomes: list[FixOutcome] = Field(default_factory=list)
    written_files: list[str] = Field(default_factory=list)

    def notes_for(self, diagnostic_index: int) -> list[DiagnosticNote]:
        """Return the companion notes for one diagnostic in edit order.

        Args:
            diagnostic_index: Position of the diagnostic in the applied list.

        Returns:
            list[DiagnosticNote]: One note per replacement of the diagnostic.
        """

        return [outcome.as_note() for outcome in self.outcomes if outcome.diagnostic_index == diagnostic_index]

    def accepted(self, path: str | None = None) -> list[Replacement]:
        """Return accepted replacements, optionally limited to ``path``."""

        return [
            outcome.replacement
            for outcome in self.outcomes
            if outcome.status.accepted and (path is None or outcome.replacement.path == path)
        ]


class PathStep(BaseModel):
    """One step of the path leading an analyzer to a defect."""

    model_config = ConfigDict(frozen=True)

    location: Location = Field(default_factory=Location)
    message: str
    ranges: tuple[SourceRange, ...] = ()
    children: tuple[PathStep, ...] = ()

    def flatten(self) -> Iterator[PathStep]:
        """Yield this step followed by its nested steps depth-first."""

        yield self
        for child in self.children:
            yield from child.flatten()


class PathDiagnostic(BaseModel):
    """Finding produced by the path-sensitive analyzer."""

    model_config = ConfigDict(frozen=True)

    checker: str
    location: Location = Field(default_factory=Location)
    description: str
    ranges: tuple[SourceRange, ...] = ()
    path: tuple[PathStep, ...] = ()

    def flattened_path(self) -> list[PathStep]:
        """Return the path steps flattened in path order."""

        return [step for root in self.path for step in root.flatten()]


__all__ = [
    "Diagnostic",
    "DiagnosticNote",
    "FixLedger",
    "FixOutcome",
    "FixStatus",
    "Location",
    "PathDiagnostic",
    "PathStep",
    "Replacement",
    "RunStatistics",
    "SourceRange",
]
