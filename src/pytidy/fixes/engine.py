# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Apply the replacements attached to diagnostics back to source files."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from pytidy.core.errors import FixApplicationError
from pytidy.core.models import Diagnostic, FixLedger, FixOutcome, FixStatus, Replacement

LOGGER = logging.getLogger(__name__)

_TEMP_SUFFIX: Final[str] = ".pytidy.tmp"
_SIBLING_REJECTED: Final[str] = "another edit of this fix was rejected"

_Verdict = tuple[FixStatus, str]


@dataclass(slots=True)
class _PendingEdit:
    """Replacement queued for a file together with its ledger slot.

    ``local`` is the replacement rewritten onto the file's display path so
    edits spelled through different aliases of one file compare correctly.
    """

    sequence: int
    diagnostic_index: int
    replacement: Replacement
    local: Replacement
    key: Path


@dataclass(slots=True)
class _FilePlan:
    """Edits collected for one file in report order."""

    path: str
    target: Path
    accepted: list[_PendingEdit] = field(default_factory=list)
    content: bytes | None = None
    error: str | None = None


class FixItEngine:
    """Merge the fixes of a diagnostic list onto file contents.

    Paths resolving to the same file share one plan, and files are visited
    once each in the order they are first referenced. Diagnostics are
    considered in report order and a diagnostic's fix is accepted only when
    every one of its edits lies within its file and overlaps none of the
    edits accepted before it, so earlier diagnostics win conflicts and no fix
    is ever applied in part. Accepted edits are written with a temporary file
    and :func:`os.replace`, so a file is either rewritten with its whole
    accepted set or left untouched.
    """

    def __init__(self, *, root: Path | None = None) -> None:
        """Initialise the engine.

        Args:
            root: Directory used to resolve relative replacement paths.
        """

        self._root = root

    def apply(self, diagnostics: Sequence[Diagnostic], *, write_enabled: bool) -> FixLedger:
        """Apply every replacement of ``diagnostics``.

        Args:
            diagnostics: Diagnostics in the order they were reported.
            write_enabled: When ``False`` files are left untouched but the
                ledger reports what would have been applied.

        Returns:
            FixLedger: Counts and per-edit outcomes in diagnostic/edit order.
        """

        plans, per_diagnostic = self._collect(diagnostics)
        for plan in plans.values():
            self._load(plan)
        outcomes: dict[int, FixOutcome] = {}
        for edits in per_diagnostic:
            self._decide(edits, plans, outcomes)

        ledger = FixLedger()
        for plan in plans.values():
            if write_enabled and plan.accepted and self._write_plan(plan, outcomes):
                ledger.written_files.append(plan.path)
        ledger.outcomes = [outcomes[sequence] for sequence in sorted(outcomes)]
        ledger.total_fixes = len(ledger.outcomes)
        ledger.applied_fixes = sum(1 for outcome in ledger.outcomes if outcome.status.accepted)
        return ledger

    def _collect(
        self,
        diagnostics: Sequence[Diagnostic],
    ) -> tuple[dict[Path, _FilePlan], list[list[_PendingEdit]]]:
        """Group replacements by resolved file and by diagnostic, preserving report order."""

        plans: dict[Path, _FilePlan] = {}
        per_diagnostic: list[list[_PendingEdit]] = []
        sequence = 0
        for index, diagnostic in enumerate(diagnostics):
            edits: list[_PendingEdit] = []
            for replacement in diagnostic.fixes:
                target = self._resolve(replacement.path)
                key = target.resolve()
                plan = plans.get(key)
                if plan is None:
                    plan = plans[key] = _FilePlan(path=replacement.path, target=target)
                local = replacement
                if replacement.path != plan.path:
                    local = replacement.model_copy(update={"path": plan.path})
                edit = _PendingEdit(sequence, index, replacement, local, key)
                edits.append(edit)
                sequence += 1
            if edits:
                per_diagnostic.append(edits)
        return plans, per_diagnostic

    def _load(self, plan: _FilePlan) -> None:
        try:
            plan.content = self._read(plan.target, plan.path)
        except FixApplicationError as exc:
            LOGGER.warning("cannot apply fixes: %s", exc)
            plan.error = exc.reason

    def _decide(
        self,
        edits: list[_PendingEdit],
        plans: dict[Path, _FilePlan],
        outcomes: dict[int, FixOutcome],
    ) -> None:
        """Accept or reject the whole edit set of one diagnostic.

        Args:
            edits: Edits of one diagnostic in edit order.
            plans: File plans keyed by resolved path.
            outcomes: Outcomes keyed by ledger sequence, updated in place.
        """

        staged: list[_PendingEdit] = []
        rejected: dict[int, _Verdict] = {}
        for edit in edits:
            verdict = _verdict(edit, plans[edit.key], staged)
            if verdict is None:
                staged.append(edit)
            else:
                rejected[edit.sequence] = verdict
        if rejected:
            for edit in edits:
                status, reason = rejected.get(edit.sequence, (FixStatus.REJECTED, _SIBLING_REJECTED))
                outcomes[edit.sequence] = _outcome(edit, status, reason)
            return
        for edit in staged:
            plans[edit.key].accepted.append(edit)
            outcomes[edit.sequence] = _outcome(edit, FixStatus.PENDING)

    def _write_plan(self, plan: _FilePlan, outcomes: dict[int, FixOutcome]) -> bool:
        """Write the accepted edits of ``plan`` and record their outcomes.

        Returns:
            bool: ``True`` when the file was rewritten.
        """

        if plan.content is None:
            return False
        status, reason = FixStatus.APPLIED, None
        try:
            updated = apply_replacements(plan.content, [edit.local for edit in plan.accepted])
            self._write(plan.target, plan.path, updated)
        except FixApplicationError as exc:
            LOGGER.warning("cannot apply fixes: %s", exc)
            status, reason = FixStatus.IO_ERROR, exc.reason
        for edit in plan.accepted:
            outcomes[edit.sequence] = _outcome(edit, status, reason)
        return status is FixStatus.APPLIED

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute() and self._root is not None:
            return self._root / candidate
        return candidate

    @staticmethod
    def _read(target: Path, display: str) -> bytes:
        """Return the bytes of ``target``.

        Raises:
            FixApplicationError: If the file cannot be read.
        """

        try:
            return target.read_bytes()
        except OSError as exc:
            raise FixApplicationError(display, f"cannot read file: {exc.strerror or exc}") from exc

    @staticmethod
    def _write(target: Path, display: str, content: bytes) -> None:
        """Atomically replace ``target`` with ``content``.

        Raises:
            FixApplicationError: If the file cannot be written.
        """

        temp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=_TEMP_SUFFIX,
                delete=False,
            ) as handle:
                temp_name = handle.name
                handle.write(content)
            shutil.copymode(target, temp_name)
            os.replace(temp_name, target)
        except OSError as exc:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            raise FixApplicationError(display, f"cannot write file: {exc.strerror or exc}") from exc


def apply_replacements(content: bytes, replacements: Sequence[Replacement]) -> bytes:
    """Return ``content`` with non-overlapping ``replacements`` applied.

    Args:
        content: Original file bytes.
        replacements: Edits that pairwise do not overlap.

    Returns:
        bytes: Edited file bytes.
    """

    ordered = sorted(replacements, key=lambda replacement: (replacement.offset, replacement.length))
    chunks: list[bytes] = []
    cursor = 0
    for replacement in ordered:
        chunks.append(content[cursor : replacement.offset])
        chunks.append(replacement.text.encode("utf-8"))
        cursor = replacement.end
    chunks.append(content[cursor:])
    return b"".join(chunks)


def annotate_with_fix_notes(diagnostics: Sequence[Diagnostic], ledger: FixLedger) -> list[Diagnostic]:
    """Return ``diagnostics`` with one companion note appended per edit.

    Args:
        diagnostics: Diagnostics passed to :meth:`FixItEngine.apply`.
        ledger: Ledger returned for those diagnostics.

    Returns:
        list[Diagnostic]: Copies whose notes end with the fix outcomes.
    """

    annotated: list[Diagnostic] = []
    for index, diagnostic in enumerate(diagnostics):
        notes = ledger.notes_for(index)
        annotated.append(diagnostic.with_notes(*notes) if notes else diagnostic)
    return annotated


def format_fix_summary(ledger: FixLedger) -> str:
    """Return the one-line summary printed after fixes were written."""

    return f"applied {ledger.applied_fixes} of {ledger.total_fixes} suggested fixes"


def _verdict(edit: _PendingEdit, plan: _FilePlan, staged: Sequence[_PendingEdit]) -> _Verdict | None:
    """Return why ``edit`` cannot be applied, or ``None`` when it can."""

    if plan.content is None:
        return FixStatus.IO_ERROR, plan.error or "cannot read file"
    local = edit.local
    if local.end > len(plan.content):
        return FixStatus.OUT_OF_RANGE, "range exceeds the end of the file"
    if any(local.overlaps(other.local) for other in plan.accepted):
        return FixStatus.CONFLICT, "conflicts with an earlier fix"
    if any(other.key == edit.key and local.overlaps(other.local) for other in staged):
        return FixStatus.CONFLICT, "conflicts with another edit of this fix"
    return None


def _outcome(edit: _PendingEdit, status: FixStatus, reason: str | None = None) -> FixOutcome:
    return FixOutcome(
        diagnostic_index=edit.diagnostic_index,
        replacement=edit.replacement,
        status=status,
        reason=reason,
    )


__all__ = [
    "FixItEngine",
    "annotate_with_fix_notes",
    "apply_replacements",
    "format_fix_summary",
]
