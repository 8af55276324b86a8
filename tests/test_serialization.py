# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for JSON export and import of diagnostics."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pytidy.core.errors import PytidyError
from pytidy.core.models import Diagnostic, DiagnosticNote, Location, Replacement
from pytidy.core.serialization import dump_diagnostics, export_diagnostics, import_diagnostics, load_diagnostics
from pytidy.core.severity import Severity


def _diagnostic() -> Diagnostic:
    return Diagnostic(
        check_name="readability-braces",
        location=Location(path="a.cc", offset=10),
        severity=Severity.ERROR,
        message="missing braces",
        fixes=(Replacement(path="a.cc", offset=10, text="{"),),
        notes=(DiagnosticNote(message="see here"),),
    )


def test_export_writes_versioned_document(tmp_path: Path) -> None:
    target = tmp_path / "fixes.json"

    export_diagnostics(target, [_diagnostic()], sources=["a.cc"])

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["main_source_files"] == ["a.cc"]
    assert payload["diagnostics"][0]["severity"] == "error"
    assert payload["diagnostics"][0]["fixes"][0] == {"path": "a.cc", "offset": 10, "length": 0, "text": "{"}
    assert import_diagnostics(target) == [_diagnostic()]


def test_bare_lists_are_accepted() -> None:
    document = json.loads(dump_diagnostics([_diagnostic()]))

    assert load_diagnostics(json.dumps(document["diagnostics"])) == [_diagnostic()]


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        '{"version": 1, "diagnostics": [{"check_name": "", "message": "x"}]}',
        '{"version": 99, "diagnostics": []}',
    ],
)
def test_invalid_documents_raise(text: str) -> None:
    with pytest.raises(PytidyError):
        load_diagnostics(text)


def test_missing_export_raises(tmp_path: Path) -> None:
    with pytest.raises(PytidyError, match="cannot read diagnostics"):
        import_diagnostics(tmp_path / "absent.json")
