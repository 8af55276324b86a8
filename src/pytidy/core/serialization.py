# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Export and import diagnostic lists as JSON documents."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from pytidy.core.errors import PytidyError
from pytidy.core.models import Diagnostic

EXPORT_FORMAT_VERSION: Final[int] = 1

_DIAGNOSTICS_ADAPTER: Final[TypeAdapter[list[Diagnostic]]] = TypeAdapter(list[Diagnostic])


class DiagnosticsDocument(BaseModel):
    """Top-level JSON document holding exported diagnostics."""

    version: int = EXPORT_FORMAT_VERSION
    main_source_files: list[str] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


def dump_diagnostics(diagnostics: Sequence[Diagnostic], *, sources: Sequence[str] = ()) -> str:
    """Return ``diagnostics`` serialised as a JSON document.

    Args:
        diagnostics: Diagnostics in report order.
        sources: Analysis units that produced the diagnostics.

    Returns:
        str: Indented JSON text.
    """

    document = DiagnosticsDocument(main_source_files=list(sources), diagnostics=list(diagnostics))
    return document.model_dump_json(indent=2)


def export_diagnostics(path: Path, diagnostics: Sequence[Diagnostic], *, sources: Sequence[str] = ()) -> None:
    """Write ``diagnostics`` to ``path`` as JSON."""

    path.write_text(dump_diagnostics(diagnostics, sources=sources) + "\n", encoding="utf-8")


def load_diagnostics(text: str) -> list[Diagnostic]:
    """Parse diagnostics from a JSON document or a bare JSON list.

    Args:
        text: JSON text produced by :func:`dump_diagnostics`.

    Returns:
        list[Diagnostic]: Diagnostics in their stored order.

    Raises:
        PytidyError: If the payload is not valid JSON or fails validation.
    """

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PytidyError(f"invalid diagnostics document: {exc}") from exc
    try:
        if isinstance(payload, list):
            return _DIAGNOSTICS_ADAPTER.validate_python(payload)
        document = DiagnosticsDocument.model_validate(payload)
    except ValidationError as exc:
        raise PytidyError(f"invalid diagnostics document: {exc.error_count()} validation error(s)") from exc
    if document.version != EXPORT_FORMAT_VERSION:
        raise PytidyError(f"unsupported diagnostics document version {document.version}")
    return document.diagnostics


def import_diagnostics(path: Path) -> list[Diagnostic]:
    """Read diagnostics previously written by :func:`export_diagnostics`.

    Raises:
        PytidyError: If the file cannot be read or parsed.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PytidyError(f"cannot read diagnostics from {path}: {exc.strerror or exc}") from exc
    return load_diagnostics(text)


__all__ = [
    "DiagnosticsDocument",
    "dump_diagnostics",
    "export_diagnostics",
    "import_diagnostics",
    "load_diagnostics",
]
