# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Severity related types and helpers."""

from __future__ import annotations

from enum import Enum
from typing import Final


class Severity(str, Enum):
    """Severity levels attached to reported diagnostics."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    REMARK = "remark"


_SEVERITY_COLORS: Final[dict[Severity, str]] = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.NOTE: "cyan",
    Severity.REMARK: "blue",
}


def severity_color(severity: Severity) -> str:
    """Return the rich colour name associated with a severity level.

    Args:
        severity: Severity value to translate.

    Returns:
        str: Rich colour name used when rendering ``severity``.
    """

    return _SEVERITY_COLORS.get(severity, "yellow")


__all__ = ["Severity", "severity_color"]
