# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Console rendering of diagnostics and run summaries."""

from .console import FIX_PREFIX, DiagnosticReporter, escape_text

__all__ = ["DiagnosticReporter", "FIX_PREFIX", "escape_text"]
