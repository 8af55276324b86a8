# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Diagnostic aggregation for a single tidy run."""

from .context import DiagnosticBuilder, DiagnosticContext, IgnoreReason

__all__ = ["DiagnosticBuilder", "DiagnosticContext", "IgnoreReason"]
