# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Fix-it application engine."""

from .engine import FixItEngine, annotate_with_fix_notes, apply_replacements, format_fix_summary

__all__ = ["FixItEngine", "annotate_with_fix_notes", "apply_replacements", "format_fix_summary"]
