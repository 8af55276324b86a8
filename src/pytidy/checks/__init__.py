# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Public exports for check plug-ins, the registry and dispatch helpers."""

from .analyzer import (
    ANALYZER_CHECK_PREFIX,
    DEFAULT_ANALYZER_CHECKERS,
    AnalyzerBridge,
    analyzer_check_name,
    analyzer_check_names,
    merge_analyzer_findings,
)
from .base import Check, CheckFactory, MatchFinder, MatchResult
from .dispatch import CheckDispatcher
from .registry import CheckModule, CheckRegistry, build_registry

__all__ = [
    "ANALYZER_CHECK_PREFIX",
    "AnalyzerBridge",
    "Check",
    "CheckDispatcher",
    "CheckFactory",
    "CheckModule",
    "CheckRegistry",
    "DEFAULT_ANALYZER_CHECKERS",
    "MatchFinder",
    "MatchResult",
    "analyzer_check_name",
    "analyzer_check_names",
    "build_registry",
    "merge_analyzer_findings",
]
