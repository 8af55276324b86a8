# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the orchestration core."""

from __future__ import annotations


class PytidyError(Exception):
    """Base class for recoverable pytidy failures."""


class ConfigError(PytidyError):
    """Raised when configuration input is invalid."""


class FixApplicationError(PytidyError):
    """Raised when the edits for a single file cannot be read or written."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialise the error with the affected path and a short reason.

        Args:
            path: File whose edits could not be applied.
            reason: Human-readable explanation of the failure.
        """

        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class AttributionError(AssertionError):
    """Raised when a check breaks the diagnostic attribution contract.

    Attribution errors are programming errors in a check plug-in, such as
    reporting without a check name or attaching a note while no diagnostic
    is active. They are never downgraded to warnings.
    """


__all__ = [
    "AttributionError",
    "ConfigError",
    "FixApplicationError",
    "PytidyError",
]
