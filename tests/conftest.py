# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from pytidy.checks.registry import CheckRegistry
from tests.helpers.checks import FixCheck, FlagCheck, NotingCheck


@pytest.fixture
def registry() -> CheckRegistry:
    """Return a registry holding the sample checks."""

    registry = CheckRegistry()
    registry.register_factory("foo", FlagCheck)
    registry.register_factory("fix-spelling", FixCheck)
    registry.register_factory("notes", NotingCheck)
    return registry


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[[str, str | bytes], Path]:
    """Return a helper writing a source file below ``tmp_path``."""

    def _write(name: str, content: str | bytes) -> Path:
        target = tmp_path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
        return target

    return _write


@pytest.fixture
def plain_console() -> Console:
    """Return a colourless console recording its output."""

    return Console(record=True, no_color=True, width=200, highlight=False, emoji=False)
