# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for console management and standard-error status lines."""

from __future__ import annotations

import pytest

from pytidy import logging as tidy_logging
from pytidy.cli.shared import build_cli_logger
from pytidy.runtime.console import RichConsoleManager, detect_tty, get_console_manager


def test_console_manager_caches_by_preferences() -> None:
    manager = RichConsoleManager()

    first = manager.get(color=False, emoji=False)
    assert manager.get(color=False, emoji=False) is first
    assert manager.get(color=False, emoji=False, stderr=True) is not first
    assert get_console_manager() is get_console_manager()


def test_detect_tty_handles_closed_streams(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Closed:
        def isatty(self) -> bool:
            raise ValueError("I/O operation on closed file")

    monkeypatch.setattr("sys.stdout", _Closed())

    assert detect_tty("stdout") is False


def test_status_lines_write_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    tidy_logging.warn("careful", use_emoji=False, use_color=False)
    tidy_logging.fail("broken", use_emoji=True, use_color=False)

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "careful" in captured.err
    assert "⚠️" not in captured.err
    assert "❌ broken" in captured.err


def test_cli_logger_routes_status_and_output(capsys: pytest.CaptureFixture[str]) -> None:
    logger = build_cli_logger(emoji=False)

    logger.warn("duplicate check name")
    logger.echo("Enabled checks:")

    captured = capsys.readouterr()
    assert captured.out == "Enabled checks:\n"
    assert "duplicate check name" in captured.err
