# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Standard-error status lines for the command-line interface."""

from __future__ import annotations

from typing import Final, Literal

from rich.text import Text

from pytidy.runtime.console import detect_tty, get_console_manager

StatusLevel = Literal["warn", "fail"]

_STATUS_STYLES: Final[dict[StatusLevel, tuple[str, str]]] = {
    "warn": ("⚠️ ", "yellow"),
    "fail": ("❌ ", "red"),
}


def status_line(level: StatusLevel, msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Print ``msg`` to standard error with the marker and style of ``level``.

    Args:
        level: Status level selecting the emoji marker and colour.
        msg: Message text to print.
        use_emoji: Whether the emoji marker is prepended.
        use_color: Explicit colour flag; defaults to TTY detection on stderr.
    """

    marker, style = _STATUS_STYLES[level]
    color_enabled = detect_tty("stderr") if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji, stderr=True)
    text = Text(f"{marker}{msg}" if use_emoji else msg)
    if color_enabled:
        text.stylize(style)
    console.print(text)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning line."""

    status_line("warn", msg, use_emoji=use_emoji, use_color=use_color)


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error line."""

    status_line("fail", msg, use_emoji=use_emoji, use_color=use_color)


__all__ = ["StatusLevel", "fail", "status_line", "warn"]
