# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Resolve byte-offset locations into line/column positions."""

from __future__ import annotations

import bisect
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Protocol, runtime_checkable

from pytidy.core.models import Location


@dataclass(frozen=True, slots=True)
class SourcePosition:
    """One-based line and column of a location."""

    path: str
    line: int
    column: int

    def render(self) -> str:
        """Return the ``path:line:column`` form used in console output."""

        return f"{self.path}:{self.line}:{self.column}"


@runtime_checkable
class SourceResolver(Protocol):
    """Contract used by the core to turn locations into readable positions."""

    def position(self, location: Location) -> SourcePosition | None:  # pragma: no cover - protocol definition
        """Return the position of ``location`` or ``None`` when unresolvable."""
        raise NotImplementedError

    def line_text(self, location: Location) -> str | None:  # pragma: no cover - protocol definition
        """Return the full source line containing ``location``."""
        raise NotImplementedError


@dataclass(slots=True)
class _FileIndex:
    """Cached file content together with its line start offsets."""

    content: bytes
    line_starts: list[int]


class FileSourceManager(SourceResolver):
    """Default resolver reading files from disk and caching line tables.

    Offsets are byte offsets into the file, and columns are reported as
    one-based byte columns, which matches how replacements address files.
    """

    def __init__(self, root: Path | None = None) -> None:
        """Initialise the manager.

        Args:
            root: Directory used to resolve relative paths. Defaults to the
                current working directory at lookup time.
        """

        self._root = root
        self._cache: dict[str, _FileIndex | None] = {}
        self._lock = Lock()

    def position(self, location: Location) -> SourcePosition | None:
        """Return the one-based line/column position of ``location``.

        Args:
            location: Location to resolve.

        Returns:
            SourcePosition | None: Resolved position, or ``None`` for the
            global location and unreadable files.
        """

        index = self._index(location)
        if index is None:
            return None
        offset = min(location.offset, len(index.content))
        line_number = bisect.bisect_right(index.line_starts, offset)
        column = offset - index.line_starts[line_number - 1] + 1
        return SourcePosition(path=location.path, line=line_number, column=column)

    def line_text(self, location: Location) -> str | None:
        """Return the text of the line containing ``location``.

        Args:
            location: Location whose line should be returned.

        Returns:
            str | None: Line text without its terminator, or ``None`` when the
            file cannot be read.
        """

        index = self._index(location)
        if index is None:
            return None
        offset = min(location.offset, len(index.content))
        line_number = bisect.bisect_right(index.line_starts, offset)
        start = index.line_starts[line_number - 1]
        end = index.content.find(b"\n", start)
        raw = index.content[start:] if end == -1 else index.content[start:end]
        return raw.decode("utf-8", errors="replace").rstrip("\r")

    def preload(self, paths: Iterable[str]) -> None:
        """Cache the current content of ``paths``.

        Positions of diagnostics are reported against the content seen here,
        so callers preload files before fixes rewrite them.

        Args:
            paths: Files to read into the cache.
        """

        for path in paths:
            if path:
                self._index(Location(path=path))

    def invalidate(self, path: str | None = None) -> None:
        """Drop cached content for ``path``, or for every file when omitted.

        Args:
            path: File whose cache entry should be discarded.
        """

        with self._lock:
            if path is None:
                self._cache.clear()
            else:
                self._cache.pop(path, None)

    def _index(self, location: Location) -> _FileIndex | None:
        """Return the cached index for the file of ``location``."""

        if not location.is_valid:
            return None
        with self._lock:
            if location.path in self._cache:
                return self._cache[location.path]
            index = self._load(location.path)
            self._cache[location.path] = index
            return index

    def _load(self, path: str) -> _FileIndex | None:
        """Read ``path`` and compute its line start table."""

        candidate = Path(path)
        if not candidate.is_absolute() and self._root is not None:
            candidate = self._root / candidate
        try:
            content = candidate.read_bytes()
        except OSError:
            return None
        line_starts = [0]
        line_starts.extend(position + 1 for position, byte in enumerate(content) if byte == 0x0A)
        return _FileIndex(content=content, line_starts=line_starts)


__all__ = ["FileSourceManager", "SourcePosition", "SourceResolver"]
