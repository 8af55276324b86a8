# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Glob-based enable/disable rules deciding which checks run."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Final

LOGGER = logging.getLogger(__name__)

NEGATION_MARKER: Final[str] = "-"
RULE_SEPARATOR: Final[str] = ","
WILDCARD: Final[str] = "*"
_VALID_GLOB: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.:/*+\-]+$")


@dataclass(frozen=True, slots=True)
class FilterRule:
    """Single enable or disable directive compiled from a glob pattern."""

    pattern: str
    enabled: bool
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Compile ``pattern`` into an anchored, case-sensitive expression."""

        body = ".*".join(re.escape(part) for part in self.pattern.split(WILDCARD))
        object.__setattr__(self, "regex", re.compile(f"^{body}$"))

    def matches(self, name: str) -> bool:
        """Return ``True`` when ``name`` matches the rule's glob.

        Args:
            name: Check name being evaluated.

        Returns:
            bool: ``True`` if the glob matches the whole name.
        """

        return self.regex.match(name) is not None

    def render(self) -> str:
        """Return the rule in its textual ``[-]glob`` form."""

        return self.pattern if self.enabled else f"{NEGATION_MARKER}{self.pattern}"


@dataclass(slots=True)
class NameFilter:
    """Evaluate check names against an ordered list of glob rules.

    Rules are evaluated in order and the last matching rule decides. Names
    matched by no rule fall back to ``default_enabled``. The filter carries no
    state besides its rules, so every query is deterministic.
    """

    rules: tuple[FilterRule, ...] = ()
    default_enabled: bool = True
    warnings: tuple[str, ...] = ()

    @classmethod
    def parse(cls, spec: str | Sequence[str], *, default_enabled: bool = True) -> NameFilter:
        """Build a filter from ``"glob,-glob"`` text or a sequence of directives.

        Malformed globs are skipped and described in :attr:`warnings`; they
        never invalidate the remaining rules.

        Args:
            spec: Comma separated rule string or pre-split rule sequence.
            default_enabled: Outcome for names matched by no rule.

        Returns:
            NameFilter: Filter holding the well-formed rules in order.
        """

        items = spec.split(RULE_SEPARATOR) if isinstance(spec, str) else list(spec)
        rules: list[FilterRule] = []
        warnings: list[str] = []
        for raw in items:
            item = raw.strip()
            if not item:
                continue
            enabled = not item.startswith(NEGATION_MARKER)
            pattern = item if enabled else item[len(NEGATION_MARKER) :].strip()
            if not pattern or not _VALID_GLOB.match(pattern):
                message = f"ignoring malformed check filter '{item}'"
                LOGGER.warning(message)
                warnings.append(message)
                continue
            rules.append(FilterRule(pattern=pattern, enabled=enabled))
        return cls(rules=tuple(rules), default_enabled=default_enabled, warnings=tuple(warnings))

    def is_enabled(self, name: str) -> bool:
        """Return whether the check called ``name`` is enabled.

        Args:
            name: Check name, including analyzer-prefixed synthetic names.

        Returns:
            bool: Outcome of the last matching rule, or the default.
        """

        for rule in reversed(self.rules):
            if rule.matches(name):
                return rule.enabled
        return self.default_enabled

    def enabled_names(self, universe: Iterable[str]) -> list[str]:
        """Return the sorted subset of ``universe`` that passes the filter.

        Args:
            universe: Every known check name.

        Returns:
            list[str]: Enabled names in lexicographic order without duplicates.
        """

        return sorted({name for name in universe if self.is_enabled(name)})

    def render(self) -> str:
        """Return the filter in its comma separated textual form."""

        return RULE_SEPARATOR.join(rule.render() for rule in self.rules)


__all__ = ["FilterRule", "NameFilter", "NEGATION_MARKER", "WILDCARD"]
