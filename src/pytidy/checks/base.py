# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Check plug-in interface and the match routing table."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from pytidy.core.errors import AttributionError
from pytidy.core.models import Location
from pytidy.core.severity import Severity
from pytidy.core.sources import SourceResolver
from pytidy.diagnostics.context import DiagnosticBuilder, DiagnosticContext


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Opaque match handed over by the external pattern-matching engine.

    Attributes:
        pattern: Identifier of the pattern that matched.
        unit: Path of the analysis unit the match belongs to.
        location: Primary location of the matched node.
        nodes: Bound nodes keyed by binding name, opaque to the core.
        sources: Resolver for positions inside the unit, when available.
    """

    pattern: str
    unit: str
    location: Location = field(default_factory=Location)
    nodes: Mapping[str, object] = field(default_factory=dict)
    sources: SourceResolver | None = None

    def node(self, binding: str) -> object | None:
        """Return the node bound under ``binding`` or ``None``."""

        return self.nodes.get(binding)


class Check(ABC):
    """Named unit of analysis invoked once per match it registered for.

    Concrete checks implement :meth:`register_matchers` and :meth:`check`.
    The name is bound exactly once when the registry instantiates the check.
    """

    def __init__(self) -> None:
        """Initialise an unbound check."""

        self._name: str | None = None
        self._context: DiagnosticContext | None = None

    @property
    def name(self) -> str:
        """Return the check name bound at instantiation.

        Raises:
            AttributionError: If the check has not been bound yet.
        """

        if self._name is None:
            raise AttributionError(f"{type(self).__name__} used before a check name was bound")
        return self._name

    def bind(self, name: str, context: DiagnosticContext) -> None:
        """Assign the check name and the context receiving its diagnostics.

        Args:
            name: Registered check name.
            context: Diagnostic context for the current run.

        Raises:
            AttributionError: If ``name`` is empty or a name is already bound.
        """

        if not name:
            raise AttributionError(f"{type(self).__name__} bound with an empty check name")
        if self._name is not None:
            raise AttributionError(f"check '{self._name}' cannot be renamed to '{name}'")
        self._name = name
        self._context = context

    @abstractmethod
    def register_matchers(self, finder: MatchFinder) -> None:
        """Declare interest in match patterns through ``finder``."""

    @abstractmethod
    def check(self, match: MatchResult) -> None:
        """Analyse one match and report findings through :meth:`diag`."""

    def run(self, match: MatchResult) -> None:
        """Entry point used by the dispatcher for every routed match."""

        self.check(match)

    def diag(
        self,
        location: Location,
        message: str,
        severity: Severity = Severity.WARNING,
    ) -> DiagnosticBuilder:
        """Report a finding under this check's name.

        Args:
            location: Primary location of the finding.
            message: Human-readable message text.
            severity: Severity of the finding.

        Returns:
            DiagnosticBuilder: Draft onto which fixes and notes attach.
        """

        return self._require_context().report(self.name, location, message, severity)

    def note(self, location: Location, message: str) -> None:
        """Attach a note to the most recent diagnostic of the current thread."""

        self._require_context().add_note(location, message)

    def _require_context(self) -> DiagnosticContext:
        if self._context is None:
            raise AttributionError(f"{type(self).__name__} reported before being bound to a context")
        return self._context


CheckFactory = Callable[[], Check]


class MatchFinder:
    """Routing table from pattern identifiers to interested checks."""

    def __init__(self) -> None:
        """Initialise an empty routing table."""

        self._routes: dict[str, list[Check]] = defaultdict(list)

    def add_matcher(self, pattern: str, check: Check) -> None:
        """Route matches of ``pattern`` to ``check``.

        Args:
            pattern: Pattern identifier understood by the matching engine.
            check: Check whose :meth:`Check.run` receives the matches.
        """

        routes = self._routes[pattern]
        if check not in routes:
            routes.append(check)

    def checks_for(self, pattern: str) -> tuple[Check, ...]:
        """Return checks interested in ``pattern`` in registration order."""

        return tuple(self._routes.get(pattern, ()))

    def patterns(self) -> tuple[str, ...]:
        """Return every pattern with at least one interested check."""

        return tuple(pattern for pattern, checks in self._routes.items() if checks)

    def __bool__(self) -> bool:
        return any(self._routes.values())


__all__ = ["Check", "CheckFactory", "MatchFinder", "MatchResult"]
