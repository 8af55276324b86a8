# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Check registry providing discovery and instantiation by name."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping

from pytidy.core.filtering import NameFilter
from pytidy.diagnostics.context import DiagnosticContext

from .base import Check, CheckFactory

LOGGER = logging.getLogger(__name__)


class CheckRegistry(Mapping[str, CheckFactory]):
    """Append-only registry of named check factories.

    ``CheckRegistry`` behaves like a read-only mapping whose keys are check
    names and whose values are zero-argument factories. Registration order is
    preserved. A duplicate name never replaces the first registration; it is
    rejected and recorded in :attr:`warnings`.
    """

    def __init__(self) -> None:
        """Initialise an empty check registry."""

        self._factories: dict[str, CheckFactory] = {}
        self._warnings: list[str] = []

    @property
    def warnings(self) -> tuple[str, ...]:
        """Return configuration warnings raised while registering checks."""

        return tuple(self._warnings)

    def register_factory(self, name: str, factory: CheckFactory) -> bool:
        """Register ``factory`` under ``name``.

        Args:
            name: Unique check name.
            factory: Callable constructing a fresh :class:`Check` instance.

        Returns:
            bool: ``True`` when registered, ``False`` when rejected.
        """

        if not name:
            self._warn("ignoring check factory registered without a name")
            return False
        if name in self._factories:
            self._warn(f"check '{name}' is already registered; ignoring the later registration")
            return False
        self._factories[name] = factory
        return True

    def register_module(self, module: CheckModule) -> None:
        """Let ``module`` contribute its check factories.

        Args:
            module: Check module exposing :meth:`CheckModule.add_check_factories`.
        """

        module.add_check_factories(self)

    def instantiate_enabled(self, name_filter: NameFilter, context: DiagnosticContext) -> list[Check]:
        """Construct one instance of every check enabled by ``name_filter``.

        Args:
            name_filter: Filter deciding which registered names run.
            context: Diagnostic context receiving the checks' findings.

        Returns:
            list[Check]: Freshly bound check instances in registration order.
        """

        checks: list[Check] = []
        for name, factory in self._factories.items():
            if not name_filter.is_enabled(name):
                continue
            check = factory()
            check.bind(name, context)
            checks.append(check)
        return checks

    def enabled_names(self, name_filter: NameFilter) -> list[str]:
        """Return the sorted registered names enabled by ``name_filter``."""

        return name_filter.enabled_names(self._factories)

    def __len__(self) -> int:
        """Return the number of registered factories."""

        return len(self._factories)

    def __iter__(self) -> Iterator[str]:
        """Iterate over check names in registration order."""

        return iter(self._factories)

    def __getitem__(self, name: str) -> CheckFactory:
        """Return the factory registered under ``name``.

        Raises:
            KeyError: If ``name`` is not registered.
        """

        return self._factories[name]

    def _warn(self, message: str) -> None:
        LOGGER.warning(message)
        self._warnings.append(message)


class CheckModule(ABC):
    """Group of related checks contributed to a registry together."""

    @abstractmethod
    def add_check_factories(self, registry: CheckRegistry) -> None:
        """Register this module's check factories with ``registry``."""


def build_registry(modules: Iterable[CheckModule]) -> CheckRegistry:
    """Return a registry populated by ``modules`` in order.

    Args:
        modules: Check modules to register.

    Returns:
        CheckRegistry: Populated registry.
    """

    registry = CheckRegistry()
    for module in modules:
        registry.register_module(module)
    return registry


__all__ = ["CheckModule", "CheckRegistry", "build_registry"]
