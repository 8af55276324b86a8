# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Entry-point discovery for third-party check modules."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from importlib import metadata
from importlib.metadata import EntryPoint
from typing import Final

from pytidy.checks.registry import CheckModule, CheckRegistry, build_registry

LOGGER = logging.getLogger(__name__)

CHECK_MODULE_GROUP: Final[str] = "pytidy.modules"


def _coerce_module(entry: EntryPoint) -> CheckModule:
    """Load ``entry`` and return the check module it exposes.

    The entry point may name a :class:`CheckModule` subclass, an instance,
    or a zero-argument callable returning an instance.

    Raises:
        TypeError: If the loaded object does not provide a check module.
    """

    target = entry.load()
    if isinstance(target, CheckModule):
        return target
    if callable(target):
        module = target()
        if isinstance(module, CheckModule):
            return module
    raise TypeError(f"entry point '{entry.name}' does not provide a CheckModule")


def _discover_entry_points(group: str, loader: Callable[[EntryPoint], CheckModule]) -> tuple[CheckModule, ...]:
    """Return check modules exposed by the entry-point ``group``.

    Args:
        group: Entry-point group name to inspect.
        loader: Callable converting an :class:`EntryPoint` into a module.

    Returns:
        tuple[CheckModule, ...]: Loaded modules sorted by entry-point name.
        Entries that fail to load are logged and skipped.
    """

    modules: list[CheckModule] = []
    for entry in sorted(metadata.entry_points(group=group), key=lambda item: item.name):
        try:
            modules.append(loader(entry))
        except (AttributeError, ImportError, TypeError, ValueError, RuntimeError) as exc:
            LOGGER.warning("skipping check module '%s': %s", entry.name, exc)
    return tuple(modules)


def load_check_modules() -> tuple[CheckModule, ...]:
    """Return check modules registered under :data:`CHECK_MODULE_GROUP`."""

    return _discover_entry_points(CHECK_MODULE_GROUP, loader=_coerce_module)


def discover_registry(extra_modules: Iterable[CheckModule] = ()) -> CheckRegistry:
    """Return a registry populated from installed plug-ins and ``extra_modules``.

    Args:
        extra_modules: Modules registered after the discovered ones.

    Returns:
        CheckRegistry: Registry holding every contributed factory.
    """

    return build_registry((*load_check_modules(), *extra_modules))


__all__ = ["CHECK_MODULE_GROUP", "discover_registry", "load_check_modules"]
