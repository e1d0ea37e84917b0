"""Lookup of installed compute drivers.

Drivers are published as entry points in the ``compute_providers``
group and keyed by ``vendor:driver_type``::

    [project.entry-points."compute_providers"]
    vsphere = "compute_providers.contrib.vsphere.driver:VSphereDriver"

The CLI and other callers go through ``configured_registry()``, which
loads the entry points once and applies the ``DRIVERS_ENABLED`` and
``DRIVERS_DISABLED`` settings.
"""
from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any, Iterable, Type

from .base import BaseDriver

logger = logging.getLogger("compute_providers.registry")

ENTRY_POINT_GROUP = "compute_providers"


class DriverRegistry:
    """Driver classes available to callers, keyed by ``vendor:driver_type``."""

    def __init__(self, group: str = ENTRY_POINT_GROUP):
        self.group = group
        self._drivers: dict[str, Type[BaseDriver]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._drivers

    def keys(self) -> list[str]:
        return sorted(self._drivers)

    def register(self, driver_class: Type[BaseDriver]) -> None:
        if not isinstance(driver_class, type) or not issubclass(driver_class, BaseDriver):
            raise TypeError(f"{driver_class!r} does not implement the driver contract")
        if not driver_class.vendor or not driver_class.driver_type:
            raise ValueError(f"{driver_class.__name__} needs both vendor and driver_type")

        key = driver_class.driver_key()
        if self._drivers.get(key, driver_class) is not driver_class:
            logger.warning("Driver key %s now served by %s", key, driver_class.__name__)
        self._drivers[key] = driver_class

    def _entry_points(self) -> Iterable:
        return entry_points(group=self.group)

    def load(self) -> int:
        """
        Register every driver class published in the entry point group.

        A broken entry point is logged and skipped so one bad plugin
        cannot hide the others. Returns the number of drivers registered.
        """
        loaded = 0
        for ep in self._entry_points():
            try:
                self.register(ep.load())
            except Exception:
                logger.exception("Cannot load driver entry point %s", ep.name)
                continue
            loaded += 1
        logger.info("Loaded %d driver(s): %s", loaded, ", ".join(self.keys()) or "(none)")
        return loaded

    def restrict(self, enabled: Iterable[str] | None = None, disabled: Iterable[str] | None = None) -> None:
        """Keep only ``enabled`` keys (when given), then drop ``disabled`` ones."""
        keep = set(self._drivers) if not enabled else set(enabled)
        keep -= set(disabled or ())
        for key in [k for k in self._drivers if k not in keep]:
            logger.info("Driver %s switched off by settings", key)
            del self._drivers[key]

    def get_by_key(self, key: str) -> Type[BaseDriver] | None:
        return self._drivers.get(key)

    def list_drivers(self) -> list[dict[str, Any]]:
        return [self._drivers[key].metadata() for key in self.keys()]

    def instantiate(self, key: str, settings: Any = None) -> BaseDriver:
        """
        Build the driver registered under ``key``.

        Raises:
            ValueError: If no driver matches.
        """
        driver_class = self.get_by_key(key)
        if driver_class is None:
            available = ", ".join(self.keys()) or "(none)"
            raise ValueError(f"No driver registered for {key}. Available: {available}")
        return driver_class(settings)


_configured: DriverRegistry | None = None


def configured_registry(settings: Any = None) -> DriverRegistry:
    """The process-wide registry, loaded and filtered on first use."""
    global _configured
    if _configured is None:
        if settings is None:
            from .conf import settings
        registry = DriverRegistry()
        registry.load()
        registry.restrict(
            enabled=settings.get("DRIVERS_ENABLED") or None,
            disabled=settings.get("DRIVERS_DISABLED") or None,
        )
        _configured = registry
    return _configured
