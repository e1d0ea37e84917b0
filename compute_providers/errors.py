"""Exceptions raised by compute drivers.

Remote faults from the vendor SDK are never wrapped in these: they
propagate unmodified so the outer layer can map them to its own status
codes. These types cover the conditions a driver detects itself.
"""
from __future__ import annotations


class ProviderError(Exception):
    """Base class for errors raised by a compute driver."""


class ResourceNotFound(ProviderError, LookupError):
    """A mutating operation referenced a resource that does not exist."""

    def __init__(self, kind: str, resource_id: str):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__(f"{kind} '{resource_id}' not found")


class InvalidRequest(ProviderError, ValueError):
    """The caller supplied options the driver cannot act on."""


class ConfigurationError(ProviderError):
    """The driver is missing settings it needs to reach its endpoint."""
