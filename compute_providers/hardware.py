"""Hardware profile catalog.

A driver declares a fixed, ordered set of named tiers. The catalog is
used in two directions:

    - reverse: ``match(memory, cpu)`` reports which tier an existing
      instance falls into, defaulting to the wildcard tier
    - forward: ``resolve(profile_id)`` turns a requested tier into
      concrete memory/cpu values for provisioning

The wildcard tier has no cpu or memory. It is never returned by a
reverse match of concrete values except as the fallback.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from .errors import InvalidRequest

UNKNOWN_PROFILE = "unknown"


@dataclass(frozen=True)
class HardwareProfile:
    """A named tier of cpu count and memory size (MB)."""

    id: str
    cpu: int | None = None
    memory: int | None = None
    architecture: str = "x86_64"

    @property
    def name(self) -> str:
        return self.id

    @property
    def is_wildcard(self) -> bool:
        return self.cpu is None and self.memory is None


class HardwareProfileCatalog:
    """Ordered, immutable set of hardware profiles with a wildcard fallback."""

    def __init__(self, profiles: Iterable[HardwareProfile], fallback: str = UNKNOWN_PROFILE):
        self._profiles = tuple(profiles)
        ids = [p.id for p in self._profiles]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate hardware profile ids: {ids}")
        if fallback not in ids:
            raise ValueError(f"Fallback profile '{fallback}' is not in the catalog")
        self.fallback = fallback

    def __iter__(self) -> Iterator[HardwareProfile]:
        return iter(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, profile_id: object) -> bool:
        return any(p.id == profile_id for p in self._profiles)

    @property
    def default(self) -> HardwareProfile:
        """The profile used for provisioning when none is requested."""
        return self._profiles[0]

    def match(self, memory: int | None, cpu: int | None) -> str:
        """Return the id of the tier with exactly this memory and cpu."""
        for profile in self._profiles:
            if profile.is_wildcard:
                continue
            if profile.memory == memory and profile.cpu == cpu:
                return profile.id
        return self.fallback

    def resolve(self, profile_id: str) -> HardwareProfile:
        for profile in self._profiles:
            if profile.id == profile_id:
                return profile
        known = ", ".join(p.id for p in self._profiles)
        raise InvalidRequest(
            f"Unknown hardware profile '{profile_id}'. Available: {known}"
        )

    def filter(self, id: str | None = None, architecture: str | None = None) -> list[HardwareProfile]:
        profiles = list(self._profiles)
        if id is not None:
            profiles = [p for p in profiles if p.id == id]
        if architecture is not None:
            profiles = [p for p in profiles if p.architecture == architecture]
        return profiles


def standard_catalog(architecture: str = "x86_64") -> HardwareProfileCatalog:
    """The small/medium/large/x-large tiers plus the ``unknown`` wildcard."""
    return HardwareProfileCatalog([
        HardwareProfile("small", cpu=1, memory=256, architecture=architecture),
        HardwareProfile("medium", cpu=1, memory=512, architecture=architecture),
        HardwareProfile("large", cpu=2, memory=1024, architecture=architecture),
        HardwareProfile("x-large", cpu=4, memory=2048, architecture=architecture),
        # Instances launched with vSphere's own tools can have any shape
        HardwareProfile(UNKNOWN_PROFILE, architecture=architecture),
    ])
