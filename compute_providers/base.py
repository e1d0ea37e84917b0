"""Base classes and data contracts for compute drivers.

This module defines the uniform driver contract. It is intentionally
free of any vendor SDK so that driver authors can develop and test
against it without installing every hypervisor client library.

Driver authors subclass ``BaseDriver`` and implement the uniform
operations:
    - ``images()`` / ``create_image()``
    - ``realms()``
    - ``instances()`` / ``create_instance()``
    - ``start_instance()`` / ``stop_instance()`` / ``reboot_instance()``
      / ``destroy_instance()``
    - ``validate_connection()``

Every operation receives the caller's credential explicitly. Drivers
keep no per-call state on the instance, so one driver object can serve
concurrent callers talking to different endpoints.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, TypeVar

from .hardware import HardwareProfile, HardwareProfileCatalog, standard_catalog
from .lifecycle import DEFAULT_INSTANCE_STATES, StateMachine

logger = logging.getLogger("compute_providers")

# Uniform entity states
AVAILABLE = "AVAILABLE"
UNAVAILABLE = "UNAVAILABLE"
UNKNOWN = "UNKNOWN"
PENDING = "PENDING"
RUNNING = "RUNNING"
STOPPED = "STOPPED"


# ── Data contracts ────────────────────────────────────────────────────


@dataclass
class ProviderCredential:
    """
    Credentials for one call against a driver's endpoint.

    ``hostname`` is the per-call endpoint override. When empty the driver
    falls back to its configured default endpoint.
    """

    username: str = ""
    password: str = ""
    hostname: str = ""
    port: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class Image:
    id: str
    name: str
    architecture: str
    owner_id: str = ""
    description: str = ""
    state: str = UNKNOWN

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class InstanceProfile:
    """The hardware profile an instance reports, with its observed values."""

    id: str
    cpu: int | None = None
    memory: int | None = None
    storage: int | None = None

    @property
    def name(self) -> str:
        return self.id


@dataclass
class Instance:
    id: str
    name: str
    owner_id: str = ""
    description: str = ""
    realm_id: str = ""
    state: str = PENDING
    public_addresses: list[str] = field(default_factory=list)
    private_addresses: list[str] = field(default_factory=list)
    instance_profile: InstanceProfile | None = None
    actions: list[str] = field(default_factory=list)
    create_image: bool = False

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class Realm:
    id: str
    name: str
    limit: int | None = None
    state: str = AVAILABLE

    def as_dict(self) -> dict:
        return asdict(self)


T = TypeVar("T")


def filter_on(items: Iterable[T], attribute: str, opts: dict[str, Any] | None) -> list[T]:
    """
    Keep items whose ``attribute`` equals ``opts[attribute]``.

    Filtering only applies when the caller supplied the key; a missing or
    ``None`` value returns every item.
    """
    items = list(items)
    if not opts or opts.get(attribute) is None:
        return items
    wanted = opts[attribute]
    return [item for item in items if getattr(item, attribute, None) == wanted]


# ── Abstract base driver ──────────────────────────────────────────────


class BaseDriver(ABC):
    """
    Abstract base class for compute drivers.

    Subclasses must set these class attributes:
        - ``vendor``       e.g. 'vmware'
        - ``driver_type``  e.g. 'vsphere'

    Subclasses may override:
        - ``display_name``    human-readable name
        - ``profile_catalog`` hardware profiles offered by the driver
        - ``state_machine``   instance lifecycle transitions

    Example::

        class MyCloudDriver(BaseDriver):
            vendor = "mycloud"
            driver_type = "api"
            display_name = "My Cloud Platform"

            def instances(self, credential, opts=None):
                client = MyCloudSDK(credential.hostname, credential.password)
                found = [
                    Instance(
                        id=vm.id,
                        name=vm.name,
                        state=RUNNING if vm.active else STOPPED,
                        actions=self.instance_actions_for(...),
                    )
                    for vm in client.list_vms()
                ]
                return filter_on(found, "state", opts)
    """

    # ── Subclass must set these ───────────────────────────────────────
    vendor: str = ""
    driver_type: str = ""
    display_name: str = ""
    profile_catalog: HardwareProfileCatalog = standard_catalog()
    state_machine: StateMachine = DEFAULT_INSTANCE_STATES

    def __init__(self, settings: Any = None):
        """
        Args:
            settings: Settings object with ``.get()``. Defaults to the
                package settings loaded by dynaconf.
        """
        if settings is None:
            from .conf import settings
        self.settings = settings
        self.logger = logging.getLogger(
            f"compute_providers.drivers.{self.vendor}.{self.driver_type}"
        )

    # ── Abstract interface ────────────────────────────────────────────

    @abstractmethod
    def images(self, credential: ProviderCredential, opts: dict | None = None) -> list[Image]:
        """List images. Supported opts: ``id``, ``architecture``."""
        ...

    @abstractmethod
    def create_image(self, credential: ProviderCredential, opts: dict) -> list[Image]:
        """Turn the instance ``opts['id']`` into an image and return it."""
        ...

    @abstractmethod
    def realms(self, credential: ProviderCredential, opts: dict | None = None) -> list[Realm]:
        """List realms. Supported opts: ``id``."""
        ...

    @abstractmethod
    def instances(self, credential: ProviderCredential, opts: dict | None = None) -> list[Instance]:
        """List instances. Supported opts: ``id``, ``state``."""
        ...

    @abstractmethod
    def create_instance(self, credential: ProviderCredential, image_id: str, opts: dict) -> Instance:
        """Provision an instance from ``image_id``."""
        ...

    @abstractmethod
    def start_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        ...

    @abstractmethod
    def stop_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        ...

    @abstractmethod
    def reboot_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        ...

    @abstractmethod
    def destroy_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        ...

    @abstractmethod
    def validate_connection(self, credential: ProviderCredential) -> tuple[bool, str]:
        """
        Test connectivity without touching inventory.

        Must not raise.

        Returns:
            (success: bool, message: str)
        """
        ...

    # ── Shared behaviour ──────────────────────────────────────────────

    def valid_credentials(self, credential: ProviderCredential) -> bool:
        ok, _ = self.validate_connection(credential)
        return ok

    def hardware_profiles(
        self, credential: ProviderCredential, opts: dict | None = None,
    ) -> list[HardwareProfile]:
        opts = opts or {}
        return self.profile_catalog.filter(
            id=opts.get("id"), architecture=opts.get("architecture"),
        )

    def instance_actions_for(self, state: str) -> list[str]:
        return self.state_machine.actions_for(state)

    # ── Metadata ──────────────────────────────────────────────────────

    @classmethod
    def driver_key(cls) -> str:
        """Return the registry key for this driver class."""
        return f"{cls.vendor}:{cls.driver_type}"

    @classmethod
    def metadata(cls) -> dict[str, Any]:
        """Return a metadata dict describing this driver."""
        return {
            "key": cls.driver_key(),
            "vendor": cls.vendor,
            "driver_type": cls.driver_type,
            "display_name": cls.display_name or cls.driver_key(),
            "hardware_profiles": [p.id for p in cls.profile_catalog],
            "class": f"{cls.__module__}.{cls.__name__}",
        }
