"""Compute Providers: uniform cloud resource drivers for hypervisor back ends.

This package defines the driver contract (images, instances, realms and
hardware profiles) and ships a contrib driver for VMware vSphere.

For driver authors:

    from compute_providers import BaseDriver, Instance, filter_on

    class MyCloudDriver(BaseDriver):
        vendor = "mycloud"
        driver_type = "api"

        def instances(self, credential, opts=None): ...
        ...

Register via entry point in your package's pyproject.toml::

    [project.entry-points."compute_providers"]
    mycloud = "my_package.driver:MyCloudDriver"

For callers:

    from compute_providers import ProviderCredential, configured_registry

    driver = configured_registry().instantiate("vmware:vsphere")
    credential = ProviderCredential(username="admin", password="...",
                                    hostname="vcenter.example.com")
    for instance in driver.instances(credential, {"state": "RUNNING"}):
        ...
"""

from .base import (
    BaseDriver,
    Image,
    Instance,
    InstanceProfile,
    ProviderCredential,
    Realm,
    filter_on,
)
from .errors import ConfigurationError, InvalidRequest, ProviderError, ResourceNotFound
from .hardware import HardwareProfile, HardwareProfileCatalog
from .lifecycle import StateMachine, Transition
from .registry import DriverRegistry, configured_registry

__all__ = [
    "BaseDriver",
    "ConfigurationError",
    "DriverRegistry",
    "HardwareProfile",
    "HardwareProfileCatalog",
    "Image",
    "Instance",
    "InstanceProfile",
    "InvalidRequest",
    "ProviderCredential",
    "ProviderError",
    "Realm",
    "ResourceNotFound",
    "StateMachine",
    "Transition",
    "configured_registry",
    "filter_on",
]

__version__ = "0.1.0"
