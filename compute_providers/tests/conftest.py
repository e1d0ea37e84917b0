"""Fake vSphere inventory shared by the driver tests.

Managed objects are ``Mock``s whose ``__class__`` is the pyVmomi type
they stand in for, so ``isinstance`` checks in the driver and the type
checks pyVmomi runs while building clone specs both accept them.

Inventory (listed unsorted on purpose, traversal sorts it):

    dc-west
      ds-bulk      web-01 (suspended, 2048/4)   ubuntu-22 (template, suspended)
    dc-east
      ds-fast      web-01 (on, 512/1)   db-01 (off, 1024/2)   centos-7 (template, off)   batch-01
      ds-archive   broken (no storage summary)   batch-01 (suspended, 2048/4)   (inaccessible)

batch-01 has disks on both east datastores and is the same VM object in
both listings.
"""
from __future__ import annotations

from types import SimpleNamespace
from unittest import mock

import pytest
from pyVmomi import vim

from compute_providers.base import ProviderCredential
from compute_providers.contrib.vsphere import session, tasks
from compute_providers.contrib.vsphere.driver import VSphereDriver

GB = 1024 ** 3


def managed(cls, **attrs):
    """A Mock that passes isinstance checks for a pyVmomi managed object type."""
    obj = mock.Mock()
    obj.__class__ = cls
    for key, value in attrs.items():
        setattr(obj, key, value)
    return obj


def make_vm(
    name,
    power_state="poweredOff",
    template=False,
    memory=512,
    cpu=1,
    guest_full_name="CentOS 7 (64-bit)",
    ips=None,
    macs=None,
    config=True,
    storage=True,
    unshared=10 * GB,
):
    summary = SimpleNamespace(
        config=SimpleNamespace(
            name=name,
            template=template,
            memorySizeMB=memory,
            numCpu=cpu,
            guestFullName=guest_full_name,
        ) if config else None,
        runtime=SimpleNamespace(powerState=power_state),
        storage=SimpleNamespace(unshared=unshared) if storage else None,
    )
    devices = [
        vim.vm.device.VirtualVmxnet3(key=4000 + i, macAddress=mac)
        for i, mac in enumerate(macs or [])
    ]
    guest_net = [SimpleNamespace(ipAddress=list(ips))] if ips else []
    vm = managed(
        vim.VirtualMachine,
        name=name,
        summary=summary,
        guest=SimpleNamespace(net=guest_net),
        config=SimpleNamespace(hardware=SimpleNamespace(device=devices)),
        parent=managed(vim.Folder, name="vm"),
    )
    if config:
        vm.MarkAsTemplate.side_effect = lambda: setattr(summary.config, "template", True)
    return vm


def make_datastore(name, vms=(), free_space=100 * GB, accessible=True):
    return managed(
        vim.Datastore,
        name=name,
        vm=list(vms),
        summary=SimpleNamespace(freeSpace=free_space, accessible=accessible),
    )


def make_datacenter(name, datastores):
    pool = managed(vim.ResourcePool, name=f"{name}-resources")
    cluster = managed(vim.ClusterComputeResource, name=f"{name}-cluster", resourcePool=pool)
    empty = managed(vim.Folder, name="standalone", childEntity=[])
    dc = managed(
        vim.Datacenter,
        name=name,
        datastore=list(datastores),
        hostFolder=SimpleNamespace(childEntity=[empty, cluster]),
    )
    return dc, pool


def make_content(datacenters):
    content = mock.Mock()
    content.rootFolder = managed(vim.Folder, name="Datacenters")
    content.view = mock.Mock(view=list(datacenters))
    content.viewManager.CreateContainerView.return_value = content.view
    return content


@pytest.fixture
def credential():
    return ProviderCredential(username="admin", password="secret", hostname="vcenter.test")


@pytest.fixture
def inventory():
    vms = {
        "web-01": make_vm(
            "web-01", power_state="poweredOn", memory=512, cpu=1,
            ips=["10.0.0.11", "fe80::1"], macs=["00:50:56:00:00:01"],
        ),
        "db-01": make_vm(
            "db-01", power_state="poweredOff", memory=1024, cpu=2,
            macs=["00:50:56:00:00:02", "00:50:56:00:00:03"],
        ),
        "centos-7": make_vm("centos-7", template=True, guest_full_name="CentOS 7 (64-bit)"),
        "broken": make_vm("broken", storage=False),
        "web-01-west": make_vm(
            "web-01", power_state="suspended", memory=2048, cpu=4,
            guest_full_name="Ubuntu Linux (64-bit)",
        ),
        "ubuntu-22": make_vm(
            "ubuntu-22", power_state="suspended", template=True,
            guest_full_name="Ubuntu Linux (64-bit)",
        ),
        "batch-01": make_vm(
            "batch-01", power_state="suspended", memory=2048, cpu=4,
            guest_full_name="Ubuntu Linux (64-bit)",
        ),
    }
    datastores = {
        "ds-bulk": make_datastore("ds-bulk", [vms["web-01-west"], vms["ubuntu-22"]]),
        "ds-fast": make_datastore(
            "ds-fast", [vms["web-01"], vms["db-01"], vms["centos-7"], vms["batch-01"]],
            free_space=250 * GB,
        ),
        "ds-archive": make_datastore("ds-archive", [vms["broken"], vms["batch-01"]], accessible=False),
    }
    west, west_pool = make_datacenter("dc-west", [datastores["ds-bulk"]])
    east, east_pool = make_datacenter("dc-east", [datastores["ds-fast"], datastores["ds-archive"]])

    return SimpleNamespace(
        content=make_content([west, east]),
        vms=vms,
        datastores=datastores,
        pools={"dc-west": west_pool, "dc-east": east_pool},
    )


@pytest.fixture
def vsphere(monkeypatch, inventory):
    """Patch pyVim so sessions connect to the fake inventory."""
    service_instance = mock.Mock()
    service_instance.RetrieveContent.return_value = inventory.content

    smart_connect = mock.Mock(return_value=service_instance)
    disconnect = mock.Mock()
    wait_for_task = mock.Mock(return_value="success")
    monkeypatch.setattr(session, "SmartConnect", smart_connect)
    monkeypatch.setattr(session, "Disconnect", disconnect)
    monkeypatch.setattr(tasks, "WaitForTask", wait_for_task)

    return SimpleNamespace(
        inventory=inventory,
        service_instance=service_instance,
        SmartConnect=smart_connect,
        Disconnect=disconnect,
        WaitForTask=wait_for_task,
    )


@pytest.fixture
def driver():
    return VSphereDriver(settings={"IMAGE_ARCHITECTURE": "x86_64"})
