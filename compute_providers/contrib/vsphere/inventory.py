"""Inventory traversal for the vSphere driver.

Walks Datacenters → Datastores → VirtualMachines and yields one
``InventoryRecord`` per VM, tagged with the name of the first datastore
it was found on. VMs are only reachable through a datastore, so a VM
with no datastore never appears.

Ordering:
    Datacenters are visited sorted by name, then their datastores sorted
    by name, then VMs in the order the endpoint reports them. VM names
    are not unique across datastores; lookups by name return the first
    match in this order, and listings built with ``first_per_name`` hide
    the later ones. Two calls can still disagree if the remote
    inventory changes between them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Iterable, Iterator

from pyVmomi import vim

logger = logging.getLogger("compute_providers.contrib.vsphere.inventory")


@dataclass
class InventoryRecord:
    """A VM handle paired with the name of the datastore it lives on."""

    vm: Any
    datastore: str

    @cached_property
    def name(self) -> str:
        return self.vm.name

    @cached_property
    def summary(self):
        # Every attribute read on a managed object is a round trip
        return self.vm.summary

    @property
    def config(self):
        return self.summary.config

    @property
    def runtime(self):
        return self.summary.runtime

    @property
    def storage(self):
        return self.summary.storage

    @property
    def power_state(self) -> str | None:
        runtime = self.runtime
        return runtime.powerState if runtime is not None else None

    @property
    def is_template(self) -> bool:
        config = self.config
        return bool(config is not None and config.template)


def datacenters(content) -> list:
    """All datacenters under the root folder, sorted by name."""
    view = content.viewManager.CreateContainerView(
        content.rootFolder, [vim.Datacenter], True
    )
    try:
        found = list(view.view)
    finally:
        view.Destroy()
    return sorted(found, key=lambda dc: dc.name)


def _datastores(datacenter) -> list:
    return sorted(datacenter.datastore, key=lambda ds: ds.name)


def iter_datastores(content) -> Iterator[tuple[Any, Any]]:
    """Yield ``(datacenter, datastore)`` pairs in traversal order."""
    for dc in datacenters(content):
        for ds in _datastores(dc):
            yield dc, ds


def iter_records(content) -> Iterator[InventoryRecord]:
    """
    One record per VM. A VM whose files span several datastores is
    reported with the first of them in traversal order.
    """
    seen = set()
    for dc, ds in iter_datastores(content):
        ds_name = ds.name
        logger.debug("Scanning datastore %s in datacenter %s", ds_name, dc.name)
        for vm in ds.vm:
            if vm in seen:
                continue
            seen.add(vm)
            yield InventoryRecord(vm=vm, datastore=ds_name)


def list_all(content) -> list[InventoryRecord]:
    """Every VM reachable through a datastore, templates included."""
    return list(iter_records(content))


def first_per_name(records: Iterable[InventoryRecord]) -> list[InventoryRecord]:
    """Drop records whose name was already seen, the same tie-break as ``find_by_name``."""
    names = set()
    unique = []
    for record in records:
        if record.name in names:
            logger.debug("Hiding duplicate VM %s on %s", record.name, record.datastore)
            continue
        names.add(record.name)
        unique.append(record)
    return unique


def find_by_name(content, name: str, template: bool | None = None) -> InventoryRecord | None:
    """
    The first VM called ``name`` in traversal order, or None.

    Stops traversing at the first match. With ``template`` set, only
    templates (True) or only regular VMs (False) are considered.
    """
    for record in iter_records(content):
        if record.name != name:
            continue
        if template is not None and record.is_template != template:
            continue
        logger.debug("Found VM %s on datastore %s", name, record.datastore)
        return record
    return None


def list_datastores(content) -> list:
    return [ds for _, ds in iter_datastores(content)]


def find_datastore(content, name: str):
    for _, ds in iter_datastores(content):
        if ds.name == name:
            return ds
    return None


def find_resource_pool(content, datastore_name: str):
    """
    Root resource pool of the first compute resource in the datacenter
    that holds ``datastore_name``, or None.
    """
    for dc, ds in iter_datastores(content):
        if ds.name != datastore_name:
            continue
        for compute in _compute_resources(dc.hostFolder):
            return compute.resourcePool
        logger.warning("Datacenter %s has no compute resource", dc.name)
        return None
    return None


def _compute_resources(folder) -> Iterator[Any]:
    # Host folders nest: clusters and standalone hosts can sit in sub-folders
    for entity in folder.childEntity:
        if isinstance(entity, vim.ComputeResource):
            yield entity
        elif isinstance(entity, vim.Folder):
            yield from _compute_resources(entity)
