"""VMware vSphere compute driver.

Connects to a vCenter Server or standalone ESXi host via the vSphere API
(pyVmomi) and exposes it through the uniform driver contract:

    Template VM      → Image
    VirtualMachine   → Instance
    Datastore        → Realm

Every call opens its own session, walks the inventory afresh and closes
the session before returning. Nothing is cached.

Blocking behaviour of mutating calls:
    create_instance   waits for the clone task (can take minutes)
    destroy_instance  waits for the destroy task
    start/stop/reboot return as soon as the task is issued

Connection parameters (via ProviderCredential):
    hostname:   vCenter/ESXi host; falls back to VSPHERE_HOST
    port:       API port; falls back to VSPHERE_PORT
    username / password
    extra:
        validate_certs: verify TLS certificates (default VSPHERE_VALIDATE_CERTS)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pyVmomi import vim

from compute_providers.base import (
    PENDING,
    BaseDriver,
    Image,
    Instance,
    InstanceProfile,
    ProviderCredential,
    Realm,
    filter_on,
)
from compute_providers.errors import InvalidRequest, ResourceNotFound
from compute_providers.hardware import HardwareProfile, standard_catalog

from . import inventory, mapper, session, tasks
from .inventory import InventoryRecord


@dataclass
class Placement:
    """Where a clone lands: resource pool, and optionally a datastore."""

    pool: Any
    datastore: Any = None


def build_clone_spec(placement: Placement, profile: HardwareProfile):
    """Clone spec that powers the copy on and overrides its hardware."""
    relocate = vim.vm.RelocateSpec(pool=placement.pool)
    if placement.datastore is not None:
        relocate.datastore = placement.datastore

    config = vim.vm.ConfigSpec()
    if profile.memory is not None:
        config.memoryMB = profile.memory
    if profile.cpu is not None:
        config.numCPUs = profile.cpu

    return vim.vm.CloneSpec(
        location=relocate,
        powerOn=True,
        template=False,
        config=config,
    )


class VSphereDriver(BaseDriver):
    """Uniform compute driver for VMware vCenter / ESXi via pyVmomi."""

    vendor = "vmware"
    driver_type = "vsphere"
    display_name = "VMware vSphere"

    def __init__(self, settings: Any = None):
        super().__init__(settings)
        self.architecture = self.settings.get("IMAGE_ARCHITECTURE", "x86_64")
        if self.architecture != "x86_64":
            self.profile_catalog = standard_catalog(self.architecture)

    # ── Images ────────────────────────────────────────────────────────

    def images(self, credential: ProviderCredential, opts: dict | None = None) -> list[Image]:
        opts = opts or {}
        with session.open_session(credential, self.settings) as content:
            return self._images(content, credential, opts)

    def _images(self, content, credential: ProviderCredential, opts: dict) -> list[Image]:
        if opts.get("id"):
            record = inventory.find_by_name(content, opts["id"], template=True)
            records = [record] if record is not None else []
        else:
            records = inventory.first_per_name(
                r for r in inventory.list_all(content) if r.is_template
            )

        found = []
        for record in records:
            image = mapper.to_image(record, credential.username, self.architecture)
            if image is None:
                self.logger.debug("Skipping template without config on %s", record.datastore)
                continue
            found.append(image)

        found = filter_on(found, "architecture", opts)
        return sorted(found, key=lambda image: (image.owner_id, image.name))

    def create_image(self, credential: ProviderCredential, opts: dict) -> list[Image]:
        image_id = (opts or {}).get("id")
        if not image_id:
            raise InvalidRequest("create_image requires the id of an instance")

        with session.open_session(credential, self.settings) as content:
            vm = self._instance_vm(content, image_id)
            self.logger.info("Marking %s as a template", image_id)
            vm.MarkAsTemplate()
            return self._images(content, credential, {"id": image_id})

    # ── Realms ────────────────────────────────────────────────────────

    def realms(self, credential: ProviderCredential, opts: dict | None = None) -> list[Realm]:
        opts = opts or {}
        with session.open_session(credential, self.settings) as content:
            if opts.get("id"):
                datastore = inventory.find_datastore(content, opts["id"])
                return [mapper.to_realm(datastore)] if datastore is not None else []
            return [mapper.to_realm(ds) for ds in inventory.list_datastores(content)]

    # ── Instances ─────────────────────────────────────────────────────

    def instances(self, credential: ProviderCredential, opts: dict | None = None) -> list[Instance]:
        opts = opts or {}
        with session.open_session(credential, self.settings) as content:
            if opts.get("id"):
                record = inventory.find_by_name(content, opts["id"], template=False)
                records = [record] if record is not None else []
            else:
                records = inventory.first_per_name(
                    r for r in inventory.list_all(content) if not r.is_template
                )

            found = []
            for record in records:
                instance = mapper.to_instance(
                    record, credential.username, self.profile_catalog, self.state_machine,
                )
                if instance is None:
                    self.logger.debug(
                        "Skipping VM without config or storage summary on %s", record.datastore,
                    )
                    continue
                found.append(instance)

        return filter_on(found, "state", opts)

    def create_instance(self, credential: ProviderCredential, image_id: str, opts: dict) -> Instance:
        """
        Clone the template ``image_id`` into a new, powered-on VM.

        Supported opts:
            name:      name of the new VM (required)
            realm_id:  datastore to place the clone on; also picks the
                       resource pool
            datastore: datastore for the clone when no realm is given
            hwp_id:    hardware profile (defaults to the first in the catalog)

        Blocks until vSphere reports the clone task finished.
        """
        opts = opts or {}
        name = opts.get("name")
        if not name:
            raise InvalidRequest("create_instance requires a name for the new instance")

        hwp_id = opts.get("hwp_id") or self.profile_catalog.default.id
        profile = self.profile_catalog.resolve(hwp_id)

        with session.open_session(credential, self.settings) as content:
            template = inventory.find_by_name(content, image_id, template=True)
            if template is None:
                raise ResourceNotFound("image", image_id)

            placement = self._placement(content, template, opts)
            spec = build_clone_spec(placement, profile)

            self.logger.info(
                "Cloning template %s to %s (profile=%s)", image_id, name, profile.id,
            )
            task = template.vm.CloneVM_Task(folder=template.vm.parent, name=name, spec=spec)
            tasks.wait_for_task(task, f"clone of {image_id} to {name}")

        return Instance(
            id=name,
            name=name,
            owner_id=credential.username,
            realm_id=opts.get("realm_id") or opts.get("datastore") or template.datastore,
            state=PENDING,
            instance_profile=InstanceProfile(profile.id, cpu=profile.cpu, memory=profile.memory),
            actions=self.instance_actions_for(PENDING),
            create_image=True,
        )

    def _placement(self, content, template: InventoryRecord, opts: dict) -> Placement:
        realm_id = opts.get("realm_id")
        if realm_id:
            datastore = inventory.find_datastore(content, realm_id)
            if datastore is None:
                raise ResourceNotFound("realm", realm_id)
            pool = inventory.find_resource_pool(content, realm_id)
            pool_source = realm_id
        else:
            datastore = None
            if opts.get("datastore"):
                datastore = inventory.find_datastore(content, opts["datastore"])
                if datastore is None:
                    raise ResourceNotFound("datastore", opts["datastore"])
            pool = inventory.find_resource_pool(content, template.datastore)
            pool_source = template.datastore

        if pool is None:
            raise ResourceNotFound("resource pool for datastore", pool_source)
        return Placement(pool=pool, datastore=datastore)

    def _instance_vm(self, content, instance_id: str):
        record = inventory.find_by_name(content, instance_id, template=False)
        if record is None:
            raise ResourceNotFound("instance", instance_id)
        return record.vm

    def start_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        with session.open_session(credential, self.settings) as content:
            self._instance_vm(content, instance_id).PowerOnVM_Task()
        self.logger.info("Power-on issued for %s", instance_id)

    def stop_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        with session.open_session(credential, self.settings) as content:
            self._instance_vm(content, instance_id).PowerOffVM_Task()
        self.logger.info("Power-off issued for %s", instance_id)

    def reboot_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        with session.open_session(credential, self.settings) as content:
            self._instance_vm(content, instance_id).ResetVM_Task()
        self.logger.info("Reset issued for %s", instance_id)

    def destroy_instance(self, credential: ProviderCredential, instance_id: str) -> None:
        """Destroy the VM and all of its data. Blocks until vSphere is done."""
        with session.open_session(credential, self.settings) as content:
            task = self._instance_vm(content, instance_id).Destroy_Task()
            tasks.wait_for_task(task, f"destroy of {instance_id}")

    # ── Credentials ───────────────────────────────────────────────────

    def validate_connection(self, credential: ProviderCredential) -> tuple[bool, str]:
        try:
            si = session.connect(credential, self.settings)
        except Exception as exc:
            self.logger.info("Credential check failed for %s: %s", credential.username, exc)
            return False, str(exc)
        session.disconnect(si)
        return True, "Connection successful"
