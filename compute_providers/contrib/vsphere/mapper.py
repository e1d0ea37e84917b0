"""Translate vSphere inventory into uniform entities.

Power states map differently for the two kinds of VM:

    raw state    image          instance
    ----------   -----------    --------
    poweredOff   AVAILABLE      STOPPED
    poweredOn    UNAVAILABLE    RUNNING
    (other)      UNKNOWN        PENDING

Records missing the summaries a mapping needs yield ``None`` and are
skipped by the listing that asked for them.
"""
from __future__ import annotations

from pyVmomi import vim

from compute_providers.base import (
    AVAILABLE,
    PENDING,
    RUNNING,
    STOPPED,
    UNAVAILABLE,
    UNKNOWN,
    Image,
    Instance,
    InstanceProfile,
    Realm,
)
from compute_providers.hardware import HardwareProfileCatalog
from compute_providers.lifecycle import StateMachine

from .inventory import InventoryRecord

IMAGE = "image"
INSTANCE = "instance"

POWERED_ON = "poweredOn"
POWERED_OFF = "poweredOff"

_IMAGE_STATES = {
    POWERED_OFF: AVAILABLE,
    POWERED_ON: UNAVAILABLE,
}

_INSTANCE_STATES = {
    POWERED_OFF: STOPPED,
    POWERED_ON: RUNNING,
}


def translate_state(kind: str, power_state: str | None) -> str:
    if kind == IMAGE:
        return _IMAGE_STATES.get(power_state, UNKNOWN)
    if kind == INSTANCE:
        # suspended and transitional states are all reported as pending
        return _INSTANCE_STATES.get(power_state, PENDING)
    raise ValueError(f"Unknown entity kind: {kind!r}")


def mac_addresses(vm) -> list[str]:
    """MAC addresses of the VM's virtual network cards, in device order."""
    config = vm.config
    if config is None or config.hardware is None:
        return []
    return [
        device.macAddress
        for device in config.hardware.device
        if isinstance(device, vim.vm.device.VirtualEthernetCard) and device.macAddress
    ]


def public_address(record: InventoryRecord) -> str | None:
    """
    First IP of the first guest NIC. Without guest network info (tools
    not running, VM off) fall back to the first MAC address.
    """
    guest = record.vm.guest
    nics = guest.net if guest is not None else None
    if nics and nics[0].ipAddress:
        return nics[0].ipAddress[0]
    macs = mac_addresses(record.vm)
    return macs[0] if macs else None


def to_image(record: InventoryRecord, owner_id: str, architecture: str) -> Image | None:
    config = record.config
    if config is None:
        return None
    return Image(
        id=config.name,
        name=config.name,
        architecture=architecture,
        owner_id=owner_id,
        description=config.guestFullName or "",
        state=translate_state(IMAGE, record.power_state),
    )


def to_instance(
    record: InventoryRecord,
    owner_id: str,
    catalog: HardwareProfileCatalog,
    state_machine: StateMachine,
) -> Instance | None:
    config = record.config
    storage = record.storage
    if config is None or storage is None:
        return None

    memory = config.memorySizeMB
    cpus = config.numCpu
    profile = InstanceProfile(
        id=catalog.match(memory, cpus),
        cpu=cpus,
        memory=memory,
        storage=storage.unshared,
    )
    state = translate_state(INSTANCE, record.power_state)
    address = public_address(record)

    return Instance(
        id=config.name,
        name=config.name,
        owner_id=owner_id,
        description=config.guestFullName or "",
        realm_id=record.datastore,
        state=state,
        public_addresses=[address] if address else [],
        private_addresses=[],
        instance_profile=profile,
        actions=state_machine.actions_for(state),
        create_image=True,
    )


def to_realm(datastore) -> Realm:
    summary = datastore.summary
    name = datastore.name
    return Realm(
        id=name,
        name=name,
        limit=summary.freeSpace,
        state=AVAILABLE if summary.accessible else UNAVAILABLE,
    )
