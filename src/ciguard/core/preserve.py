"""Cloud-init drive preservation for pending disk updates.

Proxmox attaches cloud-init seed disks on its own, either when a VM is cloned
from a template that carries one or when cloud-init parameters are set. Such
drives never appear in the declared disk layout, so a plain diff queues them
for deletion. The functions here inspect the live VM configuration and drop
those pending deletions before the update is sent.
"""

import logging
from typing import Any, List, Mapping

from ciguard.models.disk import Bus, SlotHandle, SlotId, StorageChanges, iter_slots
from ciguard.models.vm import VmRef
from ciguard.providers.base import BaseProvider


logger = logging.getLogger(__name__)

CLOUD_INIT_MARKER = "cloudinit"

# Slots Proxmox picks when it creates a seed disk itself
AUTO_PLACEMENT_SLOTS = (
    SlotId(bus=Bus.IDE, index=2),
    SlotId(bus=Bus.IDE, index=3),
)


def is_cloud_init_volume(value: Any) -> bool:
    """Check whether a live config value describes a cloud-init drive.

    Values look like ``local-lvm:vm-100-cloudinit`` or ``local:cloudinit``.
    Anything that is not a string is never a cloud-init drive.
    """
    return isinstance(value, str) and CLOUD_INIT_MARKER in value


def check_and_preserve(live_config: Mapping[str, Any], handle: SlotHandle) -> bool:
    """Clear the pending change of a slot that holds a cloud-init drive.

    Returns True when the change was cleared.
    """
    if not handle.is_present():
        return False

    slot = str(handle.slot)
    if slot not in live_config:
        return False

    if not is_cloud_init_volume(live_config[slot]):
        logger.debug(f"Slot {slot} is not a cloud-init drive, keeping pending change")
        return False

    handle.clear()
    logger.info(f"Preserving cloud-init drive on {slot}: {live_config[slot]}")
    return True


def preserve_if_deleting(live_config: Mapping[str, Any], handle: SlotHandle) -> bool:
    """Clear a pending deletion of an auto-created cloud-init drive."""
    change = handle.change
    if change is None or not change.delete:
        return False

    slot = str(handle.slot)
    if not is_cloud_init_volume(live_config.get(slot)):
        return False

    handle.clear()
    logger.info(f"Preserving auto-created cloud-init drive on {slot}")
    return True


def resolve(
    live_config: Mapping[str, Any],
    changes: StorageChanges,
    has_cloud_init_params: bool,
) -> List[SlotId]:
    """Drop pending changes that would remove cloud-init drives.

    ``changes`` is modified in place. Every bounded slot on every bus is checked
    independently. When the desired configuration declares cloud-init
    parameters, pending deletions on the auto-placement slots are checked as
    well.

    Returns the slots whose pending change was cleared.
    """
    preserved: List[SlotId] = []

    for slot in iter_slots():
        if check_and_preserve(live_config, changes.handle(slot)):
            preserved.append(slot)

    if has_cloud_init_params:
        for slot in AUTO_PLACEMENT_SLOTS:
            if preserve_if_deleting(live_config, changes.handle(slot)):
                preserved.append(slot)

    return preserved


def preserve_cloud_init_drives(
    provider: BaseProvider,
    vm: VmRef,
    changes: StorageChanges,
    has_cloud_init_params: bool,
) -> List[SlotId]:
    """Fetch the live config of ``vm`` and resolve ``changes`` against it.

    A failed fetch propagates unchanged and leaves ``changes`` untouched.
    """
    live_config = provider.fetch(vm)
    return resolve(live_config, changes, has_cloud_init_params)
