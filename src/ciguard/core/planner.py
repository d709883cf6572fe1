"""Derive pending disk changes from a desired VM declaration."""

import logging
from typing import Any, Mapping, Optional

from ciguard.models.disk import DiskChange, StorageChanges, iter_slots
from ciguard.models.vm import VmSpec


logger = logging.getLogger(__name__)


def live_volume(value: Any) -> Optional[str]:
    """Return the ``storage:volume`` part of a live disk value."""
    if not isinstance(value, str):
        return None
    return value.split(",", 1)[0]


def plan_storage_changes(spec: VmSpec, live_config: Mapping[str, Any]) -> StorageChanges:
    """Diff declared disks against the live config.

    Declared slots whose volume differs get an update, live slots that are not
    declared get a deletion. Slots outside the bounded ranges are ignored.
    """
    changes = StorageChanges()

    for slot in iter_slots():
        key = str(slot)
        desired = spec.disks.get(key)
        current = live_config.get(key)

        if desired is not None:
            if live_volume(current) == desired.volume:
                continue
            changes.set(slot, DiskChange(delete=False, volume=desired.volume))
            logger.debug(f"{spec.name}: {key} queued for update to {desired.volume}")
        elif current is not None:
            volume = current if isinstance(current, str) else None
            changes.set(slot, DiskChange(delete=True, volume=volume))
            logger.debug(f"{spec.name}: {key} queued for deletion")

    return changes
