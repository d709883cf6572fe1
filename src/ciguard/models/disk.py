"""Disk slot and pending change models."""

import re
from enum import Enum
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Bus(str, Enum):
    """Storage bus types that can carry a cloud-init drive."""
    IDE = "ide"
    SATA = "sata"
    SCSI = "scsi"


# Slots examined on each bus during reconciliation
BUS_SLOT_COUNT: Dict[Bus, int] = {
    Bus.IDE: 4,
    Bus.SATA: 6,
    Bus.SCSI: 4,
}

_SLOT_PATTERN = re.compile(r"^(ide|sata|scsi)(\d+)$")


class SlotId(BaseModel):
    """Disk slot identifier such as ``ide2`` or ``scsi0``."""
    bus: Bus
    index: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, value: str) -> "SlotId":
        """Parse a slot key from a VM config."""
        match = _SLOT_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid disk slot: {value}")
        return cls(bus=Bus(match.group(1)), index=int(match.group(2)))

    @property
    def in_range(self) -> bool:
        return self.index < BUS_SLOT_COUNT[self.bus]

    def __str__(self) -> str:
        return f"{self.bus.value}{self.index}"


def iter_slots(bus: Optional[Bus] = None) -> Iterator[SlotId]:
    """Yield every bounded slot, optionally restricted to one bus."""
    buses = [bus] if bus else list(Bus)
    for current in buses:
        for index in range(BUS_SLOT_COUNT[current]):
            yield SlotId(bus=current, index=index)


class DiskChange(BaseModel):
    """Pending mutation queued for a single disk slot."""
    delete: bool = False
    volume: Optional[str] = None


SlotChanges = Dict[int, Optional[DiskChange]]


class SlotHandle:
    """Reference to one slot's pending change that can be inspected and cleared."""

    def __init__(self, slot: SlotId, changes: Optional[SlotChanges]):
        self.slot = slot
        self._changes = changes

    @property
    def change(self) -> Optional[DiskChange]:
        if self._changes is None:
            return None
        return self._changes.get(self.slot.index)

    def is_present(self) -> bool:
        return self.change is not None

    def clear(self):
        """Drop the pending change so the update leaves the slot alone."""
        if self._changes is not None and self.slot.index in self._changes:
            self._changes[self.slot.index] = None


class StorageChanges(BaseModel):
    """Per-bus pending disk changes for one VM update.

    A bus set to ``None`` has no pending structure at all. Inside a bus, a slot
    mapped to ``None`` (or missing) has no change queued.
    """
    ide: Optional[SlotChanges] = None
    sata: Optional[SlotChanges] = None
    scsi: Optional[SlotChanges] = None

    def bus_changes(self, bus: Bus) -> Optional[SlotChanges]:
        return getattr(self, bus.value)

    def handle(self, slot: SlotId) -> SlotHandle:
        return SlotHandle(slot, self.bus_changes(slot.bus))

    def get(self, slot: SlotId) -> Optional[DiskChange]:
        return self.handle(slot).change

    def set(self, slot: SlotId, change: Optional[DiskChange]):
        """Queue a change for a slot, creating the bus structure if needed."""
        changes = self.bus_changes(slot.bus)
        if changes is None:
            changes = {}
            setattr(self, slot.bus.value, changes)
        changes[slot.index] = change

    def pending(self) -> List[SlotId]:
        """List slots that currently have a change queued."""
        slots = []
        for bus in Bus:
            changes = self.bus_changes(bus) or {}
            for index in sorted(changes):
                if changes[index] is not None:
                    slots.append(SlotId(bus=bus, index=index))
        return slots
