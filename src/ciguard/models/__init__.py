"""Pydantic models for configuration and validation."""

from ciguard.models.config import CiGuardConfig, GuardConfig, ProxmoxConfig, SnapshotConfig
from ciguard.models.disk import Bus, BUS_SLOT_COUNT, SlotId, DiskChange, SlotHandle, StorageChanges, iter_slots
from ciguard.models.vm import VmRef, VmSpec, DiskSpec, CloudInitSpec

__all__ = [
    "CiGuardConfig",
    "GuardConfig",
    "ProxmoxConfig",
    "SnapshotConfig",
    "Bus",
    "BUS_SLOT_COUNT",
    "SlotId",
    "DiskChange",
    "SlotHandle",
    "StorageChanges",
    "iter_slots",
    "VmRef",
    "VmSpec",
    "DiskSpec",
    "CloudInitSpec",
]
