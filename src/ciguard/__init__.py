"""
ciguard - cloud-init drive protection for declarative Proxmox VM updates.

Detects cloud-init seed disks in a VM's live configuration and keeps pending
storage updates from deleting them.
"""

__version__ = "1.0.0"

# Re-export key components for easier access
from ciguard.core.preserve import preserve_cloud_init_drives, resolve
from ciguard.models.disk import DiskChange, SlotId, StorageChanges
from ciguard.models.vm import VmRef, VmSpec

__all__ = [
    "preserve_cloud_init_drives",
    "resolve",
    "DiskChange",
    "SlotId",
    "StorageChanges",
    "VmRef",
    "VmSpec",
]
