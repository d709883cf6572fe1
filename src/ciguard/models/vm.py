"""Desired VM declaration models."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ciguard.models.disk import SlotId


class VmRef(BaseModel):
    """Location of a QEMU VM on a Proxmox cluster."""
    node: str = Field(..., min_length=1)
    vmid: int = Field(..., ge=100)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.node}/{self.vmid}"


class CloudInitSpec(BaseModel):
    """Cloud-init parameters declared for a VM."""
    user: Optional[str] = None
    password: Optional[str] = None
    ssh_keys: Optional[str] = None
    nameserver: Optional[str] = None
    searchdomain: Optional[str] = None
    cicustom: Optional[str] = None
    ipconfig: Dict[int, str] = Field(default_factory=dict)
    user_data: Optional[str] = None
    network_config: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @property
    def declared(self) -> bool:
        """Whether any cloud-init parameter is set."""
        return any(getattr(self, name) for name in type(self).model_fields)


class DiskSpec(BaseModel):
    """Declared disk attached to a slot."""
    volume: str = Field(..., description="Volume in storage:volume form")
    size: Optional[str] = None


class VmSpec(BaseModel):
    """Desired VM storage declaration."""
    name: str = Field(..., description="VM name")
    node: str = Field(..., description="Proxmox node hosting the VM")
    vmid: int = Field(..., ge=100)
    disks: Dict[str, DiskSpec] = Field(default_factory=dict)
    cloud_init: Optional[CloudInitSpec] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("disks")
    @classmethod
    def validate_disk_slots(cls, v):
        """Validate disk slot keys and normalize them to their canonical form."""
        disks = {}
        for key, disk in v.items():
            slot = SlotId.parse(key)
            if not slot.in_range:
                raise ValueError(f"Disk slot {key} is outside the supported range")
            if str(slot) in disks:
                raise ValueError(f"Disk slot {slot} is declared more than once")
            disks[str(slot)] = disk
        return disks

    @property
    def ref(self) -> VmRef:
        return VmRef(node=self.node, vmid=self.vmid)

    @property
    def has_cloud_init_params(self) -> bool:
        return self.cloud_init is not None and self.cloud_init.declared
