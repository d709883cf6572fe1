"""Configuration models."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GuardConfig(BaseModel):
    """General settings."""
    provider: Literal["proxmox", "snapshot"] = Field(default="proxmox")
    log_level: str = Field(default="INFO")
    vms_dir: str = Field(default="./vms")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class ProxmoxConfig(BaseModel):
    """Proxmox API connection settings."""
    host: str
    port: int = Field(default=8006, ge=1, le=65535)
    user: str = Field(default="root@pam")
    password: Optional[str] = None
    token_name: Optional[str] = None
    token_value: Optional[str] = None
    verify_ssl: bool = Field(default=True)
    timeout: int = Field(default=30, ge=1)

    @model_validator(mode="after")
    def check_credentials(self):
        if self.password is None and not (self.token_name and self.token_value):
            raise ValueError("Either password or token_name/token_value is required")
        return self


class SnapshotConfig(BaseModel):
    """Offline snapshot settings."""
    directory: str = Field(default="./snapshots")


class CiGuardConfig(BaseModel):
    """Main configuration model."""
    guard: GuardConfig = Field(default_factory=GuardConfig)
    proxmox: Optional[ProxmoxConfig] = None
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def check_provider_section(self):
        if self.guard.provider == "proxmox" and self.proxmox is None:
            raise ValueError("The proxmox provider requires a 'proxmox' section")
        return self
