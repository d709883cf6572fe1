"""Configuration loading."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from pydantic import ValidationError

from ciguard.models.config import CiGuardConfig
from ciguard.models.vm import VmSpec


logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads the main configuration and the desired VM declarations."""

    def __init__(self, config_path: Path):
        """Initialize configuration manager."""
        self.config_path = Path(config_path)
        self.yaml = YAML(typ="safe")
        self.config: Optional[CiGuardConfig] = None
        self.vms: Dict[str, VmSpec] = {}

    @property
    def vms_dir(self) -> Path:
        """VM declaration directory, relative paths resolved against the config file."""
        vms_dir = Path(self.config.guard.vms_dir)
        if not vms_dir.is_absolute():
            vms_dir = self.config_path.parent / vms_dir
        return vms_dir

    def load(self):
        """Load all configuration files."""
        logger.info(f"Loading configuration from {self.config_path}")

        self._load_main_config()
        self._load_vms()

        logger.info(f"Configuration loaded successfully ({len(self.vms)} VMs)")

    def _load_main_config(self):
        """Load main configuration file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Main config not found: {self.config_path}")

        try:
            data = self._read_yaml(self.config_path) or {}
        except (YAMLError, UnicodeDecodeError) as e:
            raise ValueError(f"Malformed main config {self.config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Main config {self.config_path} is not a mapping")

        try:
            self.config = CiGuardConfig(**data)
            logger.debug(f"Loaded main config: {self.config_path}")
        except ValidationError as e:
            logger.error(f"Invalid main config: {e}")
            raise

    def _load_vms(self):
        """Load VM declarations."""
        vms_dir = self.vms_dir
        if not vms_dir.exists():
            logger.warning(f"VMs directory not found: {vms_dir}")
            return

        self.vms.clear()
        for yaml_file in sorted(vms_dir.glob("*.yaml")):
            try:
                data = self._read_yaml(yaml_file) or {}
                for name, spec in (data.get("vms") or {}).items():
                    self.vms[name] = VmSpec(name=name, **spec)
                logger.debug(f"Loaded VMs from {yaml_file}")
            except Exception as e:
                logger.error(f"Error loading {yaml_file}: {e}")

    def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse YAML file."""
        return self.yaml.load(file_path.read_text())

    def get_vm_spec(self, name: str) -> Optional[VmSpec]:
        """Get VM declaration by name."""
        return self.vms.get(name)
