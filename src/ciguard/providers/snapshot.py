"""Live configuration provider backed by saved YAML snapshots."""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ciguard.models.config import CiGuardConfig
from ciguard.models.vm import VmRef
from ciguard.providers.base import BaseProvider, LiveStateError


logger = logging.getLogger(__name__)


class SnapshotProvider(BaseProvider):
    """Serves VM configs saved as ``<directory>/<node>/<vmid>.yaml``."""

    def __init__(self):
        """Initialize snapshot provider."""
        self.directory: Optional[Path] = None
        self.yaml = YAML(typ="safe")

    def initialize(self, config: CiGuardConfig):
        """Initialize provider with configuration."""
        self.directory = Path(config.snapshot.directory)

    def snapshot_path(self, vm: VmRef) -> Path:
        if self.directory is None:
            raise LiveStateError("Snapshot directory is not configured")
        return self.directory / vm.node / f"{vm.vmid}.yaml"

    def fetch(self, vm: VmRef) -> Mapping[str, Any]:
        """Load the saved configuration of a VM."""
        path = self.snapshot_path(vm)
        if not path.exists():
            raise LiveStateError(f"No snapshot for VM {vm}: {path}")

        logger.debug(f"Loading snapshot {path}")
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LiveStateError(f"Cannot read snapshot {path}: {e}") from e

        try:
            data = self.yaml.load(content)
        except YAMLError as e:
            raise LiveStateError(f"Malformed snapshot {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise LiveStateError(f"Snapshot {path} is not a mapping")
        return MappingProxyType(dict(data))
