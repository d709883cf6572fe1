"""Update planning engine."""

import logging
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, Field

from ciguard.core.config import ConfigManager
from ciguard.core.planner import plan_storage_changes
from ciguard.core.preserve import resolve
from ciguard.models.disk import SlotId, StorageChanges, iter_slots
from ciguard.providers import BaseProvider, ProviderRegistry


logger = logging.getLogger(__name__)


def _disk_slots(live_config: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        str(slot): live_config[str(slot)]
        for slot in iter_slots()
        if str(slot) in live_config
    }


class DiskPlan(BaseModel):
    """Disk changes an update of one VM would apply."""
    vm: str
    changes: StorageChanges
    preserved: List[SlotId] = Field(default_factory=list)
    live_disks: Dict[str, Any] = Field(default_factory=dict)

    def deletions(self) -> List[SlotId]:
        return [slot for slot in self.changes.pending() if self.changes.get(slot).delete]

    def updates(self) -> List[SlotId]:
        return [slot for slot in self.changes.pending() if not self.changes.get(slot).delete]


class UpdateEngine:
    """Plans storage updates with cloud-init drives preserved."""

    def __init__(self, config_manager: ConfigManager, provider_registry: ProviderRegistry):
        """Initialize update engine."""
        self.config_manager = config_manager
        self.provider_registry = provider_registry

    def _provider(self) -> BaseProvider:
        name = self.config_manager.config.guard.provider
        provider = self.provider_registry.get_provider(name)
        if not provider:
            available = ", ".join(self.provider_registry.list_providers()) or "none"
            raise RuntimeError(f"Provider {name} not available (registered: {available})")
        return provider

    def plan(self, name: str) -> DiskPlan:
        """Plan the disk changes for a declared VM."""
        spec = self.config_manager.get_vm_spec(name)
        if not spec:
            raise ValueError(f"VM {name} not found in configuration")

        provider = self._provider()
        live_config = provider.fetch(spec.ref)

        changes = plan_storage_changes(spec, live_config)
        preserved = resolve(live_config, changes, spec.has_cloud_init_params)
        if preserved:
            logger.info(f"VM {name}: preserved cloud-init drives on {', '.join(map(str, preserved))}")

        return DiskPlan(
            vm=name,
            changes=changes,
            preserved=preserved,
            live_disks=_disk_slots(live_config),
        )

    def plan_all(self) -> Dict[str, DiskPlan]:
        """Plan every declared VM, skipping those that fail."""
        plans = {}
        for name in self.config_manager.vms:
            try:
                plans[name] = self.plan(name)
            except Exception as e:
                logger.error(f"Failed to plan VM {name}: {e}")
        return plans

    def live_disks(self, name: str) -> Dict[str, Any]:
        """Get the live disk slots of a declared VM."""
        spec = self.config_manager.get_vm_spec(name)
        if not spec:
            raise ValueError(f"VM {name} not found in configuration")

        return _disk_slots(self._provider().fetch(spec.ref))
