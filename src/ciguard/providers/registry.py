"""Provider registry for live configuration sources."""

import logging
from typing import Dict, Optional, Type

from ciguard.providers.base import BaseProvider
from ciguard.providers.proxmox import ProxmoxProvider
from ciguard.providers.snapshot import SnapshotProvider


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry for managing providers."""

    def __init__(self):
        """Initialize provider registry."""
        self._providers: Dict[str, BaseProvider] = {}
        self._provider_classes: Dict[str, Type[BaseProvider]] = {
            "proxmox": ProxmoxProvider,
            "snapshot": SnapshotProvider,
        }

    def initialize(self, config):
        """Instantiate and initialize all providers."""
        for name, provider_class in self._provider_classes.items():
            try:
                provider = provider_class()
                provider.initialize(config)
            except Exception as e:
                logger.error(f"Failed to initialize provider {name}: {e}")
                raise
            self._providers[name] = provider
            logger.debug(f"Initialized provider: {name}")

    def get_provider(self, name: str) -> Optional[BaseProvider]:
        """Get a provider by name."""
        return self._providers.get(name)

    def list_providers(self) -> list[str]:
        """List available provider names."""
        return list(self._providers.keys())
