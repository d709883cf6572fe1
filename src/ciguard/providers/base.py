"""Base provider interface."""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from ciguard.models.vm import VmRef


class LiveStateError(Exception):
    """Live VM configuration could not be retrieved."""
    pass


class BaseProvider(ABC):
    """Base interface for live VM configuration sources."""

    @abstractmethod
    def initialize(self, config: Any):
        """Initialize the provider with configuration."""
        pass

    @abstractmethod
    def fetch(self, vm: VmRef) -> Mapping[str, Any]:
        """Return a read-only snapshot of the VM's live configuration.

        Raises:
            LiveStateError: The VM is unreachable or does not exist.
        """
        pass
