"""Live VM configuration providers."""

from ciguard.providers.base import BaseProvider, LiveStateError
from ciguard.providers.registry import ProviderRegistry

__all__ = ["BaseProvider", "LiveStateError", "ProviderRegistry"]
