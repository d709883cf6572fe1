"""Live configuration provider backed by the Proxmox VE API."""

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

import requests
from proxmoxer import ProxmoxAPI, ResourceException
from proxmoxer.core import AuthenticationError

from ciguard.models.config import CiGuardConfig, ProxmoxConfig
from ciguard.models.vm import VmRef
from ciguard.providers.base import BaseProvider, LiveStateError


logger = logging.getLogger(__name__)


class ProxmoxProvider(BaseProvider):
    """Reads ``nodes/<node>/qemu/<vmid>/config`` through proxmoxer."""

    def __init__(self, client: Optional[ProxmoxAPI] = None):
        """Initialize Proxmox provider."""
        self.settings: Optional[ProxmoxConfig] = None
        self._client = client

    def initialize(self, config: CiGuardConfig):
        """Initialize provider with configuration."""
        self.settings = config.proxmox

    @property
    def client(self) -> ProxmoxAPI:
        """API client, connected on first use."""
        if self._client is None:
            self._client = self._connect()
        return self._client

    def _connect(self) -> ProxmoxAPI:
        settings = self.settings
        if settings is None:
            raise LiveStateError("Proxmox connection is not configured")

        kwargs = {
            "user": settings.user,
            "port": settings.port,
            "verify_ssl": settings.verify_ssl,
            "timeout": settings.timeout,
        }
        if settings.token_name and settings.token_value:
            kwargs["token_name"] = settings.token_name
            kwargs["token_value"] = settings.token_value
        else:
            kwargs["password"] = settings.password

        try:
            return ProxmoxAPI(settings.host, **kwargs)
        except (AuthenticationError, ResourceException, requests.exceptions.RequestException) as e:
            raise LiveStateError(f"Cannot connect to Proxmox at {settings.host}: {e}") from e

    def fetch(self, vm: VmRef) -> Mapping[str, Any]:
        """Fetch the current VM configuration."""
        logger.debug(f"Fetching live config for VM {vm}")
        try:
            data = self.client.nodes(vm.node).qemu(vm.vmid).config.get()
        except ResourceException as e:
            raise LiveStateError(f"Failed to read config of VM {vm}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise LiveStateError(f"Connection error reading VM {vm}: {e}") from e

        if not isinstance(data, dict):
            raise LiveStateError(f"Unexpected config payload for VM {vm}")
        return MappingProxyType(dict(data))
