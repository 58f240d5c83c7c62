"""Server capabilities."""

from __future__ import annotations

from nuxeo_sdk.managers.base import Manager
from nuxeo_sdk.models import Capabilities


__all__ = ["CapabilitiesManager"]


class CapabilitiesManager(Manager):
    """Reads ``/capabilities``."""

    async def fetch(self) -> Capabilities:
        """Fetch the server, cluster and repository capabilities."""
        return await self._client.request_into("GET", "/capabilities", Capabilities)
