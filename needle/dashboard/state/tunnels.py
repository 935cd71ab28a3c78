"""Tunnels store: the signed-in user's tunnels and their mutations."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fletx.core import RxList
from pydantic import ValidationError

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus
from needle.shared.domain.models import CreateTunnelRequest, Tunnel
from needle.shared.infrastructure.api.client import ApiClient

from .base import MalformedResponse, ResourceStore, parse_list

logger = logging.getLogger(__name__)

FETCH_FAILED = "failed to load tunnels"
CREATE_FAILED = "failed to create tunnel"
DELETE_FAILED = "failed to delete tunnel"


class TunnelsStore(ResourceStore):
    """Cache of tunnels, mirrored from ``GET /api/tunnels``.

    Mutations never guess at server state: a creation is followed by a
    full re-fetch, and a deletion only touches the cache once the server
    has confirmed it.
    """

    name = "tunnels"

    def __init__(self, api: ApiClient, event_bus: EventBus) -> None:
        super().__init__(api, event_bus)
        self.tunnels: RxList[Tunnel] = RxList([])

    # --- Derived views ---

    @property
    def active_tunnels(self) -> List[Tunnel]:
        return [t for t in self.tunnels.value if t.is_active]

    @property
    def active_count(self) -> int:
        return len(self.active_tunnels)

    def get_by_subdomain(self, subdomain: str) -> Optional[Tunnel]:
        for tunnel in self.tunnels.value:
            if tunnel.subdomain == subdomain:
                return tunnel
        return None

    # --- Operations ---

    async def fetch_tunnels(self) -> None:
        """Replace the cache with the server's tunnel list."""
        self._begin()
        try:
            await self._load()
        finally:
            await self._finish()

    async def create_tunnel(
        self, request: Union[CreateTunnelRequest, Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        """Ask the server for a new tunnel, then reload the list.

        Args:
            request: Tunnel settings; a dict is validated into
                :class:`CreateTunnelRequest` before anything is sent

        Returns:
            The server's creation body (``subdomain``, ``url`` ...), or None
            when the settings were invalid or the server refused.
        """
        self._begin()
        try:
            if not isinstance(request, CreateTunnelRequest):
                try:
                    request = CreateTunnelRequest.model_validate(request)
                except ValidationError as e:
                    logger.warning(f"Rejected tunnel settings: {e.error_count()} error(s)")
                    self._fail(CREATE_FAILED)
                    return None

            result = await self.api.post("/api/tunnels", json=request.to_payload())
            if not result.ok:
                self._fail_result(result, CREATE_FAILED)
                return None
            created = result.data if isinstance(result.data, dict) else {}
            logger.info(f"Tunnel created: {created.get('subdomain', '?')}")
            await self.bus.publish(
                events.TOPIC_TUNNEL_CREATED,
                events.create_tunnel_event(created.get("subdomain", "")),
            )
            await self._load()
            return created
        finally:
            await self._finish()

    async def delete_tunnel(self, subdomain: str) -> bool:
        """Delete by subdomain; the cache changes only after confirmation."""
        self._begin()
        try:
            result = await self.api.delete(f"/api/tunnels/{subdomain}")
            if not result.ok:
                self._fail_result(result, DELETE_FAILED)
                return False
            self.tunnels.value = [t for t in self.tunnels.value if t.subdomain != subdomain]
            logger.info(f"Tunnel deleted: {subdomain}")
            await self.bus.publish(events.TOPIC_TUNNEL_DELETED, events.create_tunnel_event(subdomain))
            return True
        finally:
            await self._finish()

    async def _load(self) -> None:
        """GET the list into the cache; the caller owns the loading state."""
        result = await self.api.get("/api/tunnels")
        if not result.ok:
            self._fail_result(result, FETCH_FAILED)
            return
        try:
            tunnels = parse_list(Tunnel, result, "tunnels")
        except MalformedResponse as e:
            logger.warning(f"Unexpected tunnel list body: {e}")
            self._fail(FETCH_FAILED)
            return
        self.tunnels.value = tunnels
        logger.debug(f"Loaded {len(tunnels)} tunnel(s)")
