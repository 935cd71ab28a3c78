"""Inspector store: recent HTTP exchanges seen by one tunnel."""

from __future__ import annotations

import logging

from fletx.core import RxList, RxStr

from needle.shared.domain.models import TunnelRequest
from needle.shared.infrastructure.api.client import ApiClient
from needle.shared.core.event_bus import EventBus

from .base import MalformedResponse, ResourceStore, parse_list

logger = logging.getLogger(__name__)

FETCH_FAILED = "failed to load requests"

DEFAULT_LIMIT = 50
MAX_LIMIT = 200  # server caps the page at this size


class InspectorStore(ResourceStore):
    name = "inspector"

    def __init__(self, api: ApiClient, event_bus: EventBus) -> None:
        super().__init__(api, event_bus)
        self.requests: RxList[TunnelRequest] = RxList([])
        # Tunnel the cached requests belong to
        self.tunnel_id: RxStr = RxStr(None)

    async def fetch_requests(self, tunnel_id: str, limit: int = DEFAULT_LIMIT) -> None:
        """Replace the cache with the latest ``limit`` requests of a tunnel."""
        limit = max(1, min(limit, MAX_LIMIT))
        self._begin()
        try:
            result = await self.api.get(f"/api/tunnels/{tunnel_id}/requests", params={"limit": limit})
            if not result.ok:
                self._fail_result(result, FETCH_FAILED)
                return
            try:
                requests = parse_list(TunnelRequest, result, "requests")
            except MalformedResponse as e:
                logger.warning(f"Unexpected request list body: {e}")
                self._fail(FETCH_FAILED)
                return
            self.requests.value = requests
            self.tunnel_id.value = tunnel_id
        finally:
            await self._finish()

    def clear(self) -> None:
        self.requests.value = []
        self.tunnel_id.value = None
