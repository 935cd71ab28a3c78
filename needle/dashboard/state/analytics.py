"""Analytics store: per-tunnel daily stats and the account summary.

The two caches have independent lifecycles but share the store's single
``loading`` / ``error`` pair.
"""

from __future__ import annotations

import logging
from typing import Optional

from fletx.core import RxList
from fletx.core.state import Reactive

from needle.shared.core.event_bus import EventBus
from needle.shared.domain.models import AnalyticsSummary, DailyStats
from needle.shared.infrastructure.api.client import ApiClient

from .base import MalformedResponse, ResourceStore, parse_list, parse_one

logger = logging.getLogger(__name__)

STATS_FAILED = "failed to load analytics"
SUMMARY_FAILED = "failed to load summary"

DEFAULT_DAYS = 30
MAX_DAYS = 90


class AnalyticsStore(ResourceStore):
    name = "analytics"

    def __init__(self, api: ApiClient, event_bus: EventBus) -> None:
        super().__init__(api, event_bus)
        # Chronological, in the order the server returned them
        self.daily_stats: RxList[DailyStats] = RxList([])
        self.summary: Reactive[Optional[AnalyticsSummary]] = Reactive(None)

    async def fetch_tunnel_stats(self, tunnel_id: str, days: int = DEFAULT_DAYS) -> None:
        days = max(1, min(days, MAX_DAYS))
        self._begin()
        try:
            result = await self.api.get(f"/api/tunnels/{tunnel_id}/analytics", params={"days": days})
            if not result.ok:
                self._fail_result(result, STATS_FAILED)
                return
            try:
                stats = parse_list(DailyStats, result, "stats")
            except MalformedResponse as e:
                logger.warning(f"Unexpected analytics body: {e}")
                self._fail(STATS_FAILED)
                return
            self.daily_stats.value = stats
        finally:
            await self._finish()

    async def fetch_summary(self) -> None:
        self._begin()
        try:
            result = await self.api.get("/api/analytics/summary")
            if not result.ok:
                self._fail_result(result, SUMMARY_FAILED)
                return
            try:
                summary = parse_one(AnalyticsSummary, result.field("summary"))
            except MalformedResponse as e:
                logger.warning(f"Unexpected summary body: {e}")
                self._fail(SUMMARY_FAILED)
                return
            self.summary.value = summary
        finally:
            await self._finish()
