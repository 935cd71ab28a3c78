"""Dashboard Shell State.

Current route, status line and activity feed for the dashboard chrome.
Updated from EventBus topics so the router, stores and services can report
without a reference to the UI.
"""

from __future__ import annotations

import time
from typing import Any, Dict

from fletx.core import RxBool, RxDict, RxList, RxStr

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus, EventPayload

MAX_LOG_ENTRIES = 500


class AppState:
    """Reactive state for the dashboard shell.

    The router announces every route it enters on ``nav.select``; this
    class mirrors that into ``nav_selected`` / ``nav_params`` for the
    navigation rail. Status and log topics feed the footer.
    """

    def __init__(self, event_bus: EventBus) -> None:
        self.bus = event_bus

        # Navigation State
        self.nav_selected: RxStr = RxStr("")
        self.nav_params: RxDict[str] = RxDict({})

        # Status & Readiness
        self.is_ready: RxBool = RxBool(False)
        self.api_reachable: RxBool = RxBool(False)
        self.status_text: RxStr = RxStr("Starting...")

        # Log entries (each is a dict: {message, level, ts}); oldest dropped first
        self.logs: RxList[Dict[str, Any]] = RxList([])

        self._started = False

    async def initialize(self) -> None:
        """Bind to EventBus topics. Safe to call more than once."""
        if self._started:
            return

        await self.bus.subscribe(events.TOPIC_NAV_SELECT, self._handle_nav_select)
        await self.bus.subscribe(events.TOPIC_STATUS_TEXT, self._handle_status_text)
        await self.bus.subscribe(events.TOPIC_LOGS_EVENT, self._handle_log_event)
        await self.bus.subscribe(events.TOPIC_SESSION_EXPIRED, self._handle_session_expired)
        await self.bus.subscribe(events.TOPIC_TUNNEL_CREATED, self._handle_tunnel_created)
        await self.bus.subscribe(events.TOPIC_TUNNEL_DELETED, self._handle_tunnel_deleted)

        self._started = True
        self.is_ready.value = True

    # --- Public Actions ---

    async def push_status(self, text: str) -> None:
        await self.bus.publish(events.TOPIC_STATUS_TEXT, events.create_status_text_event(text))

    async def push_log(self, message: str, level: str = "info") -> None:
        """Broadcast a log message; the feed records it on delivery."""
        entry = {"message": message, "level": level, "ts": time.time()}
        await self.bus.publish(events.TOPIC_LOGS_EVENT, entry)

    def _append_log(self, entry: Dict[str, Any]) -> None:
        self.logs.value = [*self.logs.value, entry][-MAX_LOG_ENTRIES:]

    # --- Event Handlers ---

    async def _handle_nav_select(self, payload: EventPayload) -> None:
        selection = payload.get("id")
        if selection:
            self.nav_selected.value = str(selection)
            self.nav_params.value = dict(payload.get("params") or {})

    async def _handle_status_text(self, payload: EventPayload) -> None:
        text = payload.get("text")
        if text:
            self.status_text.value = str(text)

    async def _handle_log_event(self, payload: EventPayload) -> None:
        if payload:
            self._append_log(payload)

    async def _handle_session_expired(self, payload: EventPayload) -> None:
        self.status_text.value = "Session expired, please sign in again"
        self._append_log(events.create_logs_event(self.status_text.value, "warning", events.TOPIC_SESSION_EXPIRED))

    async def _handle_tunnel_created(self, payload: EventPayload) -> None:
        self._append_log(events.create_logs_event(f"Tunnel {payload.get('subdomain')} created", "success"))

    async def _handle_tunnel_deleted(self, payload: EventPayload) -> None:
        self._append_log(events.create_logs_event(f"Tunnel {payload.get('subdomain')} deleted", "info"))
