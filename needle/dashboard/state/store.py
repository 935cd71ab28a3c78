"""Global State Store - Service Locator Pattern.

Provides centralized access to the dashboard stores from any UI component.
One instance per process, created at startup and torn down on shutdown.
"""

from __future__ import annotations

from typing import Optional

from needle.dashboard.router import Router
from needle.shared.core import events
from needle.shared.core.event_bus import EventBus
from needle.shared.infrastructure.api.client import ApiClient
from needle.shared.infrastructure.credentials import CredentialHolder

from .analytics import AnalyticsStore
from .api_keys import ApiKeysStore
from .app_state import AppState
from .auth import AuthStore
from .inspector import InspectorStore
from .tunnels import TunnelsStore


class Store:
    """Global state store for the dashboard.

    Usage:
        # During app initialization
        store = Store.initialize(event_bus, api, credentials, router)
        await store.bind()

        # In any UI component
        await Store.get().tunnels.fetch_tunnels()
    """

    _instance: Optional['Store'] = None

    def __init__(
        self,
        event_bus: EventBus,
        api: ApiClient,
        credentials: CredentialHolder,
        router: Router,
    ) -> None:
        """Note: Do not call directly. Use Store.initialize() instead."""
        self.bus = event_bus
        self.api = api
        self.credentials = credentials
        self.router = router

        self.app = AppState(event_bus)
        self.auth = AuthStore(api, event_bus, credentials)
        self.tunnels = TunnelsStore(api, event_bus)
        self.inspector = InspectorStore(api, event_bus)
        self.analytics = AnalyticsStore(api, event_bus)
        self.api_keys = ApiKeysStore(api, event_bus)

    async def bind(self) -> None:
        """Wire EventBus subscriptions for the shell and auth."""
        await self.app.initialize()
        await self.bus.subscribe(events.TOPIC_SESSION_EXPIRED, self.auth.handle_session_expired)

    @classmethod
    def initialize(
        cls,
        event_bus: EventBus,
        api: ApiClient,
        credentials: CredentialHolder,
        router: Router,
    ) -> 'Store':
        """Create the global store instance.

        Raises:
            RuntimeError: If store is already initialized
        """
        if cls._instance is not None:
            raise RuntimeError("Store already initialized!")

        cls._instance = cls(event_bus, api, credentials, router)
        return cls._instance

    @classmethod
    def get(cls) -> 'Store':
        """Get the global store instance.

        Raises:
            RuntimeError: If store has not been initialized
        """
        if cls._instance is None:
            raise RuntimeError("Store not initialized! Call Store.initialize() first.")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the store instance (logout-by-restart and tests)."""
        cls._instance = None
