"""Reactive state for the Needle dashboard.

Architecture:
- AppState: shell state (current route, status line, activity log)
- AuthStore, TunnelsStore, InspectorStore, AnalyticsStore, ApiKeysStore:
  one cache each, plus ``loading`` / ``error``, all FletXr reactives
- Store: Service locator for accessing state from any component
"""

from .app_state import AppState
from .analytics import AnalyticsStore
from .api_keys import ApiKeysStore
from .auth import AuthStore
from .base import ResourceStore
from .inspector import InspectorStore
from .store import Store
from .tunnels import TunnelsStore

__all__ = [
    "AppState",
    "AnalyticsStore",
    "ApiKeysStore",
    "AuthStore",
    "InspectorStore",
    "ResourceStore",
    "Store",
    "TunnelsStore",
]
