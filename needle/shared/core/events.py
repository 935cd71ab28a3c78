"""Canonical event definitions for the Needle dashboard."""

from __future__ import annotations

import time
from typing import Any, Dict, Literal, Optional

from .event_bus import EventBus, EventPayload

# Shell topics
TOPIC_LOGS_EVENT = "logs.event"
TOPIC_STATUS_TEXT = "status.text"
TOPIC_NAV_SELECT = "nav.select"

# Store lifecycle
TOPIC_STORE_CHANGED = "store.changed"

# Session lifecycle
TOPIC_AUTH_LOGIN = "auth.login"
TOPIC_AUTH_LOGOUT = "auth.logout"
TOPIC_SESSION_EXPIRED = "session.expired"

# Tunnel mutations
TOPIC_TUNNEL_CREATED = "tunnel.created"
TOPIC_TUNNEL_DELETED = "tunnel.deleted"

ALL_TOPICS = (
    TOPIC_LOGS_EVENT,
    TOPIC_STATUS_TEXT,
    TOPIC_NAV_SELECT,
    TOPIC_STORE_CHANGED,
    TOPIC_AUTH_LOGIN,
    TOPIC_AUTH_LOGOUT,
    TOPIC_SESSION_EXPIRED,
    TOPIC_TUNNEL_CREATED,
    TOPIC_TUNNEL_DELETED,
)


def create_event_bus() -> EventBus:
    """Bus restricted to the dashboard topics, merging bursts of
    ``store.changed`` per store."""
    return EventBus(topics=ALL_TOPICS, coalesce={TOPIC_STORE_CHANGED: "store"})


def create_store_changed_event(store: str, loading: bool, error: Optional[str]) -> EventPayload:
    """Create a store changed event (emitted after every store operation)."""
    return {
        "store": store,
        "loading": loading,
        "error": error,
    }


def create_auth_login_event(user: Dict[str, Any]) -> EventPayload:
    return {"user": user}


def create_session_expired_event(path: str) -> EventPayload:
    """Create a session expired event.

    Args:
        path: Request path whose 401 response ended the session
    """
    return {"path": path, "ts": time.time()}


def create_tunnel_event(subdomain: str) -> EventPayload:
    return {"subdomain": subdomain}


def create_nav_select_event(route: str, params: Optional[Dict[str, str]] = None) -> EventPayload:
    return {"id": route, "params": dict(params or {})}


def create_logs_event(
    message: str,
    level: Literal["info", "warning", "error", "success"] = "info",
    topic: str | None = None,
) -> EventPayload:
    """Create a Log event."""
    return {
        "message": message,
        "level": level,
        "topic": topic,
        "ts": time.time(),
    }


def create_status_text_event(text: str) -> EventPayload:
    """Create a status text update event."""
    return {
        "text": text,
    }
