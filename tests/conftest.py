"""Shared fixtures: a scripted fake Needle API behind httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from needle.dashboard.router import Router
from needle.dashboard.state import Store
from needle.shared.core import events
from needle.shared.core.event_bus import EventBus
from needle.shared.infrastructure.api.client import ApiClient
from needle.shared.infrastructure.credentials import CredentialHolder

BASE_URL = "http://needle.test"


class FakeNeedleApi:
    """Route table of canned replies; records every request it sees."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        """Answer ``method path`` with ``status`` and a JSON ``body``.

        ``body`` may also be a callable taking the request and returning
        ``(status, body)``, or an exception instance to raise.
        """
        self.routes[(method, path)] = (status, body)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.calls if r.method == method and r.url.path == path)

    def last(self, method: str, path: str) -> httpx.Request:
        return [r for r in self.calls if r.method == method and r.url.path == path][-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"error": "not found"}))
        if isinstance(body, Exception):
            raise body
        if callable(body):
            status, body = body(request)
        if body is None:
            return httpx.Response(status)
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})


def make_tunnel(subdomain: str, is_active: bool = True, **overrides: Any) -> Dict[str, Any]:
    tunnel = {
        "id": f"id-{subdomain}",
        "user_id": "user-1",
        "subdomain": subdomain,
        "custom_domain": None,
        "target_port": 8080,
        "protocol": "http",
        "is_active": is_active,
        "is_persistent": False,
        "created_at": "2026-10-01T12:00:00Z",
        "last_active": "2026-10-02T08:30:00Z",
    }
    tunnel.update(overrides)
    return tunnel


def make_user(**overrides: Any) -> Dict[str, Any]:
    user = {"id": "user-1", "email": "ada@example.com", "username": "ada", "tier": "free"}
    user.update(overrides)
    return user


@pytest.fixture
def fake_api() -> FakeNeedleApi:
    return FakeNeedleApi()


@pytest.fixture
def credentials(tmp_path) -> CredentialHolder:
    return CredentialHolder(tmp_path / "session.yaml")


@pytest.fixture
def event_bus() -> EventBus:
    return events.create_event_bus()


@pytest.fixture
def router(credentials, event_bus) -> Router:
    return Router(credentials, event_bus=event_bus)


@pytest.fixture
def api(fake_api, credentials, event_bus, router) -> ApiClient:
    return ApiClient(
        BASE_URL,
        credentials,
        event_bus=event_bus,
        on_unauthorized=router.redirect_to_login,
        transport=httpx.MockTransport(fake_api),
    )


@pytest.fixture
def store(event_bus, api, credentials, router):
    Store.reset()
    instance = Store.initialize(event_bus, api, credentials, router)
    yield instance
    Store.reset()
