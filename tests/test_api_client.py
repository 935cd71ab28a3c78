import json

import httpx
import pytest

from needle.shared.core import events
from needle.shared.infrastructure.api.client import ApiClient, ApiError, ApiResult

from .conftest import BASE_URL


@pytest.mark.asyncio
async def test_attaches_bearer_token(api, fake_api, credentials):
    credentials.set("t1")
    fake_api.on("GET", "/api/tunnels", 200, {"tunnels": []})

    result = await api.get("/api/tunnels")

    assert result.ok
    assert fake_api.last("GET", "/api/tunnels").headers["Authorization"] == "Bearer t1"


@pytest.mark.asyncio
async def test_sends_unauthenticated_without_token(api, fake_api):
    fake_api.on("GET", "/api/tunnels", 200, {"tunnels": []})

    await api.get("/api/tunnels")

    assert "Authorization" not in fake_api.last("GET", "/api/tunnels").headers


@pytest.mark.asyncio
async def test_token_read_on_every_request(api, fake_api, credentials):
    fake_api.on("GET", "/api/tunnels", 200, {"tunnels": []})
    credentials.set("first")
    await api.get("/api/tunnels")
    credentials.set("second")
    await api.get("/api/tunnels")

    assert fake_api.calls[0].headers["Authorization"] == "Bearer first"
    assert fake_api.calls[1].headers["Authorization"] == "Bearer second"


@pytest.mark.asyncio
async def test_401_clears_session_and_forces_login(api, fake_api, credentials, router, event_bus):
    credentials.set("stale")
    router.navigate("tunnels")
    expired = []

    async def on_expired(payload):
        expired.append(payload)

    await event_bus.subscribe(events.TOPIC_SESSION_EXPIRED, on_expired)
    fake_api.on("GET", "/api/analytics/summary", 401, {"error": "invalid token"})

    result = await api.get("/api/analytics/summary")
    await event_bus.wait_until_idle()

    assert not result.ok
    assert result.unauthorized
    assert result.error == "invalid token"
    assert credentials.get() is None
    assert router.current.name == "login"
    assert expired[0]["path"] == "/api/analytics/summary"


@pytest.mark.asyncio
async def test_other_failures_pass_through(api, fake_api, credentials, router):
    credentials.set("t1")
    router.navigate("tunnels")
    fake_api.on("DELETE", "/api/tunnels/abc", 404, {"error": "tunnel not found"})

    result = await api.delete("/api/tunnels/abc")

    assert not result.ok
    assert result.status_code == 404
    assert result.message("fallback") == "tunnel not found"
    assert credentials.get() == "t1"
    assert router.current.name == "tunnels"


@pytest.mark.asyncio
async def test_failure_without_message_uses_fallback(api, fake_api):
    fake_api.on("GET", "/api/tunnels", 500, "Internal Server Error")

    result = await api.get("/api/tunnels")

    assert result.error is None
    assert result.data is None
    assert result.message("failed to load tunnels") == "failed to load tunnels"


@pytest.mark.asyncio
async def test_transport_failure_becomes_result(api, fake_api):
    fake_api.on("GET", "/api/tunnels", body=httpx.ConnectError("connection refused"))

    result = await api.get("/api/tunnels")

    assert not result.ok
    assert result.status_code is None
    assert isinstance(result.exception, httpx.ConnectError)


@pytest.mark.asyncio
async def test_query_params_and_json_body(api, fake_api):
    fake_api.on("GET", "/api/tunnels/x/requests", 200, {"requests": []})
    fake_api.on("POST", "/api/auth/login", 200, {"token": "t", "user": {}})

    await api.get("/api/tunnels/x/requests", params={"limit": 50})
    await api.post("/api/auth/login", json={"email": "a@b.c", "password": "pw"})

    assert fake_api.last("GET", "/api/tunnels/x/requests").url.params["limit"] == "50"
    assert json.loads(fake_api.last("POST", "/api/auth/login").content) == {"email": "a@b.c", "password": "pw"}


@pytest.mark.asyncio
async def test_base_url_fixed_at_construction(credentials):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(204)

    client = ApiClient(BASE_URL, credentials, transport=httpx.MockTransport(handler))
    await client.delete("/api/keys/k1")
    await client.aclose()

    assert seen == [f"{BASE_URL}/api/keys/k1"]
    assert client.closed


@pytest.mark.asyncio
async def test_health(api, fake_api):
    fake_api.on("GET", "/health", 200, {"status": "healthy", "service": "needle"})
    assert await api.health() is True

    fake_api.on("GET", "/health", 503, None)
    assert await api.health() is False


def test_raise_for_error():
    ApiResult(ok=True, status_code=200).raise_for_error()

    with pytest.raises(ApiError) as info:
        ApiResult(ok=False, status_code=409, error="email already registered").raise_for_error()
    assert info.value.status_code == 409
    assert info.value.message == "email already registered"
