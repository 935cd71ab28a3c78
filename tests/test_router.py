import pytest

from needle.dashboard.router import LOGIN_ROUTE, Route, Router
from needle.shared.core import events


def test_protected_route_without_credential_redirects(router):
    entered = router.navigate("tunnels")
    assert entered.name == LOGIN_ROUTE
    assert router.current.name == LOGIN_ROUTE


@pytest.mark.parametrize("name", ["login", "register"])
def test_public_routes_never_redirect(router, credentials, name):
    assert router.navigate(name).name == name
    credentials.set("t1")
    assert router.navigate(name).name == name


def test_credential_presence_allows_protected_route(router, credentials):
    credentials.set("anything")
    assert router.navigate("settings").name == "settings"


def test_navigate_by_path_extracts_params(router, credentials):
    credentials.set("t1")
    route = router.navigate("/tunnels/abc-123/inspector")
    assert route.name == "inspector"
    assert router.params == {"tunnelId": "abc-123"}
    assert router.path == "/tunnels/abc-123/inspector"


def test_match_distinguishes_detail_and_list(router):
    assert router.match("/tunnels")[0].name == "tunnels"
    assert router.match("/tunnels/brave-eagle-a1b2c3d4") == (
        router.get("tunnel-detail"),
        {"subdomain": "brave-eagle-a1b2c3d4"},
    )
    assert router.match("/")[0].name == "dashboard"
    assert router.match("/nope/nope/nope") is None


def test_redirect_drops_params(router):
    router.navigate("analytics", {"tunnelId": "x"})
    assert router.current.name == LOGIN_ROUTE
    assert router.params == {}


def test_unknown_route_raises(router):
    with pytest.raises(KeyError):
        router.navigate("missing")
    with pytest.raises(KeyError):
        router.navigate("/missing/path/here")


def test_redirect_to_login_is_unconditional(router, credentials):
    credentials.set("t1")
    router.navigate("dashboard")
    router.redirect_to_login()
    assert router.current.name == LOGIN_ROUTE
    assert router.history == ["dashboard", "login"]


def test_route_table_requires_login():
    with pytest.raises(ValueError):
        Router(credentials=None, routes=[Route(name="home", path="/")])


@pytest.mark.asyncio
async def test_every_entered_route_is_announced(router, credentials, event_bus):
    announced = []

    async def on_nav(payload):
        announced.append((payload["id"], payload["params"]))

    await event_bus.subscribe(events.TOPIC_NAV_SELECT, on_nav)
    router.navigate("settings")
    credentials.set("t1")
    router.navigate("/tunnels/abc")
    router.redirect_to_login()
    await event_bus.wait_until_idle()

    assert announced == [
        ("login", {}),
        ("tunnel-detail", {"subdomain": "abc"}),
        ("login", {}),
    ]
