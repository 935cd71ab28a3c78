"""Dashboard route table and the authorization gate in front of it.

The guard only checks that a credential is *present*; whether it is still
valid is the server's call and comes back through the pipeline's 401 hook.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, PrivateAttr

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus
from needle.shared.infrastructure.credentials import CredentialHolder

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "login"

_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


class Route(BaseModel):
    """A named view. ``:name`` segments in ``path`` are parameters."""
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    public: bool = False

    _pattern: re.Pattern = PrivateAttr()

    def model_post_init(self, __context) -> None:
        regex = _PARAM.sub(r"(?P<\1>[^/]+)", re.escape(self.path))
        self._pattern = re.compile(f"^{regex}/?$" if self.path != "/" else "^/$")

    def match(self, path: str) -> Optional[Dict[str, str]]:
        found = self._pattern.match(path)
        return found.groupdict() if found else None

    def build_path(self, params: Optional[Dict[str, str]] = None) -> str:
        params = params or {}
        return _PARAM.sub(lambda m: params[m.group(1)], self.path)


ROUTES: List[Route] = [
    Route(name="login", path="/login", public=True),
    Route(name="register", path="/register", public=True),
    Route(name="dashboard", path="/"),
    Route(name="tunnels", path="/tunnels"),
    Route(name="tunnel-detail", path="/tunnels/:subdomain"),
    Route(name="settings", path="/settings"),
    Route(name="inspector", path="/tunnels/:tunnelId/inspector"),
    Route(name="analytics", path="/tunnels/:tunnelId/analytics"),
]


class Router:
    """Resolves navigation targets and runs the guard before each one."""

    def __init__(
        self,
        credentials: CredentialHolder,
        routes: Optional[List[Route]] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        """
        Args:
            credentials: Holder whose presence the guard checks
            routes: Route table, the dashboard routes by default
            event_bus: Receives ``nav.select`` for every route entered
        """
        self.credentials = credentials
        self.bus = event_bus
        self.routes: Dict[str, Route] = {r.name: r for r in (routes or ROUTES)}
        if LOGIN_ROUTE not in self.routes:
            raise ValueError("route table needs a 'login' route")
        self.current: Optional[Route] = None
        self.params: Dict[str, str] = {}
        self.history: List[str] = []

    def get(self, name: str) -> Route:
        """Look up a route by name. Raises KeyError for unknown names."""
        return self.routes[name]

    def match(self, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        for route in self.routes.values():
            params = route.match(path)
            if params is not None:
                return route, params
        return None

    def guard(self, route: Route) -> Optional[str]:
        """Return the redirect target for ``route``, or None to allow it."""
        if route.public or self.credentials.get():
            return None
        return LOGIN_ROUTE

    def navigate(self, target: str, params: Optional[Dict[str, str]] = None) -> Route:
        """Go to a route given by name or path, honoring the guard.

        Returns the route actually entered, which is the login route when
        the guard redirected.
        """
        if target.startswith("/"):
            found = self.match(target)
            if found is None:
                raise KeyError(f"no route matches {target!r}")
            route, params = found
        else:
            route = self.get(target)
            params = dict(params or {})

        redirect = self.guard(route)
        if redirect is not None:
            logger.info(f"Route '{route.name}' requires a session, redirecting to '{redirect}'")
            route, params = self.get(redirect), {}

        self._enter(route, params)
        return route

    def redirect_to_login(self) -> None:
        """Forced navigation used when the server ends the session."""
        self._enter(self.get(LOGIN_ROUTE), {})

    @property
    def path(self) -> Optional[str]:
        return self.current.build_path(self.params) if self.current else None

    def _enter(self, route: Route, params: Dict[str, str]) -> None:
        self.current = route
        self.params = params
        self.history.append(route.name)
        if self.bus is not None:
            self.bus.publish_nowait(events.TOPIC_NAV_SELECT, events.create_nav_select_event(route.name, params))
