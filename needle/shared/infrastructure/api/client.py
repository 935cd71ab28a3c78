"""Request pipeline shared by every dashboard store.

One ``httpx.AsyncClient`` per process, bound to the base endpoint chosen at
startup. Two event hooks run on every exchange:

- request: attach ``Authorization: Bearer <token>`` when a credential exists
- response: on HTTP 401 clear the credential and force the login route

Calls never raise for HTTP or transport failures; they return an
:class:`ApiResult` the caller inspects before touching its cache.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus
from needle.shared.infrastructure.credentials import CredentialHolder

logger = logging.getLogger(__name__)

UNAUTHORIZED = 401


class ApiError(Exception):
    """A failed API call surfaced as an exception.

    Only the authentication flows raise this, so a caller can abort the
    navigation that assumed a successful sign-in.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, result: Optional["ApiResult"] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.result = result


class ApiResult:
    """Outcome of one pipeline call.

    Attributes:
        ok: True for any 2xx response
        status_code: HTTP status, or None when no response was received
        data: Decoded JSON body, or None for empty / non-JSON bodies
        error: Server-supplied ``{"error": ...}`` message, if any
        exception: Transport exception for calls that never got a response
    """

    __slots__ = ("ok", "status_code", "data", "error", "exception")

    def __init__(
        self,
        ok: bool,
        status_code: Optional[int] = None,
        data: Any = None,
        error: Optional[str] = None,
        exception: Optional[Exception] = None,
    ) -> None:
        self.ok = ok
        self.status_code = status_code
        self.data = data
        self.error = error
        self.exception = exception

    @property
    def unauthorized(self) -> bool:
        return self.status_code == UNAUTHORIZED

    def field(self, name: str) -> Any:
        """Return ``data[name]`` or None when the body lacks it."""
        if isinstance(self.data, dict):
            return self.data.get(name)
        return None

    def message(self, fallback: str) -> str:
        """User-facing error text: the server's message or ``fallback``."""
        return self.error or fallback

    def raise_for_error(self, fallback: str = "request failed") -> None:
        if not self.ok:
            raise ApiError(self.message(fallback), status_code=self.status_code, result=self)

    def __repr__(self) -> str:
        return f"ApiResult(ok={self.ok}, status_code={self.status_code}, error={self.error!r})"


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug(f"Non-JSON body from {response.request.url.path} ({response.status_code})")
        return None


class ApiClient:
    """The Request Pipeline: credential attachment and global 401 teardown."""

    def __init__(
        self,
        base_url: str,
        credentials: CredentialHolder,
        event_bus: Optional[EventBus] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Build the shared HTTP client.

        Args:
            base_url: Remote endpoint, fixed for the lifetime of the client
            credentials: Holder consulted before every request
            event_bus: Receives ``session.expired`` after a 401 teardown
            on_unauthorized: Forced navigation to the login boundary
            timeout: Per-request timeout in seconds
            transport: Optional transport override (tests use MockTransport)
        """
        self.base_url = base_url
        self.credentials = credentials
        self.event_bus = event_bus
        self.on_unauthorized = on_unauthorized
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
            event_hooks={
                "request": [self._attach_credential],
                "response": [self._inspect_response],
            },
        )

    # --- Hooks ---

    async def _attach_credential(self, request: httpx.Request) -> None:
        token = self.credentials.get()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        logger.debug(f"{request.method} {request.url.path} (authenticated={bool(token)})")

    async def _inspect_response(self, response: httpx.Response) -> None:
        if response.status_code != UNAUTHORIZED:
            return
        path = response.request.url.path
        logger.warning(f"401 from {path}: clearing session and returning to login")
        self.credentials.clear()
        if self.on_unauthorized is not None:
            self.on_unauthorized()
        if self.event_bus is not None:
            await self.event_bus.publish(
                events.TOPIC_SESSION_EXPIRED,
                events.create_session_expired_event(path),
            )

    # --- Calls ---

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> ApiResult:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed without a response: {e}")
            return ApiResult(ok=False, exception=e)

        data = _decode_body(response)
        if response.is_success:
            return ApiResult(ok=True, status_code=response.status_code, data=data)

        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, str) or not error:
            error = None
        logger.debug(f"{method} {path} -> {response.status_code} ({error or 'no message'})")
        return ApiResult(ok=False, status_code=response.status_code, data=data, error=error)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> ApiResult:
        return await self.request("POST", path, json=json)

    async def delete(self, path: str) -> ApiResult:
        return await self.request("DELETE", path)

    async def health(self) -> bool:
        """True when ``/health`` reports the service as healthy."""
        result = await self.get("/health")
        return result.ok and result.field("status") == "healthy"

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def closed(self) -> bool:
        return self._client.is_closed
