"""Auth store: sign-in, registration and the signed-in user."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fletx.core.state import Reactive
from pydantic import ValidationError

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus, EventPayload
from needle.shared.domain.models import AuthResponse, User
from needle.shared.infrastructure.api.client import ApiClient, ApiError
from needle.shared.infrastructure.credentials import CredentialHolder

from .base import ResourceStore

logger = logging.getLogger(__name__)

LOGIN_FAILED = "login failed"
REGISTER_FAILED = "registration failed"


class AuthStore(ResourceStore):
    """Owns the User record; the token itself lives in the CredentialHolder.

    Unlike the other stores, ``login`` and ``register`` raise
    :class:`ApiError` after recording the failure so the caller can stay
    on the sign-in screen.
    """

    name = "auth"

    def __init__(self, api: ApiClient, event_bus: EventBus, credentials: CredentialHolder) -> None:
        super().__init__(api, event_bus)
        self.credentials = credentials
        self.user: Reactive[Optional[User]] = Reactive(None)

    @property
    def token(self) -> Optional[str]:
        return self.credentials.get()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    async def login(self, email: str, password: str) -> User:
        return await self._authenticate(
            "/api/auth/login",
            {"email": email, "password": password},
            LOGIN_FAILED,
        )

    async def register(self, email: str, username: str, password: str) -> User:
        return await self._authenticate(
            "/api/auth/register",
            {"email": email, "username": username, "password": password},
            REGISTER_FAILED,
        )

    async def logout(self) -> None:
        """End the session locally. Idempotent."""
        was_signed_in = self.is_authenticated
        self.credentials.clear()
        self.user.value = None
        self.error.value = None
        if was_signed_in:
            logger.info("Signed out")
            await self.bus.publish(events.TOPIC_AUTH_LOGOUT, {})
        await self._finish()

    async def handle_session_expired(self, payload: EventPayload) -> None:
        """EventBus handler: the pipeline already cleared the token."""
        if self.user.value is not None:
            logger.info("Session expired, dropping cached user")
        self.user.value = None

    async def _authenticate(self, path: str, payload: Dict[str, Any], fallback: str) -> User:
        self._begin()
        try:
            result = await self.api.post(path, json=payload)
            if not result.ok:
                self._fail_result(result, fallback)
                result.raise_for_error(fallback)
            try:
                auth = AuthResponse.model_validate(result.data)
            except ValidationError as e:
                self._fail(fallback)
                raise ApiError(fallback, status_code=result.status_code, result=result) from e
            # Token and user are written together, with no suspension point between them
            self.credentials.set(auth.token)
            self.user.value = auth.user
            logger.info(f"Signed in as {auth.user.username}")
        finally:
            await self._finish()

        await self.bus.publish(events.TOPIC_AUTH_LOGIN, events.create_auth_login_event(auth.user.model_dump(mode="json")))
        return auth.user
