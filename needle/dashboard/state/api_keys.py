"""API key store for the settings view."""

from __future__ import annotations

import logging
from typing import Optional

from fletx.core import RxList
from pydantic import ValidationError

from needle.shared.core.event_bus import EventBus
from needle.shared.domain.models import ApiKey, CreatedApiKey, CreateKeyRequest
from needle.shared.infrastructure.api.client import ApiClient

from .base import MalformedResponse, ResourceStore, parse_list, parse_one

logger = logging.getLogger(__name__)

FETCH_FAILED = "failed to load keys"
CREATE_FAILED = "failed to create key"
DELETE_FAILED = "failed to delete key"


class ApiKeysStore(ResourceStore):
    """Key metadata only. The plaintext of a new key is handed back to the
    caller once and never cached."""

    name = "api_keys"

    def __init__(self, api: ApiClient, event_bus: EventBus) -> None:
        super().__init__(api, event_bus)
        self.keys: RxList[ApiKey] = RxList([])

    async def fetch_keys(self) -> None:
        self._begin()
        try:
            await self._load()
        finally:
            await self._finish()

    async def create_key(self, name: str) -> Optional[CreatedApiKey]:
        self._begin()
        try:
            try:
                request = CreateKeyRequest(name=name)
            except ValidationError:
                logger.warning(f"Rejected key name of length {len(name)}")
                self._fail(CREATE_FAILED)
                return None

            result = await self.api.post("/api/keys", json=request.model_dump())
            if not result.ok:
                self._fail_result(result, CREATE_FAILED)
                return None
            try:
                created = parse_one(CreatedApiKey, result.data)
            except MalformedResponse as e:
                logger.warning(f"Unexpected key creation body: {e}")
                self._fail(CREATE_FAILED)
                return None
            logger.info(f"API key created: {request.name}")
            await self._load()
            return created
        finally:
            await self._finish()

    async def delete_key(self, key_id: str) -> bool:
        self._begin()
        try:
            result = await self.api.delete(f"/api/keys/{key_id}")
            if not result.ok:
                self._fail_result(result, DELETE_FAILED)
                return False
            self.keys.value = [k for k in self.keys.value if k.id != key_id]
            return True
        finally:
            await self._finish()

    async def _load(self) -> None:
        result = await self.api.get("/api/keys")
        if not result.ok:
            self._fail_result(result, FETCH_FAILED)
            return
        try:
            keys = parse_list(ApiKey, result, "keys")
        except MalformedResponse as e:
            logger.warning(f"Unexpected key list body: {e}")
            self._fail(FETCH_FAILED)
            return
        self.keys.value = keys
