"""Shared shape of every dashboard resource store.

A store owns one cache plus a single ``loading`` flag and an ``error``
message, each held in a FletXr reactive so views re-render on change. Each
operation walks ``idle -> loading -> idle`` and records its outcome; the
most recently completed operation decides ``error``. Overlapping calls are
not coordinated, the last one to finish wins.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar

from fletx.core import RxBool, RxStr
from pydantic import BaseModel, ValidationError

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus
from needle.shared.infrastructure.api.client import ApiClient, ApiResult

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class MalformedResponse(Exception):
    """A 2xx body that does not decode into the expected records."""


def parse_list(model: Type[ModelT], result: ApiResult, field: str) -> List[ModelT]:
    """Decode ``result.data[field]`` as a list of ``model``.

    A missing or null field is an empty collection, not an error.
    """
    items = result.field(field)
    if items is None:
        return []
    if not isinstance(items, list):
        raise MalformedResponse(f"'{field}' is not a list")
    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as e:
        raise MalformedResponse(str(e)) from e


def parse_one(model: Type[ModelT], data: Any) -> Optional[ModelT]:
    if data is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(str(e)) from e


class ResourceStore:
    """Loading / error bookkeeping shared by all stores.

    Views bind to ``loading`` and ``error`` (and each store's cache) through
    their ``.value``; code without a view listens for ``store.changed``.
    """

    name = "resource"

    def __init__(self, api: ApiClient, event_bus: EventBus) -> None:
        self.api = api
        self.bus = event_bus
        self.loading: RxBool = RxBool(False)
        self.error: RxStr = RxStr(None)

    def _begin(self) -> None:
        self.loading.value = True
        self.error.value = None

    def _fail(self, message: str) -> None:
        self.error.value = message
        logger.warning(f"[{self.name}] {message}")

    def _fail_result(self, result: ApiResult, fallback: str) -> None:
        self._fail(result.message(fallback))

    async def _finish(self) -> None:
        """Leave the loading state and tell subscribers something changed."""
        self.loading.value = False
        await self.bus.publish(
            events.TOPIC_STORE_CHANGED,
            events.create_store_changed_event(self.name, self.loading.value, self.error.value),
        )
