"""Async pub/sub hub between the request pipeline, the stores and the shell.

A bus built with a topic set only accepts those topics; a typo in a
subscription fails at startup instead of silently never firing. Topics
given in ``coalesce`` keep just the newest undelivered payload per key, so
a burst of ``store.changed`` from one store reaches each handler once.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Coroutine, Dict, Iterable, List, Optional, Set, Tuple, TypeAlias

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], Awaitable[None]]

logger = logging.getLogger(__name__)


class UnknownTopicError(KeyError):
    """Topic not registered on a bus built with a fixed topic set."""


class EventBus:
    """PubSub hub the stores use to announce state changes to the UI."""

    def __init__(
        self,
        topics: Optional[Iterable[str]] = None,
        coalesce: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Args:
            topics: Allowed topic names; None accepts any topic
            coalesce: Topic -> payload key; pending messages sharing a key
                are merged and only the latest payload is delivered
        """
        self._topics: Optional[Set[str]] = set(topics) if topics is not None else None
        self._coalesce: Dict[str, str] = dict(coalesce or {})
        for topic in self._coalesce:
            self._require(topic)
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._queued: Dict[Tuple[str, Any], EventPayload] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def topics(self) -> Optional[Set[str]]:
        return None if self._topics is None else set(self._topics)

    def _require(self, topic: str) -> None:
        if self._topics is not None and topic not in self._topics:
            raise UnknownTopicError(topic)

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register an async handler; registering it twice is a no-op."""
        self._require(topic)
        handlers = self._handlers[topic]
        if handler not in handlers:
            handlers.append(handler)

    async def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))

    async def publish(self, topic: str, payload: EventPayload) -> None:
        """Queue ``payload`` for the handlers of ``topic``.

        Handlers run later on the loop; publishing never waits for them.
        Use :meth:`wait_until_idle` to drain them.
        """
        self.publish_nowait(topic, payload)

    def publish_nowait(self, topic: str, payload: EventPayload) -> None:
        """Synchronous form of :meth:`publish` for non-async callers.

        Delivery needs a running event loop. Without one the message is
        dropped, since no handler could run anyway.
        """
        self._require(topic)
        if not self._handlers.get(topic):
            logger.debug(f"No subscribers for topic '{topic}'")
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, dropping '{topic}'")
            return

        key_field = self._coalesce.get(topic)
        if key_field is None:
            self._spawn(loop, self._deliver(topic, payload))
            return

        key = (topic, payload.get(key_field))
        pending = key in self._queued
        self._queued[key] = payload
        if pending:
            logger.debug(f"Coalesced '{topic}' for {key[1]!r}")
            return
        self._spawn(loop, self._deliver_queued(key))

    async def wait_until_idle(self, timeout: float = 10.0) -> bool:
        """Wait until every queued delivery, including follow-ups, is done.

        Returns:
            True if the bus drained, False if ``timeout`` seconds passed first
        """
        try:
            async with asyncio.timeout(timeout):
                while self._tasks:
                    await asyncio.gather(*list(self._tasks), return_exceptions=True)
                    await asyncio.sleep(0)
        except TimeoutError:
            logger.warning(f"EventBus: {len(self._tasks)} delivery task(s) still pending after {timeout}s")
            return False
        return True

    def clear(self) -> None:
        """Remove all subscriptions. Deliveries already queued still run."""
        self._handlers.clear()

    # --- Delivery ---

    def _spawn(self, loop: asyncio.AbstractEventLoop, delivery: Coroutine[Any, Any, None]) -> None:
        task = loop.create_task(delivery)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver_queued(self, key: Tuple[str, Any]) -> None:
        payload = self._queued.pop(key)
        await self._deliver(key[0], payload)

    async def _deliver(self, topic: str, payload: EventPayload) -> None:
        # Handlers of one message run in subscription order; a failure is
        # logged and the next handler still runs
        for handler in list(self._handlers.get(topic, [])):
            try:
                await handler(payload)
            except Exception:
                name = getattr(handler, "__qualname__", repr(handler))
                logger.exception(f"EventBus handler '{name}' failed on '{topic}'")
