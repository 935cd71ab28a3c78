import asyncio

import pytest

from needle.shared.core import events
from needle.shared.core.event_bus import EventBus, UnknownTopicError


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    received = []

    async def broken(payload):
        raise RuntimeError("boom")

    async def healthy(payload):
        received.append(payload["n"])

    await bus.subscribe("store.changed", broken)
    await bus.subscribe("store.changed", healthy)
    await bus.publish("store.changed", {"n": 1})

    assert await bus.wait_until_idle()
    assert received == [1]


@pytest.mark.asyncio
async def test_subscribe_is_idempotent_and_unsubscribe():
    bus = EventBus()
    received = []

    async def handler(payload):
        received.append(payload)

    await bus.subscribe("auth.logout", handler)
    await bus.subscribe("auth.logout", handler)
    assert bus.subscriber_count("auth.logout") == 1

    await bus.unsubscribe("auth.logout", handler)
    await bus.publish("auth.logout", {})
    await bus.wait_until_idle()
    assert received == []


@pytest.mark.asyncio
async def test_store_changed_bursts_coalesce_per_store():
    bus = events.create_event_bus()
    received = []

    async def handler(payload):
        received.append(payload)

    await bus.subscribe(events.TOPIC_STORE_CHANGED, handler)
    await bus.publish(events.TOPIC_STORE_CHANGED, events.create_store_changed_event("tunnels", True, None))
    await bus.publish(events.TOPIC_STORE_CHANGED, events.create_store_changed_event("tunnels", False, "boom"))
    await bus.publish(events.TOPIC_STORE_CHANGED, events.create_store_changed_event("auth", False, None))
    assert await bus.wait_until_idle()

    assert received == [
        {"store": "tunnels", "loading": False, "error": "boom"},
        {"store": "auth", "loading": False, "error": None},
    ]

    await bus.publish(events.TOPIC_STORE_CHANGED, events.create_store_changed_event("tunnels", False, None))
    await bus.wait_until_idle()
    assert len(received) == 3


@pytest.mark.asyncio
async def test_other_topics_are_not_coalesced():
    bus = events.create_event_bus()
    received = []

    async def handler(payload):
        received.append(payload["id"])

    await bus.subscribe(events.TOPIC_NAV_SELECT, handler)
    await bus.publish(events.TOPIC_NAV_SELECT, events.create_nav_select_event("login"))
    await bus.publish(events.TOPIC_NAV_SELECT, events.create_nav_select_event("register"))
    await bus.wait_until_idle()

    assert received == ["login", "register"]


@pytest.mark.asyncio
async def test_registered_topics_reject_unknown_names():
    bus = events.create_event_bus()

    async def handler(payload):
        pass

    with pytest.raises(UnknownTopicError):
        await bus.subscribe("store.chnaged", handler)
    with pytest.raises(UnknownTopicError):
        await bus.publish("tunnel.renamed", {})
    assert bus.topics == set(events.ALL_TOPICS)


def test_coalesced_topic_must_be_registered():
    with pytest.raises(UnknownTopicError):
        EventBus(topics=["a"], coalesce={"b": "store"})


def test_publish_without_running_loop_is_dropped():
    bus = EventBus()
    received = []

    async def handler(payload):
        received.append(payload)

    asyncio.run(bus.subscribe("auth.logout", handler))
    bus.publish_nowait("auth.logout", {})

    assert received == []
    assert bus.subscriber_count("auth.logout") == 1
