"""Tests for gatekeeper.core.event_bus"""

from unittest.mock import AsyncMock

import pytest

from gatekeeper.core.event_bus import Event, EventBus, EventType


class TestEventType:
    def test_from_wire(self):
        assert EventType.from_wire("exec.approval.requested") is EventType.APPROVAL_REQUESTED
        assert EventType.from_wire("exec.approval.resolved") is EventType.APPROVAL_RESOLVED
        assert EventType.from_wire("chat.message") is None


class TestEventBus:
    @pytest.mark.asyncio
    async def test_publish_to_subscribers(self):
        bus = EventBus()
        first, second = AsyncMock(), AsyncMock()
        bus.subscribe(EventType.APPROVAL_REQUESTED, first)
        bus.subscribe(EventType.APPROVAL_REQUESTED, second)

        await bus.publish(EventType.APPROVAL_REQUESTED, {"id": "a1"})

        event = first.await_args.args[0]
        assert isinstance(event, Event)
        assert event.event_type is EventType.APPROVAL_REQUESTED
        assert event.data == {"id": "a1"}
        second.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_only_matching_type(self):
        bus = EventBus()
        subscriber = AsyncMock()
        bus.subscribe(EventType.APPROVAL_RESOLVED, subscriber)
        await bus.publish(EventType.APPROVAL_REQUESTED, {})
        subscriber.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_subscriber_isolated(self):
        bus = EventBus()
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        bus.subscribe(EventType.APPROVAL_RESOLVED, failing)
        bus.subscribe(EventType.APPROVAL_RESOLVED, healthy)

        await bus.publish(EventType.APPROVAL_RESOLVED, {"id": "a1"})
        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        subscriber = AsyncMock()
        bus.subscribe(EventType.APPROVAL_EXPIRED, subscriber)
        bus.unsubscribe(EventType.APPROVAL_EXPIRED, subscriber)
        assert bus.subscriber_count(EventType.APPROVAL_EXPIRED) == 0

        await bus.publish(EventType.APPROVAL_EXPIRED, {"id": "a1"})
        subscriber.assert_not_awaited()

    def test_unsubscribe_unknown_callback(self):
        bus = EventBus()
        bus.subscribe(EventType.APPROVAL_EXPIRED, AsyncMock())
        bus.unsubscribe(EventType.APPROVAL_EXPIRED, AsyncMock())
        assert bus.subscriber_count(EventType.APPROVAL_EXPIRED) == 1

    @pytest.mark.asyncio
    async def test_history_bounded(self):
        bus = EventBus(enable_history=True, max_history=2)
        for i in range(3):
            await bus.publish(EventType.GATEWAY_CONNECTED, {"n": i})
        assert [e.data["n"] for e in bus.history] == [1, 2]

    @pytest.mark.asyncio
    async def test_history_disabled_by_default(self):
        bus = EventBus()
        await bus.publish(EventType.GATEWAY_CONNECTED, {})
        assert bus.history == []

    def test_event_to_dict(self):
        event = Event(EventType.APPROVAL_EXPIRED, "2026-01-30T00:00:00+00:00", {"id": "a1"})
        assert event.to_dict() == {
            "event_type": "exec.approval.expired",
            "timestamp": "2026-01-30T00:00:00+00:00",
            "data": {"id": "a1"},
        }
