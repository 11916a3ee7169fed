"""
Event Bus - Asynchronous fan-out of origin gateway events
=========================================================

The gateway client publishes every approval event it receives here;
the approval coordinator (and anything else interested, e.g. audit
hooks) subscribes by event type.

Delivery runs on the single asyncio loop that owns the coordinator, so
subscribers observe events in publish order.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Gateway and coordinator event types"""
    APPROVAL_REQUESTED = "exec.approval.requested"
    APPROVAL_RESOLVED = "exec.approval.resolved"

    # Emitted by the coordinator when a local timer wins
    APPROVAL_EXPIRED = "exec.approval.expired"

    GATEWAY_CONNECTED = "gateway.connected"
    GATEWAY_DISCONNECTED = "gateway.disconnected"

    @classmethod
    def from_wire(cls, name: str) -> "EventType | None":
        """Map a gateway event name to an EventType, or None if unsupported"""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass
class Event:
    """Represents an event in the system"""
    event_type: EventType
    timestamp: str
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            'event_type': self.event_type.value,
            'timestamp': self.timestamp,
            'data': self.data,
        }


class EventBus:
    """
    Event bus for publishing and subscribing to events

    Architecture:
    - Async publish/subscribe pattern
    - Multiple subscribers per event type
    - Error isolation (one subscriber failure doesn't affect others)

    Event History:
    - Disabled by default to keep long-running processes bounded
    - Enable via enable_history=True for debugging
    """

    def __init__(self, enable_history: bool = False, max_history: int = 1000) -> None:
        """
        Initialize event bus

        Args:
            enable_history: Enable in-memory event history (default: False)
            max_history: Maximum number of events to keep in memory (default: 1000)
        """
        self._subscribers: dict[EventType, list[Callable]] = {}
        self._enable_history = enable_history
        self._event_history: deque[Event] = deque(maxlen=max_history) if enable_history else deque()

        logger.debug("EventBus initialized (history: %s)", enable_history)

    def subscribe(self, event_type: EventType, callback: Callable) -> None:
        """
        Subscribe to an event type

        Args:
            event_type: Type of event to subscribe to
            callback: Async function to call when event occurs
                     Signature: async def callback(event: Event) -> None
        """
        self._subscribers.setdefault(event_type, []).append(callback)
        logger.debug("Subscribed to %s", event_type.value)

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        """Unsubscribe from an event type"""
        if event_type in self._subscribers:
            try:
                self._subscribers[event_type].remove(callback)
                logger.debug("Unsubscribed from %s", event_type.value)
            except ValueError:
                logger.warning("Callback not found in %s subscribers", event_type.value)

    def subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, []))

    @property
    def history(self) -> list[Event]:
        return list(self._event_history)

    async def publish(self, event_type: EventType, data: dict[str, Any]) -> None:
        """
        Publish an event

        Args:
            event_type: Type of event
            data: Event payload
        """
        event = Event(
            event_type=event_type,
            timestamp=datetime.now(tz=UTC).isoformat(),
            data=data,
        )

        if self._enable_history:
            self._event_history.append(event)

        # Copy so a subscriber may unsubscribe itself mid-delivery
        subscribers = list(self._subscribers.get(event_type, []))

        if not subscribers:
            logger.debug("No subscribers for %s", event_type.value)
            return

        results = await asyncio.gather(
            *(self._notify_subscriber(callback, event) for callback in subscribers),
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error(
                    "Uncaught exception in event subscriber %s for %s: %s",
                    i, event_type.value, result,
                    exc_info=result,
                )

    async def _notify_subscriber(self, callback: Callable, event: Event) -> None:
        """Notify a single subscriber; errors in one subscriber don't affect others"""
        try:
            await callback(event)
        except Exception as e:
            logger.error(
                "Error in event subscriber for %s: %s",
                event.event_type.value, e,
                exc_info=True
            )
