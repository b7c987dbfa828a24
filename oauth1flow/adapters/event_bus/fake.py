"""Fake event bus for testing.

Records published events for assertions without calling real subscribers.
"""

from typing import TYPE_CHECKING, Optional
from uuid import UUID

from oauth1flow.adapters.event_bus.in_memory import InMemoryEventBus, event_type_of

if TYPE_CHECKING:
    from oauth1flow.core.protocols.event_bus import EventHandler, FlowEvent, Unsubscribe


class FakeEventBus:
    """Test implementation of EventBus.

    Records all published events. With ``call_subscribers=True`` it also
    delivers them through an InMemoryEventBus.

    Usage:
        fake = FakeEventBus()
        manager = OAuth1FlowManager(..., event_bus=fake)
        ...
        assert fake.event_types() == ["flow.request_ready", "flow.token_received"]
    """

    def __init__(self, call_subscribers: bool = False) -> None:
        self.events: list["FlowEvent"] = []
        self._call_subscribers = call_subscribers
        self._delivery = InMemoryEventBus()

    def subscribe(
        self,
        event_pattern: str,
        handler: "EventHandler",
        *,
        flow_id: Optional[UUID] = None,
    ) -> "Unsubscribe":
        """Register a handler (only called if call_subscribers=True)."""
        return self._delivery.subscribe(event_pattern, handler, flow_id=flow_id)

    async def publish(self, event: "FlowEvent") -> None:
        self.events.append(event)
        if self._call_subscribers:
            await self._delivery.publish(event)

    # Test helpers

    def event_types(self) -> list[str]:
        """Event types in publish order."""
        return [event_type_of(e) for e in self.events]

    def has_event(self, event_type: str) -> bool:
        return any(event_type_of(e) == event_type for e in self.events)

    def get_event(self, event_type: str) -> "FlowEvent":
        """Return the first event of the given type."""
        for e in self.events:
            if event_type_of(e) == event_type:
                return e
        raise AssertionError(f"No event of type '{event_type}' was published")

    def get_events(self, event_type: str) -> list["FlowEvent"]:
        return [e for e in self.events if event_type_of(e) == event_type]

    def clear(self) -> None:
        self.events.clear()
