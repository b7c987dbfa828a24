"""Event delivery contract between flow managers and their observers.

For every response it applies, a manager publishes a request-ready event
and then, for token requests and for failed requests, a token event.
Observers depend on seeing that pair in order, so ``publish`` must not
return before the event reached every matching handler.

Usage:
    unsubscribe = event_bus.subscribe(
        "flow.token_received", store_token, flow_id=manager.flow_id
    )
    ...
    unsubscribe()
"""

from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable
from uuid import UUID


@runtime_checkable
class FlowEvent(Protocol):
    """What a bus reads from an event to route it."""

    @property
    def event_type(self) -> str:
        """'flow.request_ready', 'callback.verification_received', ..."""
        ...

    @property
    def flow_id(self) -> UUID:
        """Manager that published the event."""
        ...


EventHandler = Callable[[FlowEvent], Awaitable[None]]
Unsubscribe = Callable[[], None]


@runtime_checkable
class EventBus(Protocol):
    """Routes flow events to subscribers by event type and flow."""

    async def publish(self, event: FlowEvent) -> None:
        """Deliver ``event`` to every matching subscriber before returning.

        A failing subscriber must not prevent delivery to the others or
        raise into the publishing manager.
        """
        ...

    def subscribe(
        self,
        event_pattern: str,
        handler: EventHandler,
        *,
        flow_id: Optional[UUID] = None,
    ) -> Unsubscribe:
        """Register ``handler`` for events whose type matches the glob pattern.

        Args:
            event_pattern: Glob over event_type, e.g. 'flow.*'.
            handler: Coroutine function receiving the event.
            flow_id: Only deliver events published by this flow; None for all.

        Returns:
            Callable that removes the subscription.
        """
        ...
