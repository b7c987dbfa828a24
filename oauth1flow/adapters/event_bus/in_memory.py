"""In-process event bus.

Handlers run one after another in subscription order, and ``publish``
returns only after the last of them finished. A manager awaits each
publish, so every subscriber sees a flow's request-ready event before the
token event that follows it.
"""

import fnmatch
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from oauth1flow.core.logging import logger as root_logger

if TYPE_CHECKING:
    from oauth1flow.core.protocols.event_bus import EventHandler, FlowEvent, Unsubscribe

logger = root_logger.with_prefix("EventBus: ")


def event_type_of(event: "FlowEvent") -> str:
    """Return the event type as a plain string (enum members are unwrapped)."""
    return getattr(event.event_type, "value", event.event_type)


@dataclass(frozen=True, eq=False)
class _Subscription:
    pattern: str
    handler: "EventHandler"
    flow_id: Optional[UUID]

    def matches(self, event_type: str, flow_id: UUID) -> bool:
        if self.flow_id is not None and self.flow_id != flow_id:
            return False
        return fnmatch.fnmatchcase(event_type, self.pattern)


class InMemoryEventBus:
    """EventBus that delivers sequentially inside the publishing task.

    Usage:
        bus = InMemoryEventBus()
        bus.subscribe("flow.*", on_flow_event, flow_id=manager.flow_id)
        bus.subscribe("callback.verification_received", on_verifier)
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        event_pattern: str,
        handler: "EventHandler",
        *,
        flow_id: Optional[UUID] = None,
    ) -> "Unsubscribe":
        subscription = _Subscription(event_pattern, handler, flow_id)
        self._subscriptions.append(subscription)
        scope = f"flow {flow_id}" if flow_id is not None else "all flows"
        logger.debug(f"subscribed to '{event_pattern}' for {scope}")

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
                logger.debug(f"unsubscribed from '{event_pattern}'")

        return unsubscribe

    async def publish(self, event: "FlowEvent") -> None:
        """Run every matching handler in turn.

        Handlers added or removed during delivery take effect from the next
        event. A handler's exception is logged and delivery continues.
        """
        event_type = event_type_of(event)
        targets = [s for s in self._subscriptions if s.matches(event_type, event.flow_id)]
        if not targets:
            logger.debug(f"no subscribers for '{event_type}'")
            return

        for subscription in targets:
            try:
                await subscription.handler(event)
            except Exception as e:
                logger.error(
                    f"handler for '{subscription.pattern}' failed on "
                    f"'{event_type}' from flow {event.flow_id}: {e}",
                    exc_info=True,
                )
