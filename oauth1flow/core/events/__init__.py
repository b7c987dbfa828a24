"""Domain events published on the event bus."""

from oauth1flow.core.events.base import DomainEvent
from oauth1flow.core.events.enums import CallbackEventType, EventType, FlowEventType
from oauth1flow.core.events.flow import (
    RequestReadyEvent,
    RequestSupersededEvent,
    TokenReceivedEvent,
    VerificationReceivedEvent,
)

__all__ = [
    "CallbackEventType",
    "DomainEvent",
    "EventType",
    "FlowEventType",
    "RequestReadyEvent",
    "RequestSupersededEvent",
    "TokenReceivedEvent",
    "VerificationReceivedEvent",
]
