"""Event type enums - the vocabulary of the event bus.

Every domain event must use one of these enums for its event_type field.
The union `EventType` constrains DomainEvent.event_type to known values.
"""

from enum import Enum
from typing import Union


class FlowEventType(str, Enum):
    """Events emitted by a flow manager for dispatched requests."""

    REQUEST_READY = "flow.request_ready"
    TOKEN_RECEIVED = "flow.token_received"
    REQUEST_SUPERSEDED = "flow.request_superseded"


class CallbackEventType(str, Enum):
    """Events emitted when the loopback listener captures a redirect."""

    VERIFICATION_RECEIVED = "callback.verification_received"


EventType = Union[FlowEventType, CallbackEventType]
