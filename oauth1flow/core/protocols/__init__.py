"""Core protocols for dependency injection.

Capabilities the flow manager depends on but does not implement.
"""

from oauth1flow.core.protocols.browser import ExternalBrowser
from oauth1flow.core.protocols.event_bus import (
    EventBus,
    EventHandler,
    FlowEvent,
    Unsubscribe,
)
from oauth1flow.core.protocols.http import HttpClient
from oauth1flow.core.protocols.signer import Signer

__all__ = [
    "EventBus",
    "EventHandler",
    "ExternalBrowser",
    "FlowEvent",
    "HttpClient",
    "Signer",
    "Unsubscribe",
]
