"""Event bus adapters: sequential in-process delivery and a recording fake."""

from oauth1flow.adapters.event_bus.fake import FakeEventBus
from oauth1flow.adapters.event_bus.in_memory import InMemoryEventBus

__all__ = ["InMemoryEventBus", "FakeEventBus"]
