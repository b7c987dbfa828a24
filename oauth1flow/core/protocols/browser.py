"""External browser protocol.

Opening the resource owner's browser is a side effect the manager asks
for, not one it performs, so flows can run headless under test.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ExternalBrowser(Protocol):
    """Fire-and-forget URL opener."""

    def open(self, url: str) -> None:
        """Open ``url`` for the user. No completion is reported."""
        ...
