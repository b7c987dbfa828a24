"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.
"""

from dataclasses import dataclass, replace
from typing import Any

from oauth1flow.core.protocols import EventBus, ExternalBrowser, HttpClient, Signer


@dataclass(frozen=True)
class Container:
    """Immutable container holding the capabilities a flow manager needs.

    Usage:
        # Production: build with the factory
        container = create_container(settings)
        manager = create_flow_manager(container)

        # Testing: construct directly with fakes
        test_container = Container(
            signer=FakeSigner(),
            http_client=FakeHttpClient(),
            browser=FakeBrowser(),
            event_bus=FakeEventBus(),
        )
    """

    # Authorization header producer
    signer: Signer

    # Outbound POSTs to the provider
    http_client: HttpClient

    # Opens the authorization page for the resource owner
    browser: ExternalBrowser

    # Event bus for flow event fan-out
    event_bus: EventBus

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:

            modified = container.replace(browser=FakeBrowser())

        Args:
            **changes: Dependency name -> new implementation

        Returns:
            New Container with specified dependencies replaced
        """
        return replace(self, **changes)

    async def aclose(self) -> None:
        """Release the HTTP client's connections."""
        await self.http_client.aclose()
