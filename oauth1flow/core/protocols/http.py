"""HTTP transport protocol.

The flow manager never talks to httpx directly; it hands a signed request
to an HttpClient and receives a TransportResponse describing the outcome.
Transport failures are reported in the response, never raised.
"""

from typing import Mapping, Protocol, runtime_checkable

from oauth1flow.domains.oauth1.types import TransportResponse


@runtime_checkable
class HttpClient(Protocol):
    """Asynchronous POST capability."""

    async def post(self, url: str, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        """Send a POST request and report how it completed.

        Args:
            url: Absolute endpoint URL.
            headers: Request headers, including Authorization.
            body: Encoded request body.

        Returns:
            TransportResponse with the classified transport outcome.
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...
