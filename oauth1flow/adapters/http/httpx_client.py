"""httpx-backed HttpClient.

Sends signed token and resource requests and folds every failure into a
TransportResponse so the flow manager can classify it.
"""

from typing import Mapping, Optional

import httpx

from oauth1flow.core.config import settings
from oauth1flow.core.logging import logger
from oauth1flow.domains.oauth1.types import TransportError, TransportResponse


def classify_status(status_code: int) -> TransportError:
    """Map an HTTP status code onto a TransportError."""
    if status_code == 401:
        return TransportError.AUTHENTICATION_REQUIRED
    if status_code == 403:
        return TransportError.CONTENT_ACCESS_DENIED
    if status_code >= 400:
        return TransportError.PROTOCOL_ERROR
    return TransportError.NONE


class HttpxClient:
    """HttpClient implementation over a shared httpx.AsyncClient.

    Pass ``client`` to reuse an existing pool; otherwise one is created
    lazily and closed by ``aclose``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize with an optional client and request timeout."""
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._logger = logger.with_context(component="http_client")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def post(self, url: str, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        """POST ``body`` to ``url`` and classify the outcome.

        Args:
            url: Absolute endpoint URL.
            headers: Request headers, including Authorization.
            body: Form-encoded body.

        Returns:
            TransportResponse; never raises for transport failures.
        """
        client = self._get_client()
        try:
            response = await client.post(url, headers=dict(headers), content=body)
        except httpx.TimeoutException as e:
            self._logger.warning(f"Request to {url} timed out: {e}")
            return TransportResponse(TransportError.TIMEOUT)
        except httpx.ConnectError as e:
            self._logger.warning(f"Could not connect to {url}: {e}")
            return TransportResponse(TransportError.CONNECTION_FAILED)
        except httpx.HTTPError as e:
            self._logger.error(f"HTTP error posting to {url}: {e}")
            return TransportResponse(TransportError.UNKNOWN)

        error = classify_status(response.status_code)
        if error != TransportError.NONE:
            self._logger.warning(
                f"Request to {url} failed: {response.status_code} - {response.text}"
            )
        return TransportResponse(error, response.status_code, response.content)

    async def aclose(self) -> None:
        """Close the underlying client if this adapter created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
