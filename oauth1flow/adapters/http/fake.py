"""Fake HttpClient for testing.

Returns seeded TransportResponses and records every call. Responses can be
held back with ``hold()`` to simulate overlapping in-flight requests.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from oauth1flow.domains.oauth1.types import TransportError, TransportResponse


@dataclass
class RecordedPost:
    url: str
    headers: Dict[str, str]
    body: bytes


class FakeHttpClient:
    """In-memory fake for the HttpClient protocol.

    Usage:
        fake = FakeHttpClient()
        fake.seed_body("https://example.com/request_token", b"oauth_token=a&oauth_token_secret=b")
        fake.seed_error("https://example.com/access_token", TransportError.AUTHENTICATION_REQUIRED)
    """

    def __init__(self) -> None:
        self.calls: List[RecordedPost] = []
        self.closed = False
        self._responses: Dict[str, List[TransportResponse]] = {}
        self._default = TransportResponse(TransportError.NONE, 200, b"")
        self._gates: Dict[str, asyncio.Event] = {}

    def seed_response(self, url: str, response: TransportResponse) -> None:
        """Queue a response for ``url``; queued responses are used in order."""
        self._responses.setdefault(url, []).append(response)

    def seed_body(self, url: str, body: bytes, status_code: int = 200) -> None:
        self.seed_response(url, TransportResponse(TransportError.NONE, status_code, body))

    def seed_error(
        self, url: str, error: TransportError, status_code: Optional[int] = None
    ) -> None:
        self.seed_response(url, TransportResponse(error, status_code, b""))

    def hold(self, url: str) -> asyncio.Event:
        """Block responses for ``url`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[url] = gate
        return gate

    async def post(self, url: str, headers: Mapping[str, str], body: bytes) -> TransportResponse:
        self.calls.append(RecordedPost(url, dict(headers), body))
        queued = self._responses.get(url)
        response = queued.pop(0) if queued else self._default
        gate = self._gates.get(url)
        if gate is not None:
            await gate.wait()
        return response

    async def aclose(self) -> None:
        self.closed = True

    # Test helpers

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def last_call(self) -> RecordedPost:
        if not self.calls:
            raise AssertionError("HttpClient.post was never called")
        return self.calls[-1]
