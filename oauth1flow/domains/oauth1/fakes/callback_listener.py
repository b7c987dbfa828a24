"""Fake CallbackListener for testing."""

import asyncio
from typing import Dict, Optional

from oauth1flow.core.exceptions import ListenError, VerificationTimeout
from oauth1flow.domains.oauth1.protocols import VerificationHandler
from oauth1flow.domains.oauth1.types import ResponseMap


class FakeCallbackListener:
    """In-memory fake for CallbackListenerProtocol.

    ``deliver`` plays the role of the browser redirect.

    Usage:
        listener = FakeCallbackListener(port=54321)
        await listener.deliver({"oauth_token": "abc", "oauth_verifier": "v1"})
    """

    def __init__(self, port: int = 54321) -> None:
        self.start_calls = 0
        self.stop_calls = 0
        self._port_to_bind = port
        self._port: Optional[int] = None
        self._handler: Optional[VerificationHandler] = None
        self._captured: Optional[ResponseMap] = None
        self._arrived: Optional[asyncio.Event] = None
        self._start_error: Optional[ListenError] = None

    def seed_start_error(self, error: ListenError) -> None:
        self._start_error = error

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def is_listening(self) -> bool:
        return self._port is not None

    @property
    def callback_url(self) -> str:
        if self._port is None:
            raise ListenError("localhost", "Callback listener is not started")
        return f"http://localhost:{self._port}"

    def set_verification_handler(self, handler: Optional[VerificationHandler]) -> None:
        self._handler = handler

    async def start(self) -> int:
        self.start_calls += 1
        if self._start_error is not None:
            raise self._start_error
        self._port = self._port_to_bind
        self._captured = None
        self._arrived = asyncio.Event()
        return self._port

    async def stop(self) -> None:
        self.stop_calls += 1
        self._port = None

    async def deliver(self, params: Dict[str, str]) -> bool:
        """Simulate a redirect; returns False when it was ignored."""
        if self._captured is not None:
            return False
        self._captured = ResponseMap.from_pairs(params.items())
        if self._arrived is None:
            self._arrived = asyncio.Event()
        self._arrived.set()
        if self._handler is not None:
            await self._handler(self._captured)
        return True

    async def wait_for_verification(self, timeout: Optional[float] = None) -> ResponseMap:
        if self._arrived is None:
            self._arrived = asyncio.Event()
        try:
            await asyncio.wait_for(self._arrived.wait(), timeout)
        except asyncio.TimeoutError as e:
            raise VerificationTimeout(timeout or 0) from e
        assert self._captured is not None
        return self._captured
