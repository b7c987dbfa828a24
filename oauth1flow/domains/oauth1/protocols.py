"""Protocols for OAuth1 flow domain dependencies."""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol, Sequence, Tuple

from oauth1flow.domains.oauth1.types import (
    ErrorKind,
    FlowStage,
    RequestDescriptor,
    RequestOutcome,
    ResponseMap,
    TokenCredentials,
)

VerificationHandler = Callable[[ResponseMap], Awaitable[None]]


class CallbackListenerProtocol(Protocol):
    """Loopback redirect capture capability."""

    @property
    def port(self) -> Optional[int]:
        """Bound port, or None when not listening."""
        ...

    @property
    def is_listening(self) -> bool:
        ...

    @property
    def callback_url(self) -> str:
        """``http://<host>:<port>`` for the bound listener."""
        ...

    def set_verification_handler(self, handler: Optional[VerificationHandler]) -> None:
        """Register the coroutine called once per captured redirect."""
        ...

    async def start(self) -> int:
        """Bind (or re-arm) the listener and return its port."""
        ...

    async def stop(self) -> None:
        ...

    async def wait_for_verification(self, timeout: Optional[float] = None) -> ResponseMap:
        """Wait for the captured redirect parameters."""
        ...


class OAuth1FlowManagerProtocol(Protocol):
    """Three-legged OAuth 1.0a flow capability."""

    async def dispatch(
        self, descriptor: Optional[RequestDescriptor]
    ) -> "Optional[asyncio.Future[RequestOutcome]]":
        """Sign and send a request without waiting for its response."""
        ...

    def get_user_authorization(self, endpoint: str) -> Optional[str]:
        """Open the authorization page for the temporary token."""
        ...

    async def request_access_token(
        self, endpoint: str, verifier: Optional[str] = None
    ) -> "Optional[asyncio.Future[RequestOutcome]]":
        """Exchange the temporary token and verifier for an access token."""
        ...

    async def send_authorized_request(
        self, endpoint: str, params: Sequence[Tuple[str, str]] = ()
    ) -> "Optional[asyncio.Future[RequestOutcome]]":
        """Send a request signed with the access token."""
        ...

    def has_temporary_token(self) -> bool:
        ...

    def is_verified(self) -> bool:
        ...

    def is_authorized(self) -> bool:
        ...

    def last_error(self) -> ErrorKind:
        ...

    @property
    def stage(self) -> FlowStage:
        ...

    @property
    def access_credentials(self) -> Optional[TokenCredentials]:
        ...
