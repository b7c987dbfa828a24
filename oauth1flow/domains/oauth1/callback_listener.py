"""Loopback HTTP listener that captures the authorization redirect.

After the resource owner approves access, the provider redirects the
browser to ``http://localhost:<port>?oauth_token=...&oauth_verifier=...``.
The listener answers that one request, reports its query parameters and
ignores everything else.

Capture policy:
    - The first GET to ``/`` with a non-empty query string is captured and
      reported exactly once.
    - GET ``/`` without a query string gets 400 and captures nothing.
    - Any other path (e.g. /favicon.ico) gets 404 and captures nothing.
    - HEAD requests (link previews, prefetchers) get 405 and capture nothing.
    - Later GETs to ``/`` get a 200 page and produce no event; the captured
      parameters are never overwritten until ``start()`` re-arms capture.

"""

import asyncio
from typing import Optional

from aiohttp import web

from oauth1flow.core.config import settings
from oauth1flow.core.exceptions import ListenError, VerificationTimeout
from oauth1flow.core.logging import logger
from oauth1flow.domains.oauth1.protocols import VerificationHandler
from oauth1flow.domains.oauth1.types import ResponseMap

_PAGE = """<!DOCTYPE html>
<html>
<head><title>{title}</title></head>
<body>
<h2>{title}</h2>
<p>{message}</p>
</body>
</html>
"""


def _html(title: str, message: str, status: int = 200) -> web.Response:
    return web.Response(
        text=_PAGE.format(title=title, message=message),
        content_type="text/html",
        status=status,
    )


class CallbackListener:
    """Short-lived aiohttp server on an OS-assigned loopback port."""

    def __init__(
        self,
        *,
        bind_host: Optional[str] = None,
        url_host: Optional[str] = None,
        timeout: Optional[float] = None,
        on_verification: Optional[VerificationHandler] = None,
    ) -> None:
        """Initialize the listener.

        Args:
            bind_host: Interface to bind. Defaults to CALLBACK_BIND_HOST.
            url_host: Host written into ``callback_url``. Defaults to CALLBACK_URL_HOST.
            timeout: Default wait limit for ``wait_for_verification``.
            on_verification: Coroutine called once with the captured parameters.
        """
        self._bind_host = bind_host or settings.CALLBACK_BIND_HOST
        self._url_host = url_host or settings.CALLBACK_URL_HOST
        self._timeout = timeout if timeout is not None else settings.CALLBACK_TIMEOUT_SECONDS
        self._on_verification = on_verification
        self._runner: Optional[web.AppRunner] = None
        self._port: Optional[int] = None
        self._verification: Optional["asyncio.Future[ResponseMap]"] = None
        self._logger = logger.with_context(component="callback_listener")

    @property
    def port(self) -> Optional[int]:
        return self._port

    @property
    def is_listening(self) -> bool:
        return self._runner is not None

    @property
    def callback_url(self) -> str:
        """URL to register as oauth_callback; requires a started listener."""
        if self._port is None:
            raise ListenError(self._bind_host, "Callback listener is not started")
        return f"http://{self._url_host}:{self._port}"

    @property
    def captured(self) -> Optional[ResponseMap]:
        """Parameters of the captured redirect, if one arrived."""
        future = self._verification
        if future is not None and future.done() and not future.cancelled():
            return future.result()
        return None

    def set_verification_handler(self, handler: Optional[VerificationHandler]) -> None:
        self._on_verification = handler

    def _arm(self) -> None:
        if self._verification is None or self._verification.done():
            self._verification = asyncio.get_running_loop().create_future()

    async def start(self) -> int:
        """Bind the listener and arm verifier capture.

        Calling ``start`` on a running listener keeps the port and re-arms
        capture for a new flow.

        Returns:
            The bound port number.

        Raises:
            ListenError: If no port could be bound.
        """
        self._arm()
        if self._runner is not None and self._port is not None:
            return self._port

        app = web.Application()
        app.router.add_get("/", self._handle_callback, allow_head=False)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._bind_host, 0)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            self._logger.error(f"Could not bind callback listener on {self._bind_host}: {e}")
            raise ListenError(self._bind_host) from e

        self._runner = runner
        self._port = runner.addresses[0][1]
        self._logger.info(f"Callback listener started on {self._bind_host}:{self._port}")
        return self._port

    async def stop(self) -> None:
        """Stop the listener; a pending wait is cancelled."""
        if self._runner is not None:
            try:
                await self._runner.cleanup()
            except Exception as e:
                self._logger.warning(f"Callback listener cleanup error: {e}")
            self._logger.debug(f"Callback listener on port {self._port} stopped")
        self._runner = None
        self._port = None
        if self._verification is not None and not self._verification.done():
            self._verification.cancel()

    async def wait_for_verification(self, timeout: Optional[float] = None) -> ResponseMap:
        """Wait for the redirect and return its query parameters.

        Args:
            timeout: Seconds to wait; defaults to the listener's timeout,
                     None waits forever.

        Raises:
            VerificationTimeout: If nothing arrived in time.
        """
        if self._verification is None:
            self._arm()
        limit = timeout if timeout is not None else self._timeout
        try:
            return await asyncio.wait_for(asyncio.shield(self._verification), limit)
        except asyncio.TimeoutError as e:
            self._logger.warning(f"No authorization redirect within {limit} seconds")
            raise VerificationTimeout(limit) from e

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Capture the first redirect that carries query parameters."""
        if not request.query:
            return _html("Authorization incomplete", "No authorization parameters received.", 400)

        if self._verification is None or self._verification.done():
            self._logger.debug("Ignoring repeated authorization redirect")
            return _html(
                "Authorization already received",
                "You can close this window and return to the application.",
            )

        params = ResponseMap.from_pairs(request.query.items())
        self._verification.set_result(params)
        self._logger.info(f"Authorization redirect received with keys: {', '.join(params.keys())}")

        if self._on_verification is not None:
            try:
                await self._on_verification(params)
            except Exception as e:
                self._logger.error(f"Verification handler failed: {e}", exc_info=True)

        return _html(
            "Authorization received",
            "You can close this window and return to the application.",
        )
