"""Tests for the loopback CallbackListener.

Runs a real aiohttp server on 127.0.0.1 and drives it with httpx.

Capture policy under test:
- first GET / with a query string is captured and reported exactly once
- HEAD requests get 405 and never consume the capture
- GET / without a query gets 400 and captures nothing
- other paths (favicon) get 404
- repeated redirects get 200 and never overwrite the captured parameters
"""

import asyncio

import httpx
import pytest
import pytest_asyncio

from oauth1flow.core.exceptions import ListenError, VerificationTimeout
from oauth1flow.domains.oauth1.callback_listener import CallbackListener
from oauth1flow.domains.oauth1.types import ResponseMap


@pytest_asyncio.fixture
async def listener():
    received = []

    async def handler(params: ResponseMap) -> None:
        received.append(params)

    server = CallbackListener(bind_host="127.0.0.1", url_host="127.0.0.1", on_verification=handler)
    server.received = received
    await server.start()
    yield server
    await server.stop()


async def _get(listener: CallbackListener, path: str) -> httpx.Response:
    async with httpx.AsyncClient(trust_env=False) as client:
        return await client.get(f"{listener.callback_url}{path}")


@pytest.mark.asyncio
async def test_start_binds_ephemeral_port(listener):
    assert listener.is_listening
    assert listener.port is not None and listener.port > 0
    assert listener.callback_url == f"http://127.0.0.1:{listener.port}"


@pytest.mark.asyncio
async def test_redirect_is_captured_once(listener):
    response = await _get(listener, "/?oauth_token=abc&oauth_verifier=v1")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    params = await listener.wait_for_verification(timeout=1)
    assert params.to_dict() == {"oauth_token": "abc", "oauth_verifier": "v1"}
    assert len(listener.received) == 1


@pytest.mark.asyncio
async def test_repeated_redirect_does_not_overwrite(listener):
    await _get(listener, "/?oauth_token=abc&oauth_verifier=v1")
    response = await _get(listener, "/?oauth_token=abc&oauth_verifier=v2")

    assert response.status_code == 200
    assert "already received" in response.text
    assert listener.captured.get("oauth_verifier") == "v1"
    assert len(listener.received) == 1


@pytest.mark.asyncio
async def test_favicon_is_ignored(listener):
    response = await _get(listener, "/favicon.ico")

    assert response.status_code == 404
    assert listener.captured is None
    assert listener.received == []


@pytest.mark.asyncio
async def test_head_request_does_not_consume_capture(listener):
    async with httpx.AsyncClient(trust_env=False) as client:
        preview = await client.head(
            f"{listener.callback_url}/?oauth_token=abc&oauth_verifier=PREVIEW"
        )
    assert preview.status_code == 405
    assert listener.captured is None

    response = await _get(listener, "/?oauth_token=abc&oauth_verifier=REAL")

    assert response.status_code == 200
    params = await listener.wait_for_verification(timeout=1)
    assert params.to_dict() == {"oauth_token": "abc", "oauth_verifier": "REAL"}
    assert len(listener.received) == 1


@pytest.mark.asyncio
async def test_request_without_query_is_rejected(listener):
    response = await _get(listener, "/")

    assert response.status_code == 400
    assert listener.captured is None

    await _get(listener, "/?oauth_verifier=v1")
    assert listener.captured.get("oauth_verifier") == "v1"


@pytest.mark.asyncio
async def test_wait_times_out(listener):
    with pytest.raises(VerificationTimeout) as exc_info:
        await listener.wait_for_verification(timeout=0.05)

    assert exc_info.value.timeout == 0.05


@pytest.mark.asyncio
async def test_wait_after_timeout_still_receives(listener):
    with pytest.raises(VerificationTimeout):
        await listener.wait_for_verification(timeout=0.05)

    await _get(listener, "/?oauth_verifier=late")
    params = await listener.wait_for_verification(timeout=1)

    assert params.get("oauth_verifier") == "late"


@pytest.mark.asyncio
async def test_restart_rearms_capture_and_keeps_port(listener):
    await _get(listener, "/?oauth_verifier=v1")
    port = listener.port

    assert await listener.start() == port
    assert listener.captured is None

    await _get(listener, "/?oauth_verifier=v2")
    assert listener.captured.get("oauth_verifier") == "v2"
    assert len(listener.received) == 2


@pytest.mark.asyncio
async def test_handler_failure_does_not_break_response():
    async def broken(params: ResponseMap) -> None:
        raise RuntimeError("subscriber bug")

    server = CallbackListener(bind_host="127.0.0.1", url_host="127.0.0.1", on_verification=broken)
    await server.start()
    try:
        response = await _get(server, "/?oauth_verifier=v1")
    finally:
        await server.stop()

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_stop_cancels_pending_wait():
    server = CallbackListener(bind_host="127.0.0.1")
    await server.start()
    waiter = asyncio.ensure_future(server.wait_for_verification())
    await asyncio.sleep(0)

    await server.stop()

    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert not server.is_listening
    assert server.port is None


def test_callback_url_requires_start():
    server = CallbackListener(bind_host="127.0.0.1")

    with pytest.raises(ListenError):
        server.callback_url


@pytest.mark.asyncio
async def test_unbindable_host_raises_listen_error():
    server = CallbackListener(bind_host="203.0.113.254")

    with pytest.raises(ListenError) as exc_info:
        await server.start()

    assert exc_info.value.host == "203.0.113.254"
    assert not server.is_listening
