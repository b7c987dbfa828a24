"""Unit tests for HttpxClient.

Status classification runs through httpx.MockTransport; transport failures
patch httpx.AsyncClient so no real network calls are made.
"""

from dataclasses import dataclass
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from oauth1flow.adapters.http.httpx_client import HttpxClient, classify_status
from oauth1flow.domains.oauth1.types import TransportError

URL = "https://example.com/oauth/request_token"


# ===========================================================================
# classify_status (table-driven)
# ===========================================================================


@dataclass
class StatusCase:
    desc: str
    status_code: int
    expected: TransportError


STATUS_CASES = [
    StatusCase("ok", 200, TransportError.NONE),
    StatusCase("created", 201, TransportError.NONE),
    StatusCase("redirect", 302, TransportError.NONE),
    StatusCase("unauthorized", 401, TransportError.AUTHENTICATION_REQUIRED),
    StatusCase("forbidden", 403, TransportError.CONTENT_ACCESS_DENIED),
    StatusCase("bad request", 400, TransportError.PROTOCOL_ERROR),
    StatusCase("server error", 500, TransportError.PROTOCOL_ERROR),
]


@pytest.mark.parametrize("case", STATUS_CASES, ids=lambda c: c.desc)
def test_classify_status(case: StatusCase):
    assert classify_status(case.status_code) == case.expected


# ===========================================================================
# post with a mock transport
# ===========================================================================


@pytest.mark.asyncio
async def test_post_sends_headers_and_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["auth"] = request.headers["Authorization"]
        seen["content_type"] = request.headers["Content-Type"]
        seen["body"] = request.content
        return httpx.Response(200, content=b"oauth_token=abc&oauth_token_secret=xyz")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    adapter = HttpxClient(client=client)

    headers = {
        "Authorization": 'OAuth oauth_nonce="n"',
        "Content-Type": "application/x-www-form-urlencoded",
    }

    result = await adapter.post(URL, headers, b"a=1")
    await client.aclose()

    assert result.transport_error == TransportError.NONE
    assert result.status_code == 200
    assert result.body == b"oauth_token=abc&oauth_token_secret=xyz"
    assert seen == {
        "method": "POST",
        "auth": 'OAuth oauth_nonce="n"',
        "content_type": "application/x-www-form-urlencoded",
        "body": b"a=1",
    }


@pytest.mark.asyncio
async def test_post_classifies_error_status():
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(401, text="bad signature"))
    )
    adapter = HttpxClient(client=client)

    result = await adapter.post(URL, {}, b"")
    await client.aclose()

    assert result.transport_error == TransportError.AUTHENTICATION_REQUIRED
    assert result.status_code == 401
    assert result.body == b"bad signature"


# ===========================================================================
# post with transport exceptions (table-driven)
# ===========================================================================


@dataclass
class ExceptionCase:
    desc: str
    exception: Exception
    expected: TransportError


EXCEPTION_CASES = [
    ExceptionCase("timeout", httpx.ReadTimeout("timed out"), TransportError.TIMEOUT),
    ExceptionCase("connect", httpx.ConnectError("DNS failure"), TransportError.CONNECTION_FAILED),
    ExceptionCase("other http error", httpx.HTTPError("something broke"), TransportError.UNKNOWN),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("case", EXCEPTION_CASES, ids=lambda c: c.desc)
async def test_post_folds_exceptions(case: ExceptionCase):
    with patch("oauth1flow.adapters.http.httpx_client.httpx.AsyncClient") as mock_cls:
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(side_effect=case.exception)
        mock_cls.return_value = mock_client

        adapter = HttpxClient(timeout=5.0)
        result = await adapter.post(URL, {}, b"")

    assert result.transport_error == case.expected
    assert result.status_code is None
    assert result.body == b""
    mock_cls.assert_called_once_with(timeout=5.0)


# ===========================================================================
# aclose
# ===========================================================================


@pytest.mark.asyncio
async def test_aclose_closes_owned_client():
    with patch("oauth1flow.adapters.http.httpx_client.httpx.AsyncClient") as mock_cls:
        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=httpx.Response(200))
        mock_cls.return_value = mock_client

        adapter = HttpxClient()
        await adapter.post(URL, {}, b"")
        await adapter.aclose()

    mock_client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open():
    client = AsyncMock()
    adapter = HttpxClient(client=client)

    await adapter.aclose()

    client.aclose.assert_not_awaited()
