"""HTTP transport adapter."""

from oauth1flow.adapters.http.fake import FakeHttpClient
from oauth1flow.adapters.http.httpx_client import HttpxClient, classify_status

__all__ = ["FakeHttpClient", "HttpxClient", "classify_status"]
