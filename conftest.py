"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and oauth1flow/),
making its fixtures available to centralized tests AND colocated tests.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any oauth1flow module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("OAUTH1FLOW_ENVIRONMENT", "test")
os.environ.setdefault("OAUTH1FLOW_LOG_LEVEL", "DEBUG")
os.environ.setdefault("OAUTH1FLOW_AUTO_AUTHORIZE", "false")
os.environ.setdefault("OAUTH1FLOW_CALLBACK_BIND_HOST", "127.0.0.1")


# ---------------------------------------------------------------------------
# Shared fake fixtures: individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_event_bus():
    """Fake EventBus that records published events."""
    from oauth1flow.adapters.event_bus.fake import FakeEventBus

    return FakeEventBus()


@pytest.fixture
def fake_http_client():
    """Fake HttpClient with seeded responses and recorded calls."""
    from oauth1flow.adapters.http.fake import FakeHttpClient

    return FakeHttpClient()


@pytest.fixture
def fake_browser():
    """Fake ExternalBrowser that records opened URLs."""
    from oauth1flow.adapters.browser.fake import FakeBrowser

    return FakeBrowser()


@pytest.fixture
def fake_signer():
    """Fake Signer returning a fixed Authorization header."""
    from oauth1flow.adapters.signer.fake import FakeSigner

    return FakeSigner()


@pytest.fixture
def fake_callback_listener():
    """Fake CallbackListener driven by deliver()."""
    from oauth1flow.domains.oauth1.fakes.callback_listener import FakeCallbackListener

    return FakeCallbackListener()


@pytest.fixture
def test_container(fake_signer, fake_http_client, fake_browser, fake_event_bus):
    """Container built entirely from fakes."""
    from oauth1flow.core.container import Container

    return Container(
        signer=fake_signer,
        http_client=fake_http_client,
        browser=fake_browser,
        event_bus=fake_event_bus,
    )
