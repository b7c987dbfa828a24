"""Tests for the dependency container and its factory."""

import pytest

from oauth1flow.adapters.browser import FakeBrowser, SystemBrowser
from oauth1flow.adapters.event_bus import InMemoryEventBus
from oauth1flow.adapters.http import HttpxClient
from oauth1flow.adapters.signer import HmacSha1Signer
from oauth1flow.core.config import Settings
from oauth1flow.core.container import Container, create_container, create_flow_manager
from oauth1flow.core.protocols import EventBus, ExternalBrowser, HttpClient, Signer
from oauth1flow.domains.oauth1.callback_listener import CallbackListener
from oauth1flow.domains.oauth1.types import FlowStage


@pytest.mark.asyncio
async def test_create_container_uses_bundled_adapters():
    container = create_container(Settings(_env_file=None))

    assert isinstance(container.signer, HmacSha1Signer)
    assert isinstance(container.http_client, HttpxClient)
    assert isinstance(container.browser, SystemBrowser)
    assert isinstance(container.event_bus, InMemoryEventBus)
    await container.aclose()


def test_fakes_satisfy_protocols(test_container):
    assert isinstance(test_container.signer, Signer)
    assert isinstance(test_container.http_client, HttpClient)
    assert isinstance(test_container.browser, ExternalBrowser)
    assert isinstance(test_container.event_bus, EventBus)


def test_replace_returns_new_container(test_container):
    browser = FakeBrowser()

    modified = test_container.replace(browser=browser)

    assert modified.browser is browser
    assert test_container.browser is not browser
    assert modified.signer is test_container.signer


def test_container_is_frozen(test_container):
    with pytest.raises(Exception):
        test_container.browser = FakeBrowser()


def test_create_flow_manager_wires_container(test_container):
    settings = Settings(_env_file=None, AUTO_AUTHORIZE=True, CALLBACK_TIMEOUT_SECONDS=30)

    manager = create_flow_manager(test_container, settings)

    assert manager.stage == FlowStage.IDLE
    assert manager.auto_authorize is True
    assert isinstance(manager.callback_listener, CallbackListener)
    assert manager.last_error().value == "no_error"


def test_create_flow_manager_override_auto_authorize(test_container):
    settings = Settings(_env_file=None, AUTO_AUTHORIZE=True)

    manager = create_flow_manager(test_container, settings, auto_authorize=False)

    assert manager.auto_authorize is False


@pytest.mark.asyncio
async def test_container_aclose_closes_http_client(test_container):
    await test_container.aclose()

    assert test_container.http_client.closed


def test_container_requires_every_capability():
    with pytest.raises(TypeError):
        Container(signer=HmacSha1Signer())
