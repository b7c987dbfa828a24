"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container and flow managers from them.
"""

from typing import Optional

from oauth1flow.adapters.browser import SystemBrowser
from oauth1flow.adapters.event_bus import InMemoryEventBus
from oauth1flow.adapters.http import HttpxClient
from oauth1flow.adapters.signer import HmacSha1Signer
from oauth1flow.core.config import Settings
from oauth1flow.core.container.container import Container
from oauth1flow.core.logging import logger
from oauth1flow.domains.oauth1.callback_listener import CallbackListener
from oauth1flow.domains.oauth1.flow_manager import OAuth1FlowManager


def create_container(settings: Settings) -> Container:
    """Build the container with the bundled adapters.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use
    """
    container = Container(
        signer=HmacSha1Signer(),
        http_client=HttpxClient(timeout=settings.HTTP_TIMEOUT_SECONDS),
        browser=SystemBrowser(),
        event_bus=InMemoryEventBus(),
    )
    logger.debug(f"Container created for environment {settings.ENVIRONMENT.value}")
    return container


def create_flow_manager(
    container: Container,
    settings: Settings,
    auto_authorize: Optional[bool] = None,
) -> OAuth1FlowManager:
    """Build a flow manager wired to the container's capabilities.

    The manager gets its own callback listener configured from ``settings``.
    The HTTP client stays owned by the container.

    Args:
        container: Source of signer, HTTP client, browser and event bus.
        settings: Listener hosts, timeouts and the auto-authorization default.
        auto_authorize: Overrides AUTO_AUTHORIZE from settings.

    Returns:
        A fresh OAuth1FlowManager in the IDLE stage.
    """
    listener = CallbackListener(
        bind_host=settings.CALLBACK_BIND_HOST,
        url_host=settings.CALLBACK_URL_HOST,
        timeout=settings.CALLBACK_TIMEOUT_SECONDS,
    )
    return OAuth1FlowManager(
        signer=container.signer,
        http_client=container.http_client,
        browser=container.browser,
        event_bus=container.event_bus,
        callback_listener=listener,
        settings=settings,
        auto_authorize=auto_authorize,
    )
