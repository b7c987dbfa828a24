"""Dependency Injection Container Module.

Usage:
------
    from oauth1flow.core.config import settings
    from oauth1flow.core.container import create_container, create_flow_manager

    container = create_container(settings)
    async with create_flow_manager(container, settings) as manager:
        credentials = await manager.run_three_legged_flow(...)
    await container.aclose()

    # In tests (construct directly with fakes)
    test_container = Container(
        signer=FakeSigner(),
        http_client=FakeHttpClient(),
        browser=FakeBrowser(),
        event_bus=FakeEventBus(),
    )

Module structure:
-----------------
    container/
    ├── __init__.py      # This file - exports public API
    ├── container.py     # Container dataclass (serves)
    └── factory.py       # create_container(), create_flow_manager() (builds)
"""

from oauth1flow.core.container.container import Container
from oauth1flow.core.container.factory import create_container, create_flow_manager

__all__ = ["Container", "create_container", "create_flow_manager"]
