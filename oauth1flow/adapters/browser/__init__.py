"""Browser adapter."""

from oauth1flow.adapters.browser.fake import FakeBrowser
from oauth1flow.adapters.browser.system import SystemBrowser

__all__ = ["FakeBrowser", "SystemBrowser"]
