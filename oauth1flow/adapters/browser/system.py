"""ExternalBrowser backed by the standard library webbrowser module."""

import webbrowser

from oauth1flow.core.logging import logger


class SystemBrowser:
    """Opens URLs in the user's default browser."""

    def open(self, url: str) -> None:
        """Ask the platform to open ``url``; failures are logged, not raised."""
        if not webbrowser.open(url):
            logger.warning(f"Could not open a browser. Visit this URL manually: {url}")
