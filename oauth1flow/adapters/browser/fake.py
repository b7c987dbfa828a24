"""Fake ExternalBrowser for testing."""

from typing import List


class FakeBrowser:
    """Records opened URLs instead of launching anything."""

    def __init__(self) -> None:
        self.opened: List[str] = []

    def open(self, url: str) -> None:
        self.opened.append(url)

    @property
    def last_url(self) -> str:
        if not self.opened:
            raise AssertionError("No URL was opened")
        return self.opened[-1]
