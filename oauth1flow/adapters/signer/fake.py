"""Fake Signer for testing."""

from typing import List, Optional

from oauth1flow.core.exceptions import SigningError
from oauth1flow.domains.oauth1.types import RequestDescriptor


class FakeSigner:
    """Returns a predictable header and records what it was asked to sign.

    Usage:
        fake = FakeSigner()
        fake.seed_error(SigningError("boom"))
    """

    def __init__(self, header: str = 'OAuth oauth_signature="fake"') -> None:
        self.signed: List[RequestDescriptor] = []
        self._header = header
        self._error: Optional[SigningError] = None

    def seed_error(self, error: SigningError) -> None:
        self._error = error

    def sign(self, descriptor: RequestDescriptor) -> str:
        self.signed.append(descriptor)
        if self._error is not None:
            raise self._error
        return self._header

    @property
    def last_signed(self) -> RequestDescriptor:
        if not self.signed:
            raise AssertionError("Signer.sign was never called")
        return self.signed[-1]
