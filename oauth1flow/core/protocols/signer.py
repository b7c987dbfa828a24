"""Request signing protocol.

Signers turn a RequestDescriptor into the value of its Authorization
header: ``OAuth`` followed by the signed oauth_* parameters joined with
``", "``.
"""

from typing import Protocol, runtime_checkable

from oauth1flow.domains.oauth1.types import RequestDescriptor


@runtime_checkable
class Signer(Protocol):
    """OAuth 1.0a signing capability."""

    def sign(self, descriptor: RequestDescriptor) -> str:
        """Return the Authorization header value for ``descriptor``.

        Raises:
            SigningError: If the descriptor's credentials are incomplete.
        """
        ...
