"""Shared exceptions module."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from oauth1flow.domains.oauth1.types import ErrorKind


class OAuth1FlowException(Exception):
    """Base exception for oauth1flow."""

    pass


class SigningError(OAuth1FlowException):
    """Exception raised when a request cannot be signed."""

    def __init__(self, message: Optional[str] = "Request could not be signed"):
        """Create a new SigningError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class ListenError(OAuth1FlowException):
    """Exception raised when the callback listener cannot bind a port."""

    def __init__(self, host: str, message: Optional[str] = "Could not bind callback listener"):
        """Create a new ListenError instance.

        Args:
        ----
            host (str): The host the listener tried to bind.
            message (str, optional): The error message. Has default message.

        """
        self.host = host
        self.message = message
        super().__init__(f"{message} on {host}")


class VerificationTimeout(OAuth1FlowException):
    """Exception raised when no authorization redirect arrives in time."""

    def __init__(self, timeout: float):
        """Create a new VerificationTimeout instance.

        Args:
        ----
            timeout (float): Seconds waited before giving up.

        """
        self.timeout = timeout
        self.message = f"No authorization verifier received within {timeout} seconds"
        super().__init__(self.message)


class OAuth1FlowError(OAuth1FlowException):
    """Exception raised when a step of the three-legged flow fails.

    Carries the error classification the manager recorded for the step.
    """

    def __init__(self, error_kind: "ErrorKind", message: Optional[str] = None):
        """Create a new OAuth1FlowError instance.

        Args:
        ----
            error_kind (ErrorKind): The recorded error classification.
            message (str, optional): The error message. Defaults to the kind.

        """
        self.error_kind = error_kind
        self.message = message or f"OAuth1 flow failed: {error_kind.value}"
        super().__init__(self.message)
