"""Tests for the shared exception hierarchy."""

from dataclasses import dataclass

import pytest

from oauth1flow.core.exceptions import (
    ListenError,
    OAuth1FlowError,
    OAuth1FlowException,
    SigningError,
    VerificationTimeout,
)
from oauth1flow.domains.oauth1.types import ErrorKind


@dataclass
class MessageCase:
    desc: str
    error: OAuth1FlowException
    expected: str


MESSAGE_CASES = [
    MessageCase("signing default", SigningError(), "Request could not be signed"),
    MessageCase(
        "listen names host",
        ListenError("127.0.0.1"),
        "Could not bind callback listener on 127.0.0.1",
    ),
    MessageCase(
        "timeout names seconds",
        VerificationTimeout(5),
        "No authorization verifier received within 5 seconds",
    ),
    MessageCase(
        "flow error defaults to kind",
        OAuth1FlowError(ErrorKind.NETWORK_ERROR),
        "OAuth1 flow failed: network_error",
    ),
    MessageCase(
        "flow error custom message",
        OAuth1FlowError(ErrorKind.REQUEST_UNAUTHORIZED, "Authorization was not granted"),
        "Authorization was not granted",
    ),
]


@pytest.mark.parametrize("case", MESSAGE_CASES, ids=lambda c: c.desc)
def test_exception_messages(case: MessageCase):
    assert str(case.error) == case.expected
    assert isinstance(case.error, OAuth1FlowException)


def test_flow_error_keeps_kind():
    error = OAuth1FlowError(ErrorKind.LISTEN_ERROR)

    assert error.error_kind == ErrorKind.LISTEN_ERROR
