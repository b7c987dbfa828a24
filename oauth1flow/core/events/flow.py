"""Domain events for the OAuth1 flow.

For one dispatched request subscribers observe, in order:
RequestReadyEvent, then TokenReceivedEvent for token requests and for
every request whose transport failed.
A request replaced by a newer dispatch yields RequestSupersededEvent instead.

VerificationReceivedEvent is independent of request completions.
"""

from oauth1flow.core.events.base import DomainEvent
from oauth1flow.core.events.enums import CallbackEventType, FlowEventType
from oauth1flow.domains.oauth1.types import ErrorKind, RequestKind, ResponseMap


class RequestReadyEvent(DomainEvent):
    """A dispatched request finished; carries the decoded response body.

    The response is empty when the transport failed.
    """

    event_type: FlowEventType = FlowEventType.REQUEST_READY

    request_id: int
    kind: RequestKind
    error: ErrorKind
    response: ResponseMap


class TokenReceivedEvent(DomainEvent):
    """Token pair of a finished request; empty strings signal a missing token.

    Published for token requests, and with empty strings for any failed request.
    """

    event_type: FlowEventType = FlowEventType.TOKEN_RECEIVED

    request_id: int
    kind: RequestKind
    token: str
    token_secret: str


class RequestSupersededEvent(DomainEvent):
    """A late completion arrived for a request that is no longer current."""

    event_type: FlowEventType = FlowEventType.REQUEST_SUPERSEDED

    request_id: int
    kind: RequestKind


class VerificationReceivedEvent(DomainEvent):
    """The authorization server redirected the user back to the listener."""

    event_type: CallbackEventType = CallbackEventType.VERIFICATION_RECEIVED

    params: ResponseMap
