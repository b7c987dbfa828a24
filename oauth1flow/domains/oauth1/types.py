"""Value types for the OAuth1 flow domain.

These live in a separate module to avoid circular imports between
the manager, the listener, the events and the protocol definitions.
"""

import asyncio
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field

from oauth1flow.core.config.enums import SignatureMethod


class RequestKind(str, Enum):
    """Which leg of the flow a request belongs to."""

    TEMPORARY_CREDENTIALS = "temporary_credentials"
    ACCESS_TOKEN = "access_token"
    AUTHORIZED_REQUEST = "authorized_request"


class FlowStage(str, Enum):
    """Position of a manager in the three-legged handshake."""

    IDLE = "idle"
    AWAITING_TEMPORARY_CREDENTIALS = "awaiting_temporary_credentials"
    AWAITING_USER_AUTHORIZATION = "awaiting_user_authorization"
    AWAITING_ACCESS_TOKEN = "awaiting_access_token"
    AUTHORIZED = "authorized"
    ERROR = "error"


class ErrorKind(str, Enum):
    """Error classification recorded by the manager."""

    NO_ERROR = "no_error"
    REQUEST_ERROR = "request_error"
    REQUEST_ENDPOINT_ERROR = "request_endpoint_error"
    REQUEST_VALIDATION_ERROR = "request_validation_error"
    REQUEST_UNAUTHORIZED = "request_unauthorized"
    NETWORK_ERROR = "network_error"
    LISTEN_ERROR = "listen_error"


class TransportError(str, Enum):
    """Outcome of an HTTP exchange as reported by the HttpClient."""

    NONE = "none"
    AUTHENTICATION_REQUIRED = "authentication_required"
    CONTENT_ACCESS_DENIED = "content_access_denied"
    PROTOCOL_ERROR = "protocol_error"
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


# Known OAuth response fields; everything else lands in OAuthFields.extras.
OAUTH_TOKEN = "oauth_token"
OAUTH_TOKEN_SECRET = "oauth_token_secret"
OAUTH_VERIFIER = "oauth_verifier"
OAUTH_CALLBACK_CONFIRMED = "oauth_callback_confirmed"

_KNOWN_FIELDS = (OAUTH_TOKEN, OAUTH_TOKEN_SECRET, OAUTH_VERIFIER, OAUTH_CALLBACK_CONFIRMED)


def is_valid_endpoint(url: Optional[str]) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    if not url:
        return False
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class OAuthFields(BaseModel):
    """Typed view of the OAuth fields the state machine depends on."""

    model_config = ConfigDict(frozen=True)

    oauth_token: str = ""
    oauth_token_secret: str = ""
    oauth_verifier: str = ""
    oauth_callback_confirmed: str = ""
    extras: Dict[str, List[str]] = Field(default_factory=dict)

    @property
    def has_token_pair(self) -> bool:
        """True when both the token and its secret are non-empty."""
        return bool(self.oauth_token) and bool(self.oauth_token_secret)


class ResponseMap(BaseModel):
    """Ordered multi-valued mapping of string keys to string values.

    ``get`` returns the most recently inserted value for a key, matching
    how a later duplicate parameter overrides an earlier one.
    """

    model_config = ConfigDict(frozen=True)

    pairs: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "ResponseMap":
        """Build a map from (key, value) pairs, keeping their order."""
        return cls(pairs=tuple((str(k), str(v)) for k, v in pairs))

    def get(self, key: str, default: str = "") -> str:
        """Return the last value stored for ``key``, or ``default``."""
        for k, v in reversed(self.pairs):
            if k == key:
                return v
        return default

    def get_all(self, key: str) -> List[str]:
        """Return every value stored for ``key`` in insertion order."""
        return [v for k, v in self.pairs if k == key]

    def keys(self) -> List[str]:
        """Return the distinct keys in first-seen order."""
        seen: Dict[str, None] = {}
        for k, _ in self.pairs:
            seen.setdefault(k, None)
        return list(seen)

    def items(self) -> List[Tuple[str, str]]:
        return list(self.pairs)

    def to_dict(self) -> Dict[str, str]:
        """Collapse to a plain dict, last value wins."""
        return {k: self.get(k) for k in self.keys()}

    def oauth_fields(self) -> OAuthFields:
        """Return the typed OAuth view of this map."""
        extras: Dict[str, List[str]] = {}
        for k, v in self.pairs:
            if k not in _KNOWN_FIELDS:
                extras.setdefault(k, []).append(v)
        return OAuthFields(
            oauth_token=self.get(OAUTH_TOKEN),
            oauth_token_secret=self.get(OAUTH_TOKEN_SECRET),
            oauth_verifier=self.get(OAUTH_VERIFIER),
            oauth_callback_confirmed=self.get(OAUTH_CALLBACK_CONFIRMED),
            extras=extras,
        )

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def __bool__(self) -> bool:
        return bool(self.pairs)


class RequestDescriptor(BaseModel):
    """Everything needed to sign and send one OAuth request.

    Immutable once built; use ``with_callback_url`` to derive a copy.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    kind: RequestKind
    consumer_key: str = ""
    consumer_secret: str = ""
    token: str = ""
    token_secret: str = ""
    verifier: str = ""
    callback_url: str = ""
    signature_method: Optional[SignatureMethod] = SignatureMethod.HMAC_SHA1
    body_parameters: Tuple[Tuple[str, str], ...] = ()

    @property
    def http_method(self) -> str:
        return "POST"

    def has_valid_endpoint(self) -> bool:
        return is_valid_endpoint(self.endpoint)

    def validation_errors(self) -> List[str]:
        """Return the names of required signing fields that are missing."""
        missing = []
        if not self.consumer_key:
            missing.append("consumer_key")
        if self.signature_method is None:
            missing.append("signature_method")

        if self.kind == RequestKind.ACCESS_TOKEN:
            for name in ("token", "token_secret", "verifier"):
                if not getattr(self, name):
                    missing.append(name)
        elif self.kind == RequestKind.AUTHORIZED_REQUEST:
            for name in ("token", "token_secret"):
                if not getattr(self, name):
                    missing.append(name)
        return missing

    def is_valid(self) -> bool:
        return not self.validation_errors()

    def with_callback_url(self, callback_url: str) -> "RequestDescriptor":
        """Return a copy carrying ``callback_url``."""
        return self.model_copy(update={"callback_url": callback_url})


@dataclass(frozen=True)
class TransportResponse:
    """Completion of one HTTP exchange."""

    transport_error: TransportError
    status_code: Optional[int] = None
    body: bytes = b""


@dataclass(frozen=True)
class RequestOutcome:
    """What a dispatched request resolved to once its notifications ran."""

    request_id: int
    kind: RequestKind
    error: ErrorKind
    response: ResponseMap = field(default_factory=ResponseMap)
    superseded: bool = False


@dataclass(frozen=True)
class TokenCredentials:
    """A token and its secret, always set together."""

    token: str
    token_secret: str


@dataclass
class InFlightRequest:
    """The request a manager currently awaits."""

    request_id: int
    descriptor: RequestDescriptor
    future: "asyncio.Future[RequestOutcome]"


@dataclass
class FlowState:
    """Mutable state of one flow, owned by a single manager.

    Token pairs are only ever written through the ``set_*`` helpers so a
    token and its secret are stored together or not at all.
    """

    stage: FlowStage = FlowStage.IDLE
    current_kind: Optional[RequestKind] = None
    current_request_id: Optional[int] = None
    last_error: ErrorKind = ErrorKind.NO_ERROR

    temporary_token: str = ""
    temporary_token_secret: str = ""
    access_token: str = ""
    access_token_secret: str = ""
    verifier: str = ""

    # Remembered from the last temporary-credential request for the
    # convenience requests built later in the flow.
    consumer_key: str = ""
    consumer_secret: str = ""
    callback_url: str = ""
    signature_method: SignatureMethod = SignatureMethod.HMAC_SHA1

    has_temporary_token: bool = False
    is_verified: bool = False
    is_authorized: bool = False
    auto_authorize: bool = False

    def set_temporary_credentials(self, token: str, token_secret: str) -> bool:
        """Store the temporary pair if both halves are present."""
        if not (token and token_secret):
            return False
        self.temporary_token = token
        self.temporary_token_secret = token_secret
        self.has_temporary_token = True
        return True

    def set_access_credentials(self, token: str, token_secret: str) -> bool:
        """Store the access pair if both halves are present."""
        if not (token and token_secret):
            return False
        self.access_token = token
        self.access_token_secret = token_secret
        self.is_authorized = True
        return True

    def reset(self) -> None:
        """Forget everything about the previous flow, keep the auto flag."""
        auto_authorize = self.auto_authorize
        for f in fields(self):
            setattr(self, f.name, f.default)
        self.auto_authorize = auto_authorize
