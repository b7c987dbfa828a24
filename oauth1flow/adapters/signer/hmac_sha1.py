"""OAuth 1.0a request signer.

Builds the oauth_* protocol parameters for a RequestDescriptor, signs
them with HMAC-SHA1 or PLAINTEXT and renders the Authorization header.

Reference: RFC 5849 - The OAuth 1.0 Protocol, section 3
"""

import base64
import hashlib
import hmac
import secrets
import time
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from oauth1flow.core.config.enums import SignatureMethod
from oauth1flow.core.exceptions import SigningError
from oauth1flow.domains.oauth1.types import RequestDescriptor, RequestKind

OUT_OF_BAND_CALLBACK = "oob"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value: str) -> str:
    """Percent-encode a value according to RFC 3986.

    Encodes all characters except unreserved: A-Z, a-z, 0-9, -, ., _, ~
    """
    return quote(str(value), safe="~")


def format_authorization_header(params: Iterable[Tuple[str, str]]) -> str:
    """Render ``OAuth k1="v1", k2="v2"`` from already ordered parameters."""
    parts = [f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in params]
    return "OAuth " + ", ".join(parts)


def normalize_url(url: str) -> str:
    """Base string URI: lowercase scheme and host, no default port, no query."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if parts.port and parts.port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{parts.port}"
    return urlunsplit((scheme, host, parts.path or "/", "", ""))


def normalize_parameters(params: Iterable[Tuple[str, str]]) -> str:
    """Encode, sort by name then value, and join with '&'."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def build_signature_base_string(
    method: str, url: str, params: Iterable[Tuple[str, str]]
) -> str:
    """Build the signature base string per RFC 5849.

    Format: HTTP_METHOD&URL&NORMALIZED_PARAMS

    Query parameters of ``url`` are folded into the parameter set.
    """
    all_params: List[Tuple[str, str]] = list(params)
    all_params.extend(parse_qsl(urlsplit(url).query, keep_blank_values=True))

    parts = [
        method.upper(),
        percent_encode(normalize_url(url)),
        percent_encode(normalize_parameters(all_params)),
    ]
    return "&".join(parts)


class HmacSha1Signer:
    """Signer implementation for HMAC-SHA1 and PLAINTEXT.

    ``nonce_factory`` and ``clock`` exist so tests can pin the values that
    otherwise make every signature unique.
    """

    def __init__(
        self,
        nonce_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize with optional nonce and timestamp sources."""
        self._nonce_factory = nonce_factory or self._generate_nonce
        self._clock = clock or time.time

    def _generate_nonce(self) -> str:
        """Generate a cryptographically secure random nonce."""
        return secrets.token_urlsafe(32)

    def _get_timestamp(self) -> str:
        """Get current Unix timestamp as string."""
        return str(int(self._clock()))

    def _signing_key(self, consumer_secret: str, token_secret: str) -> str:
        return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"

    def _sign_hmac_sha1(self, base_string: str, consumer_secret: str, token_secret: str) -> str:
        """Sign the base string using HMAC-SHA1.

        Signing key: percent_encode(consumer_secret)&percent_encode(token_secret)
        """
        key_bytes = self._signing_key(consumer_secret, token_secret).encode("utf-8")
        signature_bytes = hmac.new(key_bytes, base_string.encode("utf-8"), hashlib.sha1).digest()
        return base64.b64encode(signature_bytes).decode("utf-8")

    def oauth_parameters(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        """Return the unsigned oauth_* protocol parameters for ``descriptor``."""
        if descriptor.signature_method is None:
            raise SigningError("No signature method set")

        params = {
            "oauth_consumer_key": descriptor.consumer_key,
            "oauth_signature_method": descriptor.signature_method.value,
            "oauth_timestamp": self._get_timestamp(),
            "oauth_nonce": self._nonce_factory(),
            "oauth_version": "1.0",
        }

        if descriptor.kind == RequestKind.TEMPORARY_CREDENTIALS:
            params["oauth_callback"] = descriptor.callback_url or OUT_OF_BAND_CALLBACK
        else:
            params["oauth_token"] = descriptor.token
        if descriptor.kind == RequestKind.ACCESS_TOKEN:
            params["oauth_verifier"] = descriptor.verifier
        return params

    def signature(self, descriptor: RequestDescriptor, oauth_params: Dict[str, str]) -> str:
        """Compute oauth_signature over the protocol and body parameters."""
        token_secret = (
            "" if descriptor.kind == RequestKind.TEMPORARY_CREDENTIALS else descriptor.token_secret
        )

        if descriptor.signature_method == SignatureMethod.PLAINTEXT:
            return self._signing_key(descriptor.consumer_secret, token_secret)

        if descriptor.signature_method == SignatureMethod.HMAC_SHA1:
            params = list(oauth_params.items()) + list(descriptor.body_parameters)
            base_string = build_signature_base_string(
                descriptor.http_method, descriptor.endpoint, params
            )
            return self._sign_hmac_sha1(base_string, descriptor.consumer_secret, token_secret)

        raise SigningError(f"Unsupported signature method: {descriptor.signature_method}")

    def sign(self, descriptor: RequestDescriptor) -> str:
        """Return the Authorization header value for ``descriptor``.

        Raises:
            SigningError: If required credentials for the request kind are missing.
        """
        missing = descriptor.validation_errors()
        if missing:
            raise SigningError(f"Incomplete credentials: missing {', '.join(missing)}")

        oauth_params = self.oauth_parameters(descriptor)
        oauth_params["oauth_signature"] = self.signature(descriptor, oauth_params)
        return format_authorization_header(sorted(oauth_params.items()))
