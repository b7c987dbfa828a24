"""Form-urlencoded body codec for token endpoint traffic.

Decoding deliberately stops at splitting: values are returned exactly as
they appear on the wire, without percent-decoding.
"""

from typing import Iterable, Tuple, Union

from oauth1flow.adapters.signer.hmac_sha1 import percent_encode
from oauth1flow.domains.oauth1.types import ResponseMap


def parse_response_body(body: Union[bytes, str]) -> ResponseMap:
    """Decode a form-urlencoded body into an ordered multimap.

    Segments are split on ``&`` and then on the first ``=``. Empty segments
    are skipped; a segment without ``=`` becomes a key with an empty value.

    Args:
        body: Raw response body; bytes are decoded as UTF-8 with replacement.

    Returns:
        ResponseMap preserving segment order and duplicate keys.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body

    pairs = []
    for segment in text.split("&"):
        if not segment:
            continue
        key, _, value = segment.partition("=")
        pairs.append((key, value))
    return ResponseMap.from_pairs(pairs)


def encode_form_body(pairs: Iterable[Tuple[str, str]]) -> bytes:
    """Encode (key, value) pairs as an RFC 3986 form body, order preserved."""
    return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in pairs).encode("ascii")
