"""Request signer adapter."""

from oauth1flow.adapters.signer.fake import FakeSigner
from oauth1flow.adapters.signer.hmac_sha1 import (
    HmacSha1Signer,
    build_signature_base_string,
    format_authorization_header,
    percent_encode,
)

__all__ = [
    "FakeSigner",
    "HmacSha1Signer",
    "build_signature_base_string",
    "format_authorization_header",
    "percent_encode",
]
