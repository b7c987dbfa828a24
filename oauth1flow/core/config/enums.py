"""Configuration enums for type-safe settings.

These enums inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class SignatureMethod(str, Enum):
    """OAuth 1.0a signature methods (RFC 5849 section 3.4)."""

    HMAC_SHA1 = "HMAC-SHA1"
    PLAINTEXT = "PLAINTEXT"


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior such as the default log level.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"
