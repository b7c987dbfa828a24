"""Configuration module for oauth1flow.

Provides centralized configuration management with type-safe enums.

Usage:
    from oauth1flow.core.config import settings, SignatureMethod

    if settings.SIGNATURE_METHOD == SignatureMethod.PLAINTEXT:
        ...
"""

from oauth1flow.core.config.enums import Environment, SignatureMethod
from oauth1flow.core.config.settings import Settings

__all__ = [
    "Settings",
    "SignatureMethod",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
