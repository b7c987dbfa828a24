"""Settings with defaults, loaded from OAUTH1FLOW_* environment variables."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oauth1flow.core.config.enums import Environment, SignatureMethod


class Settings(BaseSettings):
    """Runtime configuration.

    Env vars use the OAUTH1FLOW_ prefix:
        OAUTH1FLOW_CALLBACK_TIMEOUT_SECONDS=120
    """

    model_config = SettingsConfigDict(
        env_prefix="OAUTH1FLOW_",
        env_file=".env",
        extra="ignore",
    )

    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    HTTP_TIMEOUT_SECONDS: float = Field(30.0, description="Timeout for token endpoint calls")

    CALLBACK_BIND_HOST: str = Field("127.0.0.1", description="Interface the listener binds")
    CALLBACK_URL_HOST: str = Field("localhost", description="Host used in the callback URL")
    CALLBACK_TIMEOUT_SECONDS: Optional[float] = Field(
        None, description="Wait limit for the authorization redirect; None waits forever"
    )

    AUTO_AUTHORIZE: bool = Field(
        False, description="Start the loopback listener for temporary-credential requests"
    )
    SIGNATURE_METHOD: SignatureMethod = SignatureMethod.HMAC_SHA1

    @field_validator("HTTP_TIMEOUT_SECONDS", "CALLBACK_TIMEOUT_SECONDS")
    @classmethod
    def validate_positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        """Reject zero and negative timeouts."""
        if value is not None and value <= 0:
            raise ValueError("Timeouts must be positive")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalise and check the log level name."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level
