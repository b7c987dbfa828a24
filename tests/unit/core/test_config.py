"""Tests for Settings loaded from OAUTH1FLOW_* environment variables."""

from dataclasses import dataclass
from typing import Any, Dict

import pytest
from pydantic import ValidationError

from oauth1flow.core.config import Environment, Settings, SignatureMethod


def test_defaults(monkeypatch):
    for name in (
        "OAUTH1FLOW_ENVIRONMENT",
        "OAUTH1FLOW_LOG_LEVEL",
        "OAUTH1FLOW_AUTO_AUTHORIZE",
        "OAUTH1FLOW_CALLBACK_BIND_HOST",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.ENVIRONMENT == Environment.LOCAL
    assert settings.LOG_LEVEL == "INFO"
    assert settings.HTTP_TIMEOUT_SECONDS == 30.0
    assert settings.CALLBACK_BIND_HOST == "127.0.0.1"
    assert settings.CALLBACK_URL_HOST == "localhost"
    assert settings.CALLBACK_TIMEOUT_SECONDS is None
    assert settings.AUTO_AUTHORIZE is False
    assert settings.SIGNATURE_METHOD == SignatureMethod.HMAC_SHA1


def test_reads_prefixed_environment(monkeypatch):
    monkeypatch.setenv("OAUTH1FLOW_CALLBACK_TIMEOUT_SECONDS", "120")
    monkeypatch.setenv("OAUTH1FLOW_AUTO_AUTHORIZE", "true")
    monkeypatch.setenv("OAUTH1FLOW_SIGNATURE_METHOD", "PLAINTEXT")
    monkeypatch.setenv("OAUTH1FLOW_LOG_LEVEL", "warning")

    settings = Settings(_env_file=None)

    assert settings.CALLBACK_TIMEOUT_SECONDS == 120.0
    assert settings.AUTO_AUTHORIZE is True
    assert settings.SIGNATURE_METHOD == SignatureMethod.PLAINTEXT
    assert settings.LOG_LEVEL == "WARNING"


def test_unprefixed_variables_are_ignored(monkeypatch):
    monkeypatch.delenv("OAUTH1FLOW_AUTO_AUTHORIZE", raising=False)
    monkeypatch.setenv("AUTO_AUTHORIZE", "true")

    assert Settings(_env_file=None).AUTO_AUTHORIZE is False


@dataclass
class InvalidCase:
    desc: str
    overrides: Dict[str, Any]


INVALID_CASES = [
    InvalidCase("zero http timeout", {"HTTP_TIMEOUT_SECONDS": 0}),
    InvalidCase("negative callback timeout", {"CALLBACK_TIMEOUT_SECONDS": -1}),
    InvalidCase("unknown log level", {"LOG_LEVEL": "LOUD"}),
    InvalidCase("unknown signature method", {"SIGNATURE_METHOD": "RSA-SHA1"}),
]


@pytest.mark.parametrize("case", INVALID_CASES, ids=lambda c: c.desc)
def test_invalid_values_rejected(case: InvalidCase):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **case.overrides)
