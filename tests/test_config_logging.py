import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tixbook.core.config import Settings
from tixbook.core.logging import _parse_headers, configure_logging, init_tracer, shutdown_tracer
from tixbook.db.engine import to_async_dsn


def test_settings_defaults():
    settings = Settings(jwt_secret_key="s3cret")

    assert settings.jwt_algorithm == "HS256"
    assert settings.access_token_expire_minutes == 600
    assert settings.fixed_fare == Decimal("200.00")
    assert settings.mask_credential_errors is True
    assert settings.jwt_secret_key.get_secret_value() == "s3cret"
    assert "s3cret" not in repr(settings)


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("TIXBOOK_ACCESS_TOKEN_EXPIRE_MINUTES", "30")
    monkeypatch.setenv("TIXBOOK_OPERATOR_USERNAMES", '["ops"]')

    settings = Settings(jwt_secret_key="s3cret")

    assert settings.access_token_expire_minutes == 30
    assert settings.operator_usernames == ("ops",)


@pytest.mark.parametrize("secret", ["", "   "])
def test_blank_signing_secret_is_rejected(secret):
    with pytest.raises(ValidationError):
        Settings(jwt_secret_key=secret)


def test_negative_fare_is_rejected():
    with pytest.raises(ValidationError):
        Settings(jwt_secret_key="s3cret", fixed_fare=Decimal("-1"))


@pytest.mark.parametrize(
    ("dsn", "expected"),
    [
        ("postgresql://u:p@db/tix", "postgresql+asyncpg://u:p@db/tix"),
        ("postgresql+asyncpg://u:p@db/tix", "postgresql+asyncpg://u:p@db/tix"),
        ("sqlite+aiosqlite:///tix.db", "sqlite+aiosqlite:///tix.db"),
    ],
)
def test_to_async_dsn(dsn, expected):
    assert to_async_dsn(dsn) == expected


def test_parse_headers_skips_malformed_items():
    assert _parse_headers(None) == {}
    assert _parse_headers("api-key = abc, broken, x-team=ops") == {"api-key": "abc", "x-team": "ops"}


def test_configure_logging_returns_application_logger():
    logger = configure_logging(Settings(jwt_secret_key="s3cret", log_level="debug"))

    assert logger.name == "tixbook"
    assert logger.level == logging.DEBUG


def test_tracer_is_disabled_by_default():
    provider = init_tracer(Settings(jwt_secret_key="s3cret"))

    assert provider is None
    shutdown_tracer(provider)
