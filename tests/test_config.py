"""Settings·duration 파싱 테스트."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from chalysh_auth.core.config import Settings, parse_duration


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("15m", timedelta(minutes=15)),
        ("30d", timedelta(days=30)),
        ("1h", timedelta(hours=1)),
        ("45s", timedelta(seconds=45)),
    ],
)
def test_parse_duration(value: str, expected: timedelta) -> None:
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "15", "m15", "1w", "-5m", "1.5h"])
def test_parse_duration_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        parse_duration(value)


def test_settings_defaults() -> None:
    s = Settings(_env_file=None, jwt_secret="x" * 32)
    assert s.access_token_ttl == timedelta(minutes=15)
    assert s.refresh_token_ttl == timedelta(days=30)
    assert s.telegram_auth_max_age_seconds == 86400


def test_settings_rejects_short_jwt_secret() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret="short")


def test_settings_rejects_bad_duration() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret="x" * 32, refresh_token_expires_in="forever")


def test_production_requires_database_url() -> None:
    with pytest.raises(ValidationError, match="DATABASE_URL"):
        Settings(
            _env_file=None,
            jwt_secret="x" * 32,
            environment="production",
            database_url="",
            telegram_bot_token="bot",
        )
