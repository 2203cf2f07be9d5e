"""Access JWT 발급 테스트. DB 없이 검증."""

from datetime import timedelta

import jwt
import pytest

from chalysh_auth.models.user import User
from chalysh_auth.services.errors import ExpiredCredentialError, InvalidProofError
from chalysh_auth.services.token_issuer import (
    GoogleSubject,
    LinkedSubject,
    TelegramSubject,
    TokenIssuer,
    subject_for_user,
)

SECRET = "test-jwt-secret-for-pytest-0123456789abcdef"


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(SECRET)


def test_subject_for_telegram_user() -> None:
    user = User(id="u1", telegram_id=42, first_name="Ada")
    assert subject_for_user(user) == TelegramSubject("u1", "42")


def test_subject_for_google_user() -> None:
    user = User(id="u2", google_id="g-1", first_name="Ada")
    assert subject_for_user(user) == GoogleSubject("u2", "g-1")


def test_subject_for_linked_user() -> None:
    user = User(id="u3", telegram_id=7, google_id="g-7", first_name="Ada")
    subject = subject_for_user(user)
    assert subject == LinkedSubject("u3", "7", "g-7")
    assert subject.claims() == {"sub": "u3", "telegramId": "7", "googleId": "g-7"}


def test_subject_requires_a_linked_provider() -> None:
    with pytest.raises(ValueError):
        subject_for_user(User(id="u4", first_name="Nobody"))


def test_issue_access_token_claims(issuer: TokenIssuer) -> None:
    token = issuer.issue_access_token(TelegramSubject("u1", "42"))
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["sub"] == "u1"
    assert payload["telegramId"] == "42"
    assert "googleId" not in payload
    assert payload["type"] == "access"
    assert payload["exp"] - payload["iat"] == 15 * 60


def test_issue_access_token_custom_ttl(issuer: TokenIssuer) -> None:
    token = issuer.issue_access_token(GoogleSubject("u2", "g-1"), ttl=timedelta(minutes=1))
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["googleId"] == "g-1"
    assert payload["exp"] - payload["iat"] == 60


def test_tokens_are_unique(issuer: TokenIssuer) -> None:
    subject = TelegramSubject("u1", "42")
    assert issuer.issue_access_token(subject) != issuer.issue_access_token(subject)


def test_decode_roundtrip(issuer: TokenIssuer) -> None:
    token = issuer.issue_access_token(TelegramSubject("u1", "42"))
    assert issuer.decode_access_token(token)["sub"] == "u1"


def test_decode_expired(issuer: TokenIssuer) -> None:
    token = issuer.issue_access_token(TelegramSubject("u1", "42"), ttl=timedelta(seconds=-5))
    with pytest.raises(ExpiredCredentialError):
        issuer.decode_access_token(token)


def test_decode_wrong_secret(issuer: TokenIssuer) -> None:
    other = TokenIssuer("another-secret-that-is-long-enough-0123")
    token = other.issue_access_token(TelegramSubject("u1", "42"))
    with pytest.raises(InvalidProofError):
        issuer.decode_access_token(token)


def test_decode_rejects_non_access_type() -> None:
    token = jwt.encode(
        {"sub": "u1", "type": "refresh", "iat": 1, "exp": 9999999999}, SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidProofError):
        TokenIssuer(SECRET).decode_access_token(token)


def test_empty_secret_rejected() -> None:
    with pytest.raises(ValueError):
        TokenIssuer("")
