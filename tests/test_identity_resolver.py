"""IdentityResolver find-or-create·덮어쓰기 정책 테스트."""

import pytest
from sqlalchemy import func, select

from chalysh_auth.models.user import User
from chalysh_auth.repositories import user_repository
from chalysh_auth.schemas.auth import GoogleUserClaims
from chalysh_auth.schemas.user import ExternalProfile
from chalysh_auth.services.errors import IdentityConflictError
from chalysh_auth.services.identity_resolver import (
    IdentityResolver,
    profile_from_google,
    username_from_email,
)


@pytest.fixture
def resolver(database) -> IdentityResolver:
    return IdentityResolver(database)


async def _user_count(database) -> int:
    async with database.transaction() as session:
        return (await session.execute(select(func.count()).select_from(User))).scalar_one()


@pytest.mark.asyncio
async def test_new_telegram_identity_creates_user(database, resolver) -> None:
    user = await resolver.resolve(
        "telegram", "42", ExternalProfile(first_name="Ada", username="ada")
    )
    assert user.telegram_id == 42
    assert user.google_id is None
    assert user.email is None
    assert user.username == "ada"
    assert user.additional_fields == {}
    assert user.created_at == user.updated_at
    assert await _user_count(database) == 1


@pytest.mark.asyncio
async def test_same_telegram_id_resolves_to_same_user_and_overwrites(database, resolver) -> None:
    first = await resolver.resolve(
        "telegram",
        "42",
        ExternalProfile(first_name="Ada", last_name="Lovelace", username="ada", photo_url="p1"),
    )
    first_updated_at = first.updated_at

    second = await resolver.resolve("telegram", "42", ExternalProfile(first_name="Augusta"))

    assert second.id == first.id
    assert second.first_name == "Augusta"
    # 무조건 덮어쓰기: 새 페이로드에 없는 필드는 NULL
    assert second.last_name is None
    assert second.username is None
    assert second.photo_url is None
    assert second.updated_at > first_updated_at
    assert await _user_count(database) == 1


@pytest.mark.asyncio
async def test_telegram_login_does_not_touch_email(database, resolver) -> None:
    user = await resolver.resolve("telegram", "7", ExternalProfile(first_name="Ada"))
    async with database.transaction() as session:
        row = await user_repository.get_by_id(session, user.id)
        row.email = "kept@example.com"

    again = await resolver.resolve(
        "telegram", "7", ExternalProfile(first_name="Ada", email="ignored@example.com")
    )
    assert again.email == "kept@example.com"


@pytest.mark.asyncio
async def test_new_google_identity_synthesizes_username(resolver) -> None:
    claims = GoogleUserClaims(
        sub="g-1", email="ada.lovelace@example.com", name="Ada Lovelace", given_name="Ada"
    )
    user = await resolver.resolve("google", "g-1", profile_from_google(claims))
    assert user.google_id == "g-1"
    assert user.telegram_id is None
    assert user.username == "ada.lovelace"
    assert user.first_name == "Ada"
    assert user.email == "ada.lovelace@example.com"


@pytest.mark.asyncio
async def test_google_relogin_overwrites_email_but_keeps_username(resolver) -> None:
    first = await resolver.resolve(
        "google", "g-1", ExternalProfile(first_name="Ada", email="ada@example.com")
    )
    second = await resolver.resolve(
        "google",
        "g-1",
        ExternalProfile(first_name="Ada", email="countess@example.com", photo_url="p2"),
    )
    assert second.id == first.id
    assert second.email == "countess@example.com"
    assert second.photo_url == "p2"
    assert second.username == "ada"


@pytest.mark.asyncio
async def test_providers_do_not_cross_link(database, resolver) -> None:
    """같은 이메일이어도 provider가 다르면 별개 유저(계정 연결 미구현)."""
    tg = await resolver.resolve("telegram", "42", ExternalProfile(first_name="Ada"))
    google = await resolver.resolve(
        "google", "g-1", ExternalProfile(first_name="Ada", email="ada@example.com")
    )
    assert tg.id != google.id
    assert await _user_count(database) == 2


@pytest.mark.asyncio
async def test_concurrent_insert_becomes_conflict(database, resolver, monkeypatch) -> None:
    """조회 시점엔 없었지만 INSERT 시점엔 다른 요청이 먼저 생성한 경우."""
    await resolver.resolve("telegram", "42", ExternalProfile(first_name="Ada"))

    async def _not_found(*args, **kwargs):
        return None

    monkeypatch.setattr(user_repository, "get_by_provider_key", _not_found)
    with pytest.raises(IdentityConflictError):
        await resolver.resolve("telegram", "42", ExternalProfile(first_name="Ada"))
    assert await _user_count(database) == 1


@pytest.mark.parametrize(
    ("email", "expected"),
    [
        ("ada@example.com", "ada"),
        ("first.last+tag@example.com", "first.last+tag"),
        ("@example.com", None),
        ("no-at-sign", None),
        (None, None),
    ],
)
def test_username_from_email(email, expected) -> None:
    assert username_from_email(email) == expected
