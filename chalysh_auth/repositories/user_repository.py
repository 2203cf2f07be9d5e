"""User Repository. DB 쿼리만 수행."""

from datetime import UTC, datetime
from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chalysh_auth.models.user import User

Provider = Literal["telegram", "google"]


async def get_by_id(session: AsyncSession, user_id: str) -> User | None:
    """id로 유저 조회."""
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalars().one_or_none()


async def get_by_provider_key(
    session: AsyncSession, provider: Provider, provider_user_id: str
) -> User | None:
    """provider별 고유 키(telegram_id / google_id)로 유저 조회."""
    if provider == "telegram":
        condition = User.telegram_id == int(provider_user_id)
    else:
        condition = User.google_id == provider_user_id
    result = await session.execute(select(User).where(condition))
    return result.scalars().one_or_none()


async def create_user(
    session: AsyncSession,
    provider: Provider,
    provider_user_id: str,
    fields: dict[str, Any],
) -> User:
    """
    provider 키 하나만 채워 INSERT. flush로 unique 제약을 즉시 확인(IntegrityError 전파).
    다른 provider 키는 NULL로 둔다.
    """
    now = datetime.now(UTC)
    user = User(
        telegram_id=int(provider_user_id) if provider == "telegram" else None,
        google_id=provider_user_id if provider == "google" else None,
        additional_fields={},
        created_at=now,
        updated_at=now,
        **fields,
    )
    session.add(user)
    await session.flush()
    return user


async def update_profile(
    session: AsyncSession, user: User, fields: dict[str, Any]
) -> User:
    """미러 필드 덮어쓰기 + updated_at 갱신."""
    for name, value in fields.items():
        setattr(user, name, value)
    user.updated_at = datetime.now(UTC)
    await session.flush()
    return user
