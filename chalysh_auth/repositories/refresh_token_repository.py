"""RefreshToken Repository. DB 쿼리만 수행. 토큰은 해시 값으로만 다룸."""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chalysh_auth.models.refresh_token import RefreshToken


async def insert_token(
    session: AsyncSession, user_id: str, token_hash: str, expires_at: datetime
) -> RefreshToken:
    row = RefreshToken(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        created_at=datetime.now(UTC),
    )
    session.add(row)
    await session.flush()
    return row


async def get_active_by_hash(
    session: AsyncSession, token_hash: str, now: datetime
) -> RefreshToken | None:
    """해시 일치 + expires_at > now 인 row."""
    result = await session.execute(
        select(RefreshToken).where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.expires_at > now,
        )
    )
    return result.scalars().one_or_none()


async def delete_active_by_hash(
    session: AsyncSession, token_hash: str, now: datetime
) -> str | None:
    """
    DELETE ... WHERE token_hash AND expires_at > now RETURNING user_id.
    단일 문장이라 동시 로테이션 중 하나만 user_id를 받는다.
    """
    result = await session.execute(
        delete(RefreshToken)
        .where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.expires_at > now,
        )
        .returning(RefreshToken.user_id)
        .execution_options(synchronize_session=False)
    )
    return result.scalars().one_or_none()


async def delete_by_hash(session: AsyncSession, token_hash: str) -> int:
    result = await session.execute(
        delete(RefreshToken)
        .where(RefreshToken.token_hash == token_hash)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def delete_by_user(session: AsyncSession, user_id: str) -> int:
    """해당 유저의 Refresh 토큰 전부 삭제. 삭제된 개수 반환."""
    result = await session.execute(
        delete(RefreshToken)
        .where(RefreshToken.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
