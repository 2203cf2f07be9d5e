"""
Refresh 토큰 수명 주기. absent → active → expired → revoked(삭제).
클라이언트에는 UUID 평문, DB에는 SHA-256 해시만 저장.
"""

import hashlib
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from chalysh_auth.core.database import Database
from chalysh_auth.repositories import refresh_token_repository

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_TTL = timedelta(days=30)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


@dataclass(frozen=True)
class RotatedRefreshToken:
    user_id: str
    token: str


class RefreshTokenStore:
    """모든 연산은 Database.transaction() 안에서 실행. 상위 트랜잭션이 있으면 그 세션을 공유."""

    def __init__(self, database: Database, ttl: timedelta = DEFAULT_REFRESH_TTL) -> None:
        self._database = database
        self.ttl = ttl

    async def issue(self, user_id: str) -> str:
        """랜덤 UUID 발급 후 해시 저장. expires_at = now + ttl."""
        token = str(uuid.uuid4())
        expires_at = datetime.now(UTC) + self.ttl
        async with self._database.transaction() as session:
            await refresh_token_repository.insert_token(
                session, user_id, hash_token(token), expires_at
            )
        return token

    async def validate(self, token: str) -> str | None:
        """
        유효하면 user_id, 아니면 None.
        미발급·만료·로테이션됨을 구분하지 않음(토큰 탐색 시 정보 노출 방지).
        """
        async with self._database.transaction() as session:
            row = await refresh_token_repository.get_active_by_hash(
                session, hash_token(token), datetime.now(UTC)
            )
            return row.user_id if row is not None else None

    async def consume(self, token: str) -> str | None:
        """활성 토큰을 삭제하며 user_id 반환. 동시 호출 중 하나만 성공."""
        async with self._database.transaction() as session:
            return await refresh_token_repository.delete_active_by_hash(
                session, hash_token(token), datetime.now(UTC)
            )

    async def rotate(self, token: str) -> RotatedRefreshToken | None:
        """사용 시 교체. 기존 토큰 삭제 + 같은 유저로 새 토큰 발급을 한 트랜잭션으로."""
        async with self._database.transaction():
            user_id = await self.consume(token)
            if user_id is None:
                return None
            new_token = await self.issue(user_id)
        return RotatedRefreshToken(user_id=user_id, token=new_token)

    async def revoke(self, token: str) -> None:
        """멱등 삭제. 없는 토큰이어도 no-op."""
        async with self._database.transaction() as session:
            await refresh_token_repository.delete_by_hash(session, hash_token(token))

    async def revoke_all(self, user_id: str) -> int:
        """계정 전체 무효화(모든 기기 로그아웃). 삭제 개수 반환."""
        async with self._database.transaction() as session:
            deleted = await refresh_token_repository.delete_by_user(session, user_id)
        logger.info("Revoked %d refresh tokens for user %s", deleted, user_id)
        return deleted
