"""비동기 DB 연결 및 세션 관리. SQLAlchemy 2.0 + asyncpg(PostgreSQL) / aiosqlite(SQLite)."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def async_database_url(url: str) -> str:
    """스킴만 비동기 드라이버로 안전하게 변환. SQLAlchemy make_url 사용."""
    parsed = make_url(url.strip())
    backend = parsed.get_backend_name()
    if backend == "postgresql":
        parsed = parsed.set(drivername="postgresql+asyncpg")
    elif backend == "sqlite":
        parsed = parsed.set(drivername="sqlite+aiosqlite")
    return parsed.render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # refresh_tokens.user_id ON DELETE CASCADE 동작 조건.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """엔진·세션 팩토리·트랜잭션 경계. lifespan에서 한 번 생성해 AppContext로 전달."""

    def __init__(self, url: str, *, command_timeout: float = 10.0, echo: bool = False) -> None:
        async_url = make_url(async_database_url(url))
        kwargs: dict[str, Any] = {"echo": echo}
        if async_url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"timeout": command_timeout}
            if async_url.database in (None, "", ":memory:"):
                # 인메모리 DB는 커넥션 하나를 공유해야 테이블이 유지됨.
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["connect_args"] = {"command_timeout": command_timeout}
            kwargs["pool_pre_ping"] = True

        self.engine: AsyncEngine = create_async_engine(async_url, **kwargs)
        if async_url.get_backend_name() == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        # 동일 컨텍스트 내 세션 전파. transaction() 진입 시 set, finally에서 reset(token)으로 누수 방지.
        self._session_context: ContextVar[AsyncSession | None] = ContextVar(
            f"session_context_{id(self)}", default=None
        )

    async def verify_connection(self, retries: int = 5, interval: float = 2.0) -> None:
        """
        DB 연결 검증. 실패 시 재시도 후 예외 전파.
        컨테이너 환경에서 DB가 일시적으로 준비 안 된 경우 대비.
        """
        last_exc: Exception | None = None
        retries = max(1, retries)
        interval = max(0.5, interval)

        for attempt in range(1, retries + 1):
            try:
                async with self.session_maker() as session:
                    await session.execute(text("SELECT 1"))
                return
            except Exception as exc:
                last_exc = exc
                if attempt < retries:
                    logger.warning(
                        "Database connection attempt %d/%d failed: %s. Retrying in %.1fs...",
                        attempt,
                        retries,
                        exc,
                        interval,
                    )
                    await asyncio.sleep(interval)

        logger.critical(
            "Database connection failed after %d attempts: %s. Aborting startup.",
            retries,
            last_exc,
            exc_info=True,
        )
        raise RuntimeError(
            "Database connection failed after %d attempts: %s" % (retries, last_exc)
        ) from last_exc

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """읽기 전용/단일 쿼리용 세션 생성기. 트랜잭션 경계는 transaction()에서만 제어한다."""
        async with self.session_maker() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        서비스 레이어용 트랜잭션 컨텍스트 매니저. 성공 시 commit, 예외 시 rollback.
        동일 컨텍스트 내 중첩 호출 시 ContextVar로 세션 공유(하나의 트랜잭션).
        """
        existing = self._session_context.get()
        if existing is not None:
            # 상위에서 이미 열린 트랜잭션 재사용. commit/rollback은 최외곽에서만.
            yield existing
            return

        session: AsyncSession | None = None
        token: Any = None
        try:
            session = self.session_maker()
            token = self._session_context.set(session)
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        finally:
            if token is not None:
                self._session_context.reset(token)
            if session is not None:
                await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()
