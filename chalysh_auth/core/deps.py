"""FastAPI 의존성. lifespan에서 만든 AppContext·AuthService 주입."""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chalysh_auth.core.context import AppContext
from chalysh_auth.services.auth_service import AuthService


def get_app_context(request: Request) -> AppContext:
    """앱 lifespan에서 생성한 AppContext. DATABASE_URL 미설정으로 초기화 안 됐으면 503."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return context


def get_auth_service(request: Request) -> AuthService:
    """앱 lifespan에서 생성한 AuthService 싱글톤."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


async def get_db(
    context: AppContext = Depends(get_app_context),
) -> AsyncGenerator[AsyncSession, None]:
    """읽기 전용 세션. 트랜잭션 경계는 서비스 레이어의 transaction()에서만 제어."""
    async for session in context.database.session():
        yield session
