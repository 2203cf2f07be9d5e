"""Health check 엔드포인트. DB는 AppContext의 세션 팩토리 재사용."""

import asyncio

from fastapi import APIRouter, Request
from sqlalchemy import text

router = APIRouter(tags=["health"])

HEALTH_DB_TIMEOUT = 2.0


async def _check_db(request: Request) -> str:
    """DB 연결 상태. SELECT 1 실행. 'ok' 또는 'error'. DB 미초기화 시 'error'."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        return "error"
    try:
        async with context.database.session_maker() as session:
            await asyncio.wait_for(session.execute(text("SELECT 1")), timeout=HEALTH_DB_TIMEOUT)
        return "ok"
    except Exception:
        return "error"


@router.get("/health")
@router.get("/api/health")
async def get_health(request: Request) -> dict[str, str]:
    """헬스 체크. status: ok | degraded."""
    db_status = await _check_db(request)
    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
    }
