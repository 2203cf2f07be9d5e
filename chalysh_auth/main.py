"""FastAPI 앱 진입점. chalysh_auth.main:app"""

import asyncio
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chalysh_auth.api import health
from chalysh_auth.api.v1 import auth as v1_auth
from chalysh_auth.api.v1 import user as v1_user
from chalysh_auth.core.config import Settings, get_settings
from chalysh_auth.core.context import AppContext
from chalysh_auth.core.database import Database
from chalysh_auth.services.auth_service import AuthService

logger = logging.getLogger(__name__)


def _init_sentry(settings: Settings) -> None:
    """SENTRY_DSN이 있으면 Sentry 초기화. environment는 설정에서 로드(스테이징/로컬 구분)."""
    if settings.sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn.get_secret_value(),
            integrations=[
                FastApiIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            ],
            traces_sample_rate=0.1,
            environment=settings.environment,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 수명 주기: DB, HTTP 클라이언트(싱글톤), AppContext·AuthService 구성."""
    settings: Settings = app.state.settings
    http_client = httpx.AsyncClient(timeout=settings.google_http_timeout_sec)
    database: Database | None = None
    try:
        if settings.database_url:
            database = Database(
                settings.database_url, command_timeout=settings.db_command_timeout_sec
            )
            await database.verify_connection(
                settings.db_connect_retries, settings.db_connect_retry_interval_sec
            )
            context = AppContext(settings=settings, database=database, http_client=http_client)
            app.state.context = context
            app.state.auth_service = AuthService(context)
        else:
            logger.warning("DATABASE_URL not set. Auth features disabled.")
        yield
    finally:
        await http_client.aclose()
        if database is not None:
            await database.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    _init_sentry(settings)

    app = FastAPI(
        title="ChalyshAuth API",
        description="Telegram·Google 로그인, JWT Access + Refresh 로테이션",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(health.router)
    app.include_router(v1_auth.router, prefix="/api")
    app.include_router(v1_user.router, prefix="/api")

    allowed_origins = [
        o.strip() for o in settings.allowed_origins.split(",") if o.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(httpx.HTTPError)
    async def httpx_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
        """외부 HTTP 클라이언트(구글 tokeninfo 등) 지연/타임아웃 시 503. 500 전파 방지."""
        logger.warning("External HTTP error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"detail": "Service temporarily unavailable"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """비즈니스 예외(HTTPException) → 그대로 반환. 그 외 → 500 + 로그."""
        if isinstance(exc, asyncio.CancelledError):
            raise exc  # 정상 연결 종료, 500 로그 방지
        if isinstance(exc, HTTPException):
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail},
                headers=exc.headers,
            )
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
