"""Pytest fixtures. 서비스 테스트는 인메모리 SQLite(aiosqlite), 구글 tokeninfo는 httpx.MockTransport."""

import os
import time
from collections.abc import Callable
from typing import Any

import httpx
import pytest

# main 임포트 시 DB 없이 부팅 가능하도록 빈 문자열. Settings Fail-fast 대비 필수 env 설정.
if not os.environ.get("DATABASE_URL"):
    os.environ["DATABASE_URL"] = ""
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-pytest")

from fastapi.testclient import TestClient  # noqa: E402

from chalysh_auth.core.config import Settings  # noqa: E402
from chalysh_auth.core.context import AppContext  # noqa: E402
from chalysh_auth.core.database import Database  # noqa: E402
from chalysh_auth.models import Base  # noqa: E402
from chalysh_auth.services.auth_service import AuthService  # noqa: E402
from chalysh_auth.services.telegram_auth import compute_telegram_hash  # noqa: E402

BOT_TOKEN = "s3cr3t"
GOOGLE_CLIENT_ID = "test-google-client-id.apps.googleusercontent.com"
JWT_SECRET = "test-jwt-secret-for-pytest-0123456789abcdef"


@pytest.fixture
def client() -> TestClient:
    """FastAPI TestClient. DB 없이 /health 등 테스트용."""
    from chalysh_auth.main import app
    return TestClient(app)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret=JWT_SECRET,
        telegram_bot_token=BOT_TOKEN,
        google_client_id=GOOGLE_CLIENT_ID,
        database_url="sqlite+aiosqlite://",
    )


@pytest.fixture
async def database():
    """테스트마다 새 인메모리 DB. 스키마는 metadata.create_all."""
    db = Database("sqlite+aiosqlite://")
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
def make_telegram_payload() -> Callable[..., dict[str, Any]]:
    """bot token으로 서명된 위젯 페이로드 생성. auth_date 기본값은 현재 시각."""

    def _make(bot_token: str = BOT_TOKEN, **fields: Any) -> dict[str, Any]:
        data: dict[str, Any] = {"id": 42, "first_name": "Ada", "auth_date": int(time.time())}
        data.update(fields)
        data["hash"] = compute_telegram_hash(data, bot_token)
        return data

    return _make


class TokenInfoStub:
    """tokeninfo 응답 조작용. 테스트에서 status/body/exc를 바꿔 씀."""

    def __init__(self) -> None:
        self.status_code = 200
        self.body: dict[str, Any] = {
            "aud": GOOGLE_CLIENT_ID,
            "sub": "google-sub-1",
            "email": "ada.lovelace@example.com",
            "name": "Ada Lovelace",
            "given_name": "Ada",
            "family_name": "Lovelace",
            "picture": "https://example.com/ada.png",
            "exp": str(int(time.time()) + 3600),
        }
        self.exc: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def tokeninfo() -> TokenInfoStub:
    return TokenInfoStub()


@pytest.fixture
async def http_client(tokeninfo: TokenInfoStub):
    async with httpx.AsyncClient(transport=httpx.MockTransport(tokeninfo.handler)) as c:
        yield c


@pytest.fixture
def app_context(settings: Settings, database: Database, http_client: httpx.AsyncClient) -> AppContext:
    return AppContext(settings=settings, database=database, http_client=http_client)


@pytest.fixture
def auth_service(app_context: AppContext) -> AuthService:
    return AuthService(app_context)
