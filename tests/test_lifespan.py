"""lifespan 자원 정리 테스트. 시작 실패 시에도 HTTP 클라이언트·엔진을 닫는다."""

import httpx
import pytest

from chalysh_auth import main
from chalysh_auth.core.database import Database


@pytest.fixture
def created_clients(monkeypatch) -> list[httpx.AsyncClient]:
    clients: list[httpx.AsyncClient] = []

    class RecordingClient(httpx.AsyncClient):
        def __init__(self, *args, **kwargs) -> None:
            super().__init__(*args, **kwargs)
            clients.append(self)

    monkeypatch.setattr(main.httpx, "AsyncClient", RecordingClient)
    return clients


@pytest.mark.asyncio
async def test_startup_failure_closes_http_client(settings, created_clients, monkeypatch) -> None:
    disposed = []

    async def _fail(self, retries, interval):
        raise RuntimeError("Database connection failed")

    async def _dispose(self):
        disposed.append(self)

    monkeypatch.setattr(Database, "verify_connection", _fail)
    monkeypatch.setattr(Database, "dispose", _dispose)
    app = main.create_app(settings)

    with pytest.raises(RuntimeError):
        async with main.lifespan(app):
            pass

    assert len(created_clients) == 1
    assert created_clients[0].is_closed
    assert len(disposed) == 1


@pytest.mark.asyncio
async def test_shutdown_closes_http_client(settings, created_clients) -> None:
    app = main.create_app(settings)

    async with main.lifespan(app):
        assert app.state.auth_service is not None
        assert not created_clients[0].is_closed

    assert created_clients[0].is_closed
