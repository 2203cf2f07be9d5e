"""앱 수명 주기 객체 묶음. lifespan에서 한 번 생성해 각 컴포넌트 생성자에 전달."""

from dataclasses import dataclass

import httpx

from chalysh_auth.core.config import Settings
from chalysh_auth.core.database import Database


@dataclass
class AppContext:
    settings: Settings
    database: Database
    http_client: httpx.AsyncClient
