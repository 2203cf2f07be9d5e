"""환경 변수 기반 설정. pydantic-settings 사용."""

import re
from datetime import timedelta
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_DURATION_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_duration(value: str) -> timedelta:
    """"15m", "30d", "1h", "45s" 형식 문자열을 timedelta로 변환. 형식 오류 시 ValueError."""
    match = _DURATION_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid duration format: {value!r} (expected e.g. 15m, 30d)")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


class Settings(BaseSettings):
    """앱 설정. 환경변수에서 로드. 시크릿은 SecretStr로 마스킹, JWT 시크릿은 기본값 없음(Fail-fast)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    sentry_dsn: SecretStr | None = None
    environment: str = "development"  # Sentry/로깅용. production, staging, development 등.

    # DB. postgresql:// → asyncpg, sqlite:// → aiosqlite 로 변환해 사용.
    database_url: str | None = None
    db_connect_retries: int = Field(5, ge=1, le=20)  # 연결 실패 시 재시도 횟수.
    db_connect_retry_interval_sec: float = Field(2.0, ge=0.5, le=60.0)  # 재시도 간격(초).
    db_command_timeout_sec: float = Field(10.0, ge=1.0, le=120.0)  # 쿼리 1건 최대 대기(초).

    # JWT (필수: 기본값 없음 → 부팅 시점 Fail-fast)
    jwt_secret: SecretStr
    access_token_expires_in: str = "15m"
    refresh_token_expires_in: str = "30d"

    # Provider. 비어 있으면 해당 provider 로그인만 NotConfigured로 실패.
    telegram_bot_token: SecretStr = SecretStr("")
    telegram_auth_max_age_seconds: int = Field(86400, ge=60, le=7 * 86400)
    google_client_id: str = ""
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"
    google_http_timeout_sec: float = Field(5.0, ge=0.5, le=60.0)

    # CORS. 쉼표 구분.
    allowed_origins: str = ""

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_min_length(cls, v: SecretStr) -> SecretStr:
        if len(v.get_secret_value()) < 16:
            raise ValueError("JWT_SECRET must be at least 16 characters")
        return v

    @field_validator("access_token_expires_in", "refresh_token_expires_in")
    @classmethod
    def duration_format(cls, v: str) -> str:
        parse_duration(v)
        return v.strip()

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.access_token_expires_in)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.refresh_token_expires_in)

    @model_validator(mode="after")
    def fail_fast_production(self: "Settings") -> "Settings":
        """프로덕션 환경 시 필수 변수 누락이면 부팅 거부(Fail-Fast)."""
        if (self.environment or "").strip().lower() != "production":
            return self
        missing: list[str] = []
        if not (self.database_url or "").strip():
            missing.append("DATABASE_URL")
        if not (self.telegram_bot_token.get_secret_value() or "").strip() and not (
            self.google_client_id or ""
        ).strip():
            missing.append("TELEGRAM_BOT_TOKEN or GOOGLE_CLIENT_ID")
        if missing:
            raise ValueError(
                f"Production environment requires these variables to be set: {', '.join(missing)}. "
                "Set them in Secret Manager or environment before boot."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """앱 진입점(main)에서 한 번 로드. 서비스에는 AppContext로 전달."""
    return Settings()
