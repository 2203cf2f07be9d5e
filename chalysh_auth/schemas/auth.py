"""Auth·JWT 관련 Pydantic 스키마. extra='forbid'로 페이로드 오염 방지. 응답은 camelCase."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chalysh_auth.schemas.user import UserPublic

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


class TelegramAuthPayload(BaseModel):
    """Telegram Login Widget 콜백 데이터. hash 외 필드는 모두 서명 대상."""

    model_config = ConfigDict(extra="forbid")

    id: int
    first_name: str = Field(..., max_length=256)
    last_name: str | None = Field(None, max_length=256)
    username: str | None = Field(None, max_length=256)
    photo_url: str | None = Field(None, max_length=2048)
    auth_date: int
    hash: str = Field(..., min_length=1, max_length=128)


class GoogleAuthPayload(BaseModel):
    """구글 ID token 로그인 요청. body: {"idToken": "..."}"""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    id_token: str = Field(..., min_length=1, max_length=8192)


class RefreshTokenPayload(BaseModel):
    """Refresh/로그아웃 요청. body: {"refreshToken": "<uuid>"}"""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    refresh_token: str = Field(..., pattern=UUID_PATTERN)


class GoogleTokenInfo(BaseModel):
    """tokeninfo 응답. 숫자 필드도 문자열로 오므로 exp는 이후 직접 파싱."""

    model_config = ConfigDict(extra="ignore")

    aud: str
    sub: str = Field(..., min_length=1)
    email: str | None = None
    name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None
    exp: str | int | None = None


class GoogleUserClaims(BaseModel):
    """검증 완료된 구글 유저 정보."""

    sub: str
    email: str | None = None
    name: str
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None


class TokenPairResponse(BaseModel):
    """Access + Refresh 토큰 쌍."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    refresh_token: str


class AuthResponse(TokenPairResponse):
    """로그인 응답. 토큰 쌍 + 공개 유저 정보."""

    user: UserPublic
