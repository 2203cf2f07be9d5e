"""User 관련 Pydantic 스키마."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from chalysh_auth.models.user import User


class ExternalProfile(BaseModel):
    """provider 페이로드에서 뽑은 미러 대상 프로필."""

    email: str | None = None
    first_name: str
    last_name: str | None = None
    username: str | None = None
    photo_url: str | None = None


class UserPublic(BaseModel):
    """로그인 응답에 실리는 공개 유저 정보. telegramId는 문자열로 노출."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    telegram_id: str | None = None
    google_id: str | None = None
    email: str | None = None
    first_name: str
    last_name: str | None = None
    username: str | None = None
    photo_url: str | None = None

    @classmethod
    def from_user(cls, user: User) -> UserPublic:
        return cls(**_public_fields(user))


class UserProfileResponse(UserPublic):
    """GET /api/user/me 응답."""

    additional_fields: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserProfileResponse:
        return cls(
            **_public_fields(user),
            additional_fields=dict(user.additional_fields or {}),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


def _public_fields(user: User) -> dict:
    return {
        "id": user.id,
        "telegram_id": str(user.telegram_id) if user.telegram_id is not None else None,
        "google_id": user.google_id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "username": user.username,
        "photo_url": user.photo_url,
    }
