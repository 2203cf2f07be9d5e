"""Access JWT 발급·검증. 클레임 구성은 유저 연결 상태별 태그 타입으로 강제."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Union

import jwt

from chalysh_auth.models.user import User
from chalysh_auth.services.errors import ExpiredCredentialError, InvalidProofError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_ACCESS_TTL = timedelta(minutes=15)


@dataclass(frozen=True)
class TelegramSubject:
    user_id: str
    telegram_id: str

    def claims(self) -> dict[str, str]:
        return {"sub": self.user_id, "telegramId": self.telegram_id}


@dataclass(frozen=True)
class GoogleSubject:
    user_id: str
    google_id: str

    def claims(self) -> dict[str, str]:
        return {"sub": self.user_id, "googleId": self.google_id}


@dataclass(frozen=True)
class LinkedSubject:
    user_id: str
    telegram_id: str
    google_id: str

    def claims(self) -> dict[str, str]:
        return {
            "sub": self.user_id,
            "telegramId": self.telegram_id,
            "googleId": self.google_id,
        }


AccessSubject = Union[TelegramSubject, GoogleSubject, LinkedSubject]


def subject_for_user(user: User) -> AccessSubject:
    """유저의 현재 provider 연결 상태로 subject 생성. 연결이 하나도 없으면 ValueError."""
    telegram_id = str(user.telegram_id) if user.telegram_id is not None else None
    if telegram_id is not None and user.google_id is not None:
        return LinkedSubject(user.id, telegram_id, user.google_id)
    if telegram_id is not None:
        return TelegramSubject(user.id, telegram_id)
    if user.google_id is not None:
        return GoogleSubject(user.id, user.google_id)
    raise ValueError(f"User {user.id} has no linked provider identity")


class TokenIssuer:
    """JWT_SECRET으로 서명하는 HS256 Access 토큰. 서버에 저장하지 않음."""

    def __init__(self, secret: str, default_ttl: timedelta = DEFAULT_ACCESS_TTL) -> None:
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self.default_ttl = default_ttl

    def issue_access_token(self, subject: AccessSubject, ttl: timedelta | None = None) -> str:
        """subject 클레임 + type/jti/iat/exp. jti는 추후 Blocklist 연동용."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            **subject.claims(),
            "type": "access",
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + (ttl if ttl is not None else self.default_ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def decode_access_token(self, encoded: str) -> dict[str, Any]:
        """경계 레이어(보호된 요청)용 검증. 서명·만료·type=access 확인."""
        try:
            payload = jwt.decode(
                encoded,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredCredentialError("Access token expired") from e
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid access token: %s", e)
            raise InvalidProofError("Invalid access token") from e
        if payload.get("type") != "access":
            raise InvalidProofError("Invalid token type")
        return payload
