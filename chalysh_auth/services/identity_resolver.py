"""
검증된 외부 신원 → 로컬 User find-or-create.
provider를 미러 필드의 진실 공급원으로 보고, 로그인마다 무조건 덮어쓴다(merge 아님).
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from chalysh_auth.core.database import Database
from chalysh_auth.models.user import User
from chalysh_auth.repositories import user_repository
from chalysh_auth.repositories.user_repository import Provider
from chalysh_auth.schemas.auth import GoogleUserClaims, TelegramAuthPayload
from chalysh_auth.schemas.user import ExternalProfile
from chalysh_auth.services.errors import IdentityConflictError

logger = logging.getLogger(__name__)

# provider별 덮어쓰는 프로필 필드. Telegram은 email을, Google은 username을 건드리지 않음.
MIRRORED_FIELDS: dict[str, tuple[str, ...]] = {
    "telegram": ("first_name", "last_name", "username", "photo_url"),
    "google": ("email", "first_name", "last_name", "photo_url"),
}


def profile_from_telegram(payload: TelegramAuthPayload) -> ExternalProfile:
    return ExternalProfile(
        first_name=payload.first_name,
        last_name=payload.last_name,
        username=payload.username,
        photo_url=payload.photo_url,
    )


def profile_from_google(claims: GoogleUserClaims) -> ExternalProfile:
    return ExternalProfile(
        email=claims.email,
        first_name=claims.given_name or claims.name,
        last_name=claims.family_name,
        photo_url=claims.picture,
    )


def username_from_email(email: str | None) -> str | None:
    """이메일 로컬 파트로 username 합성. "ada@example.com" → "ada"."""
    if not email or "@" not in email:
        return None
    local = email.split("@", 1)[0].strip()
    return local or None


class IdentityResolver:
    """resolve는 외부 신원 기준 멱등. 조회→쓰기를 한 트랜잭션으로 실행."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def resolve(
        self, provider: Provider, provider_user_id: str, profile: ExternalProfile
    ) -> User:
        """
        존재 시 미러 필드 덮어쓰기 + updated_at 갱신, 없으면 INSERT.
        동시 최초 로그인으로 unique 제약 위반 시 중복 생성 대신 IdentityConflictError.
        """
        fields = {name: getattr(profile, name) for name in MIRRORED_FIELDS[provider]}
        try:
            async with self._database.transaction() as session:
                user = await user_repository.get_by_provider_key(
                    session, provider, provider_user_id
                )
                if user is not None:
                    return await user_repository.update_profile(session, user, fields)

                create_fields: dict[str, Any] = dict(fields)
                if "username" not in create_fields:
                    create_fields["username"] = profile.username or username_from_email(
                        profile.email
                    )
                user = await user_repository.create_user(
                    session, provider, provider_user_id, create_fields
                )
                logger.info("Created user %s via %s", user.id, provider)
                return user
        except IntegrityError as e:
            logger.warning(
                "Identity conflict on %s id=%s: %s", provider, provider_user_id, e.orig
            )
            raise IdentityConflictError(
                f"Concurrent creation of {provider} identity {provider_user_id}"
            ) from e
