"""Auth Service. provider 증명 검증 → User upsert → Access JWT + Refresh 토큰 발급·로테이션."""

import logging

from chalysh_auth.core.context import AppContext
from chalysh_auth.models.user import User
from chalysh_auth.repositories import user_repository
from chalysh_auth.repositories.user_repository import Provider
from chalysh_auth.schemas.auth import AuthResponse, TelegramAuthPayload, TokenPairResponse
from chalysh_auth.schemas.user import ExternalProfile, UserPublic
from chalysh_auth.services.errors import (
    ExpiredCredentialError,
    IdentityConflictError,
    InvalidCredentialsError,
    InvalidProofError,
    NotConfiguredError,
    UserNotFoundError,
)
from chalysh_auth.services.google_auth import GoogleIdTokenVerifier
from chalysh_auth.services.identity_resolver import (
    IdentityResolver,
    profile_from_google,
    profile_from_telegram,
)
from chalysh_auth.services.refresh_token_store import RefreshTokenStore
from chalysh_auth.services.telegram_auth import verify_telegram_auth
from chalysh_auth.services.token_issuer import TokenIssuer, subject_for_user

logger = logging.getLogger(__name__)

# 호출자에게는 하나의 "인증 실패"로 축약. UpstreamUnavailable·IdentityConflict는 그대로 전파.
COLLAPSED_ERRORS = (
    InvalidProofError,
    ExpiredCredentialError,
    NotConfiguredError,
    UserNotFoundError,
)


class AuthService:
    """
    로그인(Telegram/Google)·refresh·logout. 요청마다 고정 순서, 재시도 없음.
    예외: 동시 최초 로그인 충돌 시 resolve 1회 재시도.
    """

    def __init__(self, context: AppContext) -> None:
        settings = context.settings
        self._database = context.database
        self._telegram_bot_token = settings.telegram_bot_token.get_secret_value()
        self._telegram_max_age = settings.telegram_auth_max_age_seconds
        self.google_verifier = GoogleIdTokenVerifier(
            settings.google_client_id,
            context.http_client,
            tokeninfo_url=settings.google_tokeninfo_url,
            timeout=settings.google_http_timeout_sec,
        )
        self.identity_resolver = IdentityResolver(context.database)
        self.token_issuer = TokenIssuer(
            settings.jwt_secret.get_secret_value(), settings.access_token_ttl
        )
        self.refresh_tokens = RefreshTokenStore(context.database, settings.refresh_token_ttl)

    async def login_via_telegram(self, payload: TelegramAuthPayload) -> AuthResponse:
        """
        1. TELEGRAM_BOT_TOKEN 미설정 → 인증 실패(NotConfigured 로그)
        2. 위젯 hash·auth_date 검증
        3. telegram_id로 User upsert, 토큰 쌍 발급
        """
        try:
            if not self._telegram_bot_token:
                raise NotConfiguredError(
                    "Telegram authentication is not configured (TELEGRAM_BOT_TOKEN is missing)"
                )
            if not verify_telegram_auth(
                payload.model_dump(), self._telegram_bot_token, self._telegram_max_age
            ):
                raise InvalidProofError("Invalid Telegram authentication data")
        except COLLAPSED_ERRORS as e:
            logger.warning("Telegram login rejected (%s): %s", type(e).__name__, e)
            raise InvalidCredentialsError() from e

        user = await self._resolve(
            "telegram", str(payload.id), profile_from_telegram(payload)
        )
        return await self._auth_response(user)

    async def login_via_google(self, id_token: str) -> AuthResponse:
        """구글 ID token 검증 → google_id(sub)로 User upsert → 토큰 쌍 발급."""
        try:
            claims = await self.google_verifier.verify(id_token)
        except COLLAPSED_ERRORS as e:
            logger.warning("Google login rejected (%s): %s", type(e).__name__, e)
            raise InvalidCredentialsError() from e

        user = await self._resolve("google", claims.sub, profile_from_google(claims))
        return await self._auth_response(user)

    async def refresh(self, old_refresh_token: str) -> TokenPairResponse:
        """
        기존 Refresh 토큰 소비(삭제) → 소유 유저 조회 → 새 쌍 발급. 한 트랜잭션.
        유저가 사라진 토큰은 예외로 죽지 않고 인증 실패로 처리.
        Access 클레임은 유저의 현재 provider 연결 상태를 반영.
        """
        async with self._database.transaction() as session:
            user_id = await self.refresh_tokens.consume(old_refresh_token)
            user = await user_repository.get_by_id(session, user_id) if user_id else None
            new_refresh = await self.refresh_tokens.issue(user.id) if user else None

        if user_id is None:
            logger.info("Refresh rejected: unknown, expired or already rotated token")
            raise InvalidCredentialsError()
        if user is None or new_refresh is None:
            e = UserNotFoundError(f"Refresh token owner {user_id} no longer exists")
            logger.warning("Refresh rejected (%s): %s", type(e).__name__, e)
            raise InvalidCredentialsError() from e

        access_token = self.token_issuer.issue_access_token(subject_for_user(user))
        return TokenPairResponse(access_token=access_token, refresh_token=new_refresh)

    async def logout(self, refresh_token: str) -> None:
        """Refresh 토큰 삭제. 없는 토큰이어도 성공."""
        await self.refresh_tokens.revoke(refresh_token)

    async def _resolve(
        self, provider: Provider, provider_user_id: str, profile: ExternalProfile
    ) -> User:
        try:
            return await self.identity_resolver.resolve(provider, provider_user_id, profile)
        except IdentityConflictError:
            # 경쟁에서 진 쪽. 이번엔 기존 row를 찾아 update로 끝남. 또 실패하면 일시 오류로 전파.
            logger.info("Retrying identity resolve after conflict (%s)", provider)
            return await self.identity_resolver.resolve(provider, provider_user_id, profile)

    async def _auth_response(self, user: User) -> AuthResponse:
        access_token = self.token_issuer.issue_access_token(subject_for_user(user))
        refresh_token = await self.refresh_tokens.issue(user.id)
        return AuthResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            user=UserPublic.from_user(user),
        )
