"""Auth API. Telegram 위젯·구글 ID token 로그인 + Refresh 로테이션 + 로그아웃."""

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chalysh_auth.core.deps import get_auth_service
from chalysh_auth.schemas.auth import (
    AuthResponse,
    GoogleAuthPayload,
    RefreshTokenPayload,
    TelegramAuthPayload,
    TokenPairResponse,
)
from chalysh_auth.services.auth_service import AuthService
from chalysh_auth.services.errors import (
    AuthError,
    IdentityConflictError,
    UpstreamUnavailableError,
)

router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


def _to_http_exception(exc: AuthError) -> HTTPException:
    """세부 원인(설정 누락 등)은 노출하지 않음. provider 장애·충돌만 503으로 구분."""
    if isinstance(exc, UpstreamUnavailableError):
        return HTTPException(status_code=503, detail="Identity provider unavailable")
    if isinstance(exc, IdentityConflictError):
        return HTTPException(
            status_code=503,
            detail="Login temporarily unavailable, please retry",
            headers={"Retry-After": "1"},
        )
    return HTTPException(status_code=401, detail="Authentication failed")


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> str:
    """Authorization Bearer에서 Access JWT 검증 후 sub(user id) 반환."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization")
    try:
        payload = auth_service.token_issuer.decode_access_token(credentials.credentials)
    except AuthError:
        raise HTTPException(status_code=401, detail="Invalid or expired token") from None
    return str(payload["sub"])


@router.post("/telegram", response_model=AuthResponse)
async def post_telegram_auth(
    payload: TelegramAuthPayload,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Telegram Login Widget 데이터로 로그인/가입."""
    try:
        return await auth_service.login_via_telegram(payload)
    except AuthError as e:
        raise _to_http_exception(e) from e


@router.post("/google", response_model=AuthResponse)
async def post_google_auth(
    payload: GoogleAuthPayload,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """구글 ID token으로 로그인/가입."""
    try:
        return await auth_service.login_via_google(payload.id_token)
    except AuthError as e:
        raise _to_http_exception(e) from e


@router.post("/refresh", response_model=TokenPairResponse)
async def post_refresh(
    payload: RefreshTokenPayload,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenPairResponse:
    """Refresh 토큰으로 새 쌍 발급. 제출한 토큰은 즉시 무효화(로테이션)."""
    try:
        return await auth_service.refresh(payload.refresh_token)
    except AuthError as e:
        raise _to_http_exception(e) from e


@router.post("/logout", status_code=204)
async def post_logout(
    payload: RefreshTokenPayload,
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    """Refresh 토큰 폐기. 이미 없는 토큰이어도 204."""
    await auth_service.logout(payload.refresh_token)
    return Response(status_code=204)
