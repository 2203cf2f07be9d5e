"""구글 ID token 검증. tokeninfo 엔드포인트로 서명 검증을 위임하고 aud·exp는 직접 확인."""

import logging
import time

import httpx
from pydantic import ValidationError

from chalysh_auth.schemas.auth import GoogleTokenInfo, GoogleUserClaims
from chalysh_auth.services.errors import (
    ExpiredCredentialError,
    InvalidProofError,
    NotConfiguredError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


class GoogleIdTokenVerifier:
    """client는 lifespan 싱글톤 AsyncClient. timeout으로 느린 provider가 요청을 붙잡지 않게 함."""

    def __init__(
        self,
        client_id: str,
        http_client: httpx.AsyncClient,
        *,
        tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo",
        timeout: float = 5.0,
    ) -> None:
        self._client_id = (client_id or "").strip()
        self._http_client = http_client
        self._tokeninfo_url = tokeninfo_url
        self._timeout = timeout

    async def verify(self, id_token: str) -> GoogleUserClaims:
        """
        1. GOOGLE_CLIENT_ID 미설정 → NotConfiguredError
        2. tokeninfo 호출. 네트워크 예외·5xx → UpstreamUnavailableError, 그 외 비200 → InvalidProofError
        3. aud 불일치 → InvalidProofError (토큰 치환 방지)
        4. exp 누락/비숫자/경과 → ExpiredCredentialError
        """
        if not self._client_id:
            raise NotConfiguredError(
                "Google authentication is not configured (GOOGLE_CLIENT_ID is missing)"
            )

        try:
            resp = await self._http_client.get(
                self._tokeninfo_url,
                params={"id_token": id_token},
                timeout=self._timeout,
            )
        except httpx.TransportError as e:
            logger.warning("Google tokeninfo network error: %s", e, exc_info=True)
            raise UpstreamUnavailableError("Google auth temporarily unavailable") from e

        if resp.status_code >= 500:
            logger.warning("Google tokeninfo unavailable: %s", resp.status_code)
            raise UpstreamUnavailableError("Google auth temporarily unavailable")
        if resp.status_code != 200:
            logger.warning("Google tokeninfo rejected token: %s", resp.status_code)
            raise InvalidProofError("Invalid Google ID token")

        try:
            info = GoogleTokenInfo.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise InvalidProofError("Invalid Google tokeninfo response") from e

        if info.aud != self._client_id:
            logger.warning("Google ID token audience mismatch (aud=%s)", info.aud)
            raise InvalidProofError("Google ID token was not issued for this application")

        try:
            expiry = int(info.exp) if info.exp is not None else None
        except ValueError:
            expiry = None
        if expiry is None or expiry <= int(time.time()):
            raise ExpiredCredentialError("Google ID token has expired")

        return GoogleUserClaims(
            sub=info.sub,
            email=info.email,
            name=info.name or info.email or info.sub,
            given_name=info.given_name,
            family_name=info.family_name,
            picture=info.picture,
        )
