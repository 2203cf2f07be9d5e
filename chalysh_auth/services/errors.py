"""Auth 예외 계층. 서비스 내부에서는 구체 종류로 발생, AuthService가 호출자용으로 축약."""


class AuthError(Exception):
    """Auth 관련 예외 공통 베이스. Router에서 HTTPException으로 변환."""

    pass


class InvalidProofError(AuthError):
    """서명/해시 불일치, audience 불일치, 형식 오류."""


class ExpiredCredentialError(AuthError):
    """토큰 또는 provider assertion 유효기간 경과."""


class NotConfiguredError(AuthError):
    """필수 시크릿/식별자(TELEGRAM_BOT_TOKEN, GOOGLE_CLIENT_ID) 미설정."""


class UserNotFoundError(AuthError):
    """참조한 유저가 더 이상 없음."""


class IdentityConflictError(AuthError):
    """동시 최초 로그인으로 provider 키 unique 제약 위반. 재시도 대상."""


class UpstreamUnavailableError(AuthError):
    """provider 호출 실패/타임아웃. 호출자에게 '잠시 후 재시도'로 구분해 노출."""


class InvalidCredentialsError(AuthError):
    """호출자에게 보이는 단일 인증 실패. 세부 원인은 로그에만 남김."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)
