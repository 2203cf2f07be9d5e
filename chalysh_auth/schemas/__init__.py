# Pydantic schemas
from chalysh_auth.schemas.auth import (
    AuthResponse,
    GoogleAuthPayload,
    RefreshTokenPayload,
    TelegramAuthPayload,
    TokenPairResponse,
)
from chalysh_auth.schemas.user import ExternalProfile, UserProfileResponse, UserPublic

__all__ = [
    "AuthResponse",
    "ExternalProfile",
    "GoogleAuthPayload",
    "RefreshTokenPayload",
    "TelegramAuthPayload",
    "TokenPairResponse",
    "UserProfileResponse",
    "UserPublic",
]
