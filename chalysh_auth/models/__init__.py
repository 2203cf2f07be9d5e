# ORM models
from chalysh_auth.models.base import Base
from chalysh_auth.models.refresh_token import RefreshToken
from chalysh_auth.models.user import User

__all__ = [
    "Base",
    "RefreshToken",
    "User",
]
