"""User API. Access JWT 필요."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from chalysh_auth.api.v1.auth import get_current_user_id
from chalysh_auth.core.deps import get_db
from chalysh_auth.repositories import user_repository
from chalysh_auth.schemas.user import UserProfileResponse

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db),
) -> UserProfileResponse:
    """현재 유저 프로필. 토큰 발급 후 유저가 삭제됐으면 404."""
    user = await user_repository.get_by_id(session, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserProfileResponse.from_user(user)
