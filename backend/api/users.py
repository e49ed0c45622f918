from typing import Any, Dict

from fastapi import APIRouter, Depends

from auth import ensure_self_or_admin, get_current_profile
from schemas import UserResponse, UserUpdate
from services import users_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(
    user_id: str,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> UserResponse:
    ensure_self_or_admin(profile, user_id)
    return UserResponse(user=await users_service.get_user(user_id))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> UserResponse:
    ensure_self_or_admin(profile, user_id)
    user = await users_service.update_user(user_id, payload)
    return UserResponse(user=user, message="User updated")
