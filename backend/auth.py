import asyncio
from typing import Any, Dict, Optional

import httpx
from fastapi import Cookie, Depends, Header, HTTPException, status

from config import settings
from constants import ACCESS_TOKEN_COOKIE, ROLE_ADMIN, STAFF_ROLES
from repositories.profiles_repository import fetch_profile


async def _fetch_user(access_token: str) -> dict:
    headers = {
        "Authorization": f"Bearer {access_token}",
        "apikey": settings.supabase_service_role_key,
    }
    url = f"{settings.supabase_url}/auth/v1/user"
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.get(url, headers=headers)
    if response.status_code != 200:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth token"
        )
    return response.json()


def extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return cookie_token or None


async def get_access_token(
    authorization: str | None = Header(default=None, convert_underscores=False),
    access_token: str | None = Cookie(default=None, alias=ACCESS_TOKEN_COOKIE),
) -> str:
    token = extract_token(authorization, access_token)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing auth token"
        )
    return token


async def get_current_user_id(token: str = Depends(get_access_token)) -> str:
    user = await _fetch_user(token)
    user_id = user.get("id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user profile"
        )
    return user_id


async def get_optional_user_id(
    authorization: str | None = Header(default=None, convert_underscores=False),
    access_token: str | None = Cookie(default=None, alias=ACCESS_TOKEN_COOKIE),
) -> Optional[str]:
    token = extract_token(authorization, access_token)
    if not token:
        return None
    try:
        user = await _fetch_user(token)
    except HTTPException:
        return None
    return user.get("id")


async def get_current_profile(
    user_id: str = Depends(get_current_user_id),
) -> Dict[str, Any]:
    profile = await asyncio.to_thread(fetch_profile, user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found"
        )
    if profile.get("active") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled"
        )
    return profile


def require_roles(*roles: str):
    async def dependency(
        profile: Dict[str, Any] = Depends(get_current_profile),
    ) -> Dict[str, Any]:
        if profile.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions"
            )
        return profile

    return dependency


require_admin = require_roles(ROLE_ADMIN)
require_staff = require_roles(*STAFF_ROLES)


def is_admin(profile: Dict[str, Any]) -> bool:
    return profile.get("role") == ROLE_ADMIN


def is_staff(profile: Dict[str, Any]) -> bool:
    return profile.get("role") in STAFF_ROLES


async def get_optional_profile(
    user_id: Optional[str] = Depends(get_optional_user_id),
) -> Optional[Dict[str, Any]]:
    if not user_id:
        return None
    return await asyncio.to_thread(fetch_profile, user_id)


def ensure_self_or_admin(profile: Dict[str, Any], user_id: str) -> None:
    if profile.get("id") != user_id and not is_admin(profile):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions"
        )
