import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from errors import BackendError, NotFoundError
from repositories import auth_admin_repository
from repositories.profiles_repository import fetch_profile, update_profile
from schemas import UserUpdate, UserView
from validators import is_uuid

logger = logging.getLogger("pizza-delivery")


async def _auth_user_or_404(user_id: str) -> Dict[str, Any]:
    if not is_uuid(user_id):
        raise NotFoundError("User not found")
    auth_user = await asyncio.to_thread(auth_admin_repository.get_user, user_id)
    if not auth_user:
        raise NotFoundError("User not found")
    return auth_user


async def get_user(user_id: str) -> UserView:
    auth_user = await _auth_user_or_404(user_id)
    profile = await asyncio.to_thread(fetch_profile, user_id)
    if not profile:
        raise NotFoundError("User not found")
    return UserView(
        id=profile["id"],
        email=auth_user.get("email"),
        name=profile.get("full_name"),
        full_name=profile.get("full_name"),
        phone=profile.get("phone"),
        role=profile.get("role"),
        email_verified=profile.get("email_verified"),
        profile_completed=profile.get("profile_completed"),
    )


async def _restore_email(user_id: str, email: Optional[str]) -> None:
    try:
        await asyncio.to_thread(auth_admin_repository.update_user, user_id, {"email": email})
    except Exception:
        logger.exception("Failed to restore auth email for user=%s", user_id)


async def update_user(user_id: str, payload: UserUpdate) -> UserView:
    auth_user = await _auth_user_or_404(user_id)
    old_email = auth_user.get("email")
    email_changed = (old_email or "").lower() != payload.email
    if email_changed:
        try:
            await asyncio.to_thread(
                auth_admin_repository.update_user, user_id, {"email": payload.email}
            )
        except Exception as exc:
            logger.exception("Failed to update auth email user=%s", user_id)
            raise BackendError("Failed to update user") from exc

    changes = {
        "full_name": payload.name,
        "phone": payload.phone,
        "email": payload.email,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        row = await asyncio.to_thread(update_profile, user_id, changes)
    except Exception as exc:
        logger.exception("Failed to update profile user=%s", user_id)
        if email_changed:
            await _restore_email(user_id, old_email)
        raise BackendError("Failed to update user") from exc
    if not row:
        if email_changed:
            await _restore_email(user_id, old_email)
        raise NotFoundError("User not found")
    return UserView(
        id=user_id,
        email=payload.email,
        name=payload.name,
        full_name=payload.name,
        phone=payload.phone,
        role=row.get("role"),
    )
