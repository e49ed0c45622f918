import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from constants import ALLOW_ADMIN_REGISTRATION_KEY, ROLE_ADMIN
from errors import AuthenticationError, BackendError, InvalidRequestError, NotFoundError, PermissionDeniedError
from repositories import auth_admin_repository
from repositories.profiles_repository import fetch_profile, update_profile
from schemas import AdminProfile, AdminProfileUpdate, AdminRegisterRequest, SessionUser
from services import auth_service, settings_service
from validators import sanitize_string, validate_phone

logger = logging.getLogger("pizza-delivery")


def _format_profile(row: Dict[str, Any]) -> AdminProfile:
    return AdminProfile(
        id=row["id"],
        email=row.get("email"),
        full_name=row.get("full_name"),
        phone=row.get("phone"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


async def registration_allowed() -> bool:
    value = await settings_service.get_setting(ALLOW_ADMIN_REGISTRATION_KEY, True)
    return value is not False and str(value).lower() != "false"


async def register_admin(payload: AdminRegisterRequest) -> SessionUser:
    if not payload.full_name.strip():
        raise InvalidRequestError("All fields are required")
    if not await registration_allowed():
        raise PermissionDeniedError(
            "Admin registration is disabled. Contact an existing administrator."
        )
    profile = await auth_service.create_account(
        payload.email,
        payload.password,
        sanitize_string(payload.full_name),
        ROLE_ADMIN,
    )
    logger.info("Registered admin user=%s", profile.get("id"))
    return auth_service.session_user(profile, payload.email)


async def get_profile(user_id: str) -> AdminProfile:
    row = await asyncio.to_thread(fetch_profile, user_id)
    if not row:
        raise NotFoundError("Profile not found")
    return _format_profile(row)


async def update_admin_profile(user_id: str, payload: AdminProfileUpdate) -> AdminProfile:
    changes: Dict[str, Any] = {}
    if payload.full_name is not None:
        changes["full_name"] = sanitize_string(payload.full_name)
    if payload.phone:
        try:
            changes["phone"] = validate_phone(payload.phone)
        except ValueError as exc:
            raise InvalidRequestError(str(exc)) from exc
    if not changes:
        raise InvalidRequestError("No fields to update")
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()
    row = await asyncio.to_thread(update_profile, user_id, changes)
    if not row:
        raise NotFoundError("Profile not found")
    return _format_profile(row)


async def change_password(profile: Dict[str, Any], current_password: str, new_password: str) -> None:
    email = profile.get("email")
    if not email:
        raise NotFoundError("User not found")
    try:
        await auth_service.password_sign_in(email, current_password)
    except AuthenticationError as exc:
        raise InvalidRequestError("Current password is incorrect") from exc
    try:
        await asyncio.to_thread(
            auth_admin_repository.update_user, profile["id"], {"password": new_password}
        )
    except Exception as exc:
        logger.exception("Failed to update password user=%s", profile["id"])
        raise BackendError("Failed to update password") from exc
    logger.info("Password changed user=%s", profile["id"])
