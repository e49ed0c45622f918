import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Response

from config import settings
from constants import (
    ACCESS_TOKEN_COOKIE,
    ACCESS_TOKEN_MAX_AGE,
    COMMON_PASSWORDS,
    PASSWORD_SPECIAL_CHARS,
    REFRESH_TOKEN_COOKIE,
    REFRESH_TOKEN_MAX_AGE,
    ROLE_CUSTOMER,
)
from errors import (
    AuthenticationError,
    BackendError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from repositories import auth_admin_repository
from repositories.profiles_repository import fetch_profile, fetch_profile_by, insert_profile
from schemas import LoginResponse, RegisterRequest, SessionUser
from validators import sanitize_string

logger = logging.getLogger("pizza-delivery")


def validate_password(password: str) -> List[str]:
    """Return the list of policy violations; empty when the password is acceptable."""
    errors = []
    if len(password) < 8:
        errors.append("Password must have at least 8 characters")
    if not any(char.isupper() for char in password):
        errors.append("Password must contain an uppercase letter")
    if not any(char.islower() for char in password):
        errors.append("Password must contain a lowercase letter")
    if not any(char.isdigit() for char in password):
        errors.append("Password must contain a number")
    if not any(char in PASSWORD_SPECIAL_CHARS for char in password):
        errors.append("Password must contain a special character")
    return errors


def is_common_password(password: str) -> bool:
    return password.lower() in COMMON_PASSWORDS


def _auth_headers(access_token: Optional[str] = None) -> Dict[str, str]:
    headers = {"apikey": settings.public_auth_key}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers


async def _token_grant(grant_type: str, body: Dict[str, Any]) -> Dict[str, Any]:
    url = f"{settings.supabase_url}/auth/v1/token"
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.post(
            url,
            params={"grant_type": grant_type},
            json=body,
            headers=_auth_headers(),
        )
    if response.status_code != 200:
        logger.info("Auth %s grant rejected status=%s", grant_type, response.status_code)
        raise AuthenticationError("Invalid credentials")
    return response.json()


async def password_sign_in(email: str, password: str) -> Dict[str, Any]:
    return await _token_grant(
        "password", {"email": email.strip().lower(), "password": password.strip()}
    )


def session_user(profile: Dict[str, Any], email: Optional[str] = None) -> SessionUser:
    return SessionUser(
        id=profile["id"],
        email=email or profile.get("email"),
        full_name=profile.get("full_name"),
        role=profile.get("role") or ROLE_CUSTOMER,
        phone=profile.get("phone"),
        created_at=profile.get("created_at"),
    )


async def _session_response(session: Dict[str, Any], required_role: Optional[str] = None) -> LoginResponse:
    user = session.get("user") or {}
    user_id = user.get("id")
    if not user_id:
        raise AuthenticationError("Invalid credentials")
    profile = await asyncio.to_thread(fetch_profile, user_id)
    if not profile:
        raise NotFoundError("User profile not found")
    if profile.get("active") is False:
        raise PermissionDeniedError("Account disabled")
    if required_role and profile.get("role") != required_role:
        raise PermissionDeniedError("Access denied for this user type")
    return LoginResponse(
        success=True,
        user=session_user(profile, user.get("email")),
        access_token=session["access_token"],
        refresh_token=session.get("refresh_token"),
        expires_in=session.get("expires_in"),
    )


async def login(email: str, password: str, required_role: Optional[str] = None) -> LoginResponse:
    session = await password_sign_in(email, password)
    result = await _session_response(session, required_role)
    logger.info("Login succeeded user=%s role=%s", result.user.id, result.user.role)
    return result


async def refresh(refresh_token: Optional[str]) -> LoginResponse:
    if not refresh_token:
        raise AuthenticationError("Missing refresh token")
    session = await _token_grant("refresh_token", {"refresh_token": refresh_token})
    return await _session_response(session)


async def logout(access_token: Optional[str]) -> None:
    if not access_token:
        return
    url = f"{settings.supabase_url}/auth/v1/logout"
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            await client.post(url, headers=_auth_headers(access_token))
    except httpx.HTTPError:
        logger.warning("Failed to revoke session on logout", exc_info=True)


def set_session_cookies(response: Response, result: LoginResponse) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        result.access_token,
        max_age=ACCESS_TOKEN_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    if result.refresh_token:
        response.set_cookie(
            REFRESH_TOKEN_COOKIE,
            result.refresh_token,
            max_age=REFRESH_TOKEN_MAX_AGE,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="strict",
            path="/",
        )


def clear_session_cookies(response: Response) -> None:
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, path="/")


async def create_account(
    email: str,
    password: str,
    full_name: str,
    role: str,
    phone: Optional[str] = None,
) -> Dict[str, Any]:
    """Create the auth user and its profile row, removing the auth user if the profile fails."""
    existing = await asyncio.to_thread(fetch_profile_by, "email", email)
    if existing:
        raise ConflictError("This email is already registered")
    try:
        user = await asyncio.to_thread(
            auth_admin_repository.create_user,
            email,
            password,
            {"full_name": full_name, "role": role},
        )
    except Exception as exc:
        if "already" in str(exc).lower():
            raise ConflictError("This email is already registered") from exc
        logger.exception("Failed to create auth user email=%s", email)
        raise BackendError("Failed to create account") from exc

    record = {
        "id": user["id"],
        "email": email,
        "full_name": full_name,
        "phone": phone,
        "role": role,
    }
    try:
        profile = await asyncio.to_thread(insert_profile, record)
    except Exception as exc:
        logger.exception("Failed to create profile user=%s; removing auth user", user["id"])
        try:
            await asyncio.to_thread(auth_admin_repository.delete_user, user["id"])
        except Exception:  # pragma: no cover - network/database error
            logger.exception("Failed to remove auth user %s", user["id"])
        raise BackendError("Failed to create user profile") from exc
    return profile


async def register(payload: RegisterRequest, caller_is_admin: bool = False) -> SessionUser:
    if payload.role != ROLE_CUSTOMER and not caller_is_admin:
        raise PermissionDeniedError("Only administrators can create staff accounts")
    violations = validate_password(payload.password)
    if violations:
        raise InvalidRequestError("Password does not meet the security requirements", details=violations)
    if is_common_password(payload.password):
        raise InvalidRequestError("This password is too common. Choose a stronger one.")

    profile = await create_account(
        payload.email,
        payload.password,
        sanitize_string(payload.name),
        payload.role,
        payload.phone,
    )
    logger.info("Registered user=%s role=%s", profile.get("id"), payload.role)
    return session_user(profile, payload.email)
