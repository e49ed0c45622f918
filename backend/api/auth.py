from typing import Any, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, Header, Request, Response, status

from auth import extract_token, get_current_profile, get_optional_profile, is_admin
from constants import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from rate_limiter import client_ip, limiter, rate_limit
from schemas import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
)
from services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(rate_limit("login"))])
async def login(payload: LoginRequest, request: Request, response: Response) -> LoginResponse:
    result = await auth_service.login(payload.email, payload.password, payload.required_role)
    limiter.reset(f"{client_ip(request)}:login")
    auth_service.set_session_cookies(response, result)
    return result


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("register"))],
)
async def register(
    payload: RegisterRequest,
    caller: Optional[Dict[str, Any]] = Depends(get_optional_profile),
) -> RegisterResponse:
    user = await auth_service.register(payload, caller_is_admin=bool(caller and is_admin(caller)))
    return RegisterResponse(message="Account created", user=user)


@router.post("/refresh", response_model=LoginResponse)
async def refresh(
    response: Response,
    payload: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=REFRESH_TOKEN_COOKIE),
) -> LoginResponse:
    token = (payload.refresh_token if payload else None) or refresh_cookie
    result = await auth_service.refresh(token)
    auth_service.set_session_cookies(response, result)
    return result


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    authorization: Optional[str] = Header(default=None, convert_underscores=False),
    access_cookie: Optional[str] = Cookie(default=None, alias=ACCESS_TOKEN_COOKIE),
) -> LogoutResponse:
    await auth_service.logout(extract_token(authorization, access_cookie))
    auth_service.clear_session_cookies(response)
    return LogoutResponse(success=True, message="Logged out")


@router.get("/me", response_model=MeResponse)
async def read_me(profile: Dict[str, Any] = Depends(get_current_profile)) -> MeResponse:
    return MeResponse(user=auth_service.session_user(profile))
