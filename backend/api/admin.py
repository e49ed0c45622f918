from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from auth import require_admin
from schemas import (
    AdminProfileResponse,
    AdminProfileUpdate,
    AdminRegisterRequest,
    AdminSettingsResponse,
    MessageResponse,
    PasswordChangeRequest,
    RegisterResponse,
)
from services import admin_service, settings_service

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(payload: AdminRegisterRequest) -> RegisterResponse:
    user = await admin_service.register_admin(payload)
    return RegisterResponse(message="Administrator created", user=user)


@router.get("/profile", response_model=AdminProfileResponse)
async def read_profile(profile: Dict[str, Any] = Depends(require_admin)) -> AdminProfileResponse:
    return AdminProfileResponse(profile=await admin_service.get_profile(profile["id"]))


@router.put("/profile", response_model=AdminProfileResponse)
async def update_profile(
    payload: AdminProfileUpdate,
    profile: Dict[str, Any] = Depends(require_admin),
) -> AdminProfileResponse:
    updated = await admin_service.update_admin_profile(profile["id"], payload)
    return AdminProfileResponse(profile=updated, message="Profile updated")


@router.patch("/password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChangeRequest,
    profile: Dict[str, Any] = Depends(require_admin),
) -> MessageResponse:
    await admin_service.change_password(profile, payload.current_password, payload.new_password)
    return MessageResponse(message="Password updated")


@router.get("/settings", response_model=AdminSettingsResponse, dependencies=[Depends(require_admin)])
async def read_settings() -> AdminSettingsResponse:
    return AdminSettingsResponse(settings=await settings_service.get_all_settings())


@router.post("/settings", response_model=MessageResponse, dependencies=[Depends(require_admin)])
async def save_settings(values: Dict[str, Any] = Body(...)) -> MessageResponse:
    count = await settings_service.save_settings(values)
    return MessageResponse(message=f"{count} settings saved")
