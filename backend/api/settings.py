from fastapi import APIRouter

from schemas import PublicSettingsResponse
from services import settings_service

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=PublicSettingsResponse)
async def read_public_settings() -> PublicSettingsResponse:
    values = await settings_service.get_public_settings()
    return PublicSettingsResponse(settings=values, success=True)
