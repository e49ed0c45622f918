from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from auth import require_admin
from rate_limiter import rate_limit
from schemas import ContactRequest, ContactResponse
from services import content_service

router = APIRouter(prefix="/api", tags=["content"])


@router.post("/contact", response_model=ContactResponse, dependencies=[Depends(rate_limit("default"))])
async def send_contact(payload: ContactRequest) -> ContactResponse:
    contact = await content_service.send_contact_message(payload)
    return ContactResponse(message="Message sent", contact=contact)


@router.get("/about-content")
async def read_about_content() -> Dict[str, Any]:
    return await content_service.get_about_content()


@router.put("/about-content", dependencies=[Depends(require_admin)])
async def update_about_content(content: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    data = await content_service.update_about_content(content)
    return {"success": True, "data": data}
