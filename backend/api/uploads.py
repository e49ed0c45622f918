from fastapi import APIRouter, Depends, File, UploadFile

from auth import require_admin
from schemas import UploadResponse
from services import upload_service

router = APIRouter(prefix="/api/upload", tags=["uploads"], dependencies=[Depends(require_admin)])


@router.post("", response_model=UploadResponse)
async def upload_image(file: UploadFile = File(...)) -> UploadResponse:
    content = await file.read(upload_service.MAX_UPLOAD_BYTES + 1)
    return await upload_service.upload_image(file.filename or "", file.content_type, content)
