import asyncio
import logging
import re
import time

from config import settings
from errors import BackendError, InvalidRequestError
from repositories.storage_repository import upload_file
from schemas import UploadResponse

logger = logging.getLogger("pizza-delivery")

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_name(file_name: str) -> str:
    name = UNSAFE_CHARS.sub("-", (file_name or "").strip()).strip(".-")
    return name or "upload"


def storage_path(file_name: str, now_ms: int | None = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{safe_file_name(file_name)}"


async def upload_image(file_name: str, content_type: str | None, content: bytes) -> UploadResponse:
    if not content:
        raise InvalidRequestError("No file provided")
    if not (content_type or "").startswith("image/"):
        raise InvalidRequestError("Only image files are accepted")
    if len(content) > MAX_UPLOAD_BYTES:
        raise InvalidRequestError("File is larger than 5 MB")
    path = storage_path(file_name)
    try:
        url = await asyncio.to_thread(
            upload_file, settings.product_images_bucket, path, content, content_type
        )
    except Exception as exc:
        logger.exception("Storage upload failed path=%s", path)
        raise BackendError(f"Storage error: {exc}") from exc
    logger.info("Uploaded %s bytes to %s", len(content), path)
    return UploadResponse(url=url, path=path)
