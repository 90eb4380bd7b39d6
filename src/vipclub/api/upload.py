"""Admin image uploads for member covers and albums."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel

from vipclub.api.deps import AdminSession, UploadRateLimit
from vipclub.config import settings
from vipclub.services.storage import storage

logger = logging.getLogger(__name__)

router = APIRouter()

Bucket = Literal["member-covers", "member-albums"]

# Accepted content types and the only extensions a stored upload can get
IMAGE_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


class UploadResponse(BaseModel):
    url: str
    blob_key: str
    size: int
    mime_type: str


def get_extension(content_type: str) -> str:
    """Extension for a validated content type; the client filename is never used."""
    return IMAGE_TYPES[content_type]


def reject(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


@router.post("", response_model=UploadResponse)
async def upload_image(
    _admin: AdminSession,
    _rate_limit: UploadRateLimit,
    file: Annotated[UploadFile, File()],
    bucket: Annotated[Bucket, Query()] = "member-albums",
):
    """Store an image in the cover or album bucket and return its public URL."""
    content_type = file.content_type or ""
    if content_type not in IMAGE_TYPES:
        raise reject(f"Invalid file type: {content_type or 'unknown'}. Allowed: {', '.join(IMAGE_TYPES)}")

    content = await file.read()
    if len(content) > settings.max_image_size_bytes:
        raise reject(f"File too large. Max size: {settings.max_image_size_mb}MB")

    url, blob_key = await storage.upload_file(
        data=content,
        bucket=bucket,
        extension=get_extension(content_type),
    )
    logger.info(f"Uploaded {len(content)} bytes to {blob_key}")

    return UploadResponse(url=url, blob_key=blob_key, size=len(content), mime_type=content_type)
