"""
Image upload route for the admin forms.
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from ..config import Settings
from ..auth.deps import require_session
from ..dependencies import get_app_settings, get_media_store
from ..models import UploadResponse
from .progress import measure_progress
from .store import MediaStore, MediaStoreError, discard_image

logger = logging.getLogger("portfolio.media.routes")


ALLOWED_IMAGE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
)

UPLOAD_PREFIX = "uploads"


upload_router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_session)],
)


def upload_path(filename: Optional[str]) -> str:
    name = (filename or "image").replace("/", "_").replace("\\", "_")
    return f"{UPLOAD_PREFIX}/{uuid.uuid4()}-{name}"


@upload_router.post("/uploads", status_code=status.HTTP_201_CREATED, response_model=UploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    replaces: Optional[str] = Form(None),
    store: MediaStore = Depends(get_media_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Store an image and return its public URL.

    Form fields:
        file: The image (jpeg, png, gif, webp or svg), at most MAX_UPLOAD_BYTES
        replaces: Optional URL of an image this upload replaces; deleted first
    """
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Please upload a valid image file.",
        )

    data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File is too large. Maximum size is {settings.MAX_UPLOAD_BYTES / (1024 * 1024):g}MB.",
        )

    if replaces:
        await run_in_threadpool(discard_image, store, replaces)

    path = upload_path(file.filename)
    started = time.monotonic()
    try:
        url = await run_in_threadpool(store.upload, path, data, file.content_type)
    except MediaStoreError as e:
        logger.error(f"Upload failed: {e}", extra={"path": path})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="An unknown error occurred during upload.",
        )

    progress = measure_progress(len(data), len(data), time.monotonic() - started)
    logger.info(
        "Image uploaded",
        extra={"path": path, "size": len(data), "speed": progress.speed},
    )

    return UploadResponse(
        url=url,
        path=path,
        size=len(data),
        percentage=progress.percentage,
        speed=progress.speed,
    )
