"""
The Villagers Backend — Photo Route Handlers
==============================================

What:  Upload and list village photos.
How:   POST takes multipart/form-data with the image in the `photo` field and
       the village given as (pincode, villageName). The image is stored inline
       as a base64 data URL.
Who:   Called by the frontend photo upload form and the gallery.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse
from villagers.schemas.content import PhotoResponse
from villagers.services.content_service import content_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/photos", tags=["Photos"])


@router.post(
    "",
    status_code=201,
    response_model=PhotoResponse,
    responses={
        201: {"description": "Photo stored", "model": PhotoResponse},
        400: {"description": "Missing fields or unsupported image", "model": ErrorResponse},
        404: {"description": "Village not found", "model": ErrorResponse},
    },
    summary="Upload a photo",
    description="Upload a PNG, JPEG, WebP or GIF image for a village (max 5MB by default).",
)
async def create_photo(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    pincode: Optional[str] = Form(None),
    village_name: Optional[str] = Form(None, alias="villageName"),
    photo: Optional[UploadFile] = File(None, description="Image file"),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoResponse:
    """
    Store an uploaded photo.

    Form fields are optional at the HTTP layer so that a missing one is
    reported by the service as "Missing required fields" (400).
    """
    content = await photo.read() if photo is not None else None

    logger.info(
        "Received photo upload: filename=%s, size=%d bytes",
        photo.filename if photo is not None else "none",
        len(content or b""),
    )

    return await content_service.create_photo(
        db=db,
        title=title,
        description=description,
        pincode=pincode,
        village_name=village_name,
        filename=photo.filename if photo is not None else None,
        content=content,
        content_type=photo.content_type if photo is not None else None,
    )


@router.get(
    "",
    response_model=List[PhotoResponse],
    summary="List approved photos, newest first",
)
async def list_photos(db: AsyncSession = Depends(get_db_session)) -> List[PhotoResponse]:
    return await content_service.list_photos(db)
