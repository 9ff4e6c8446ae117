"""
The Villagers Backend — Food Route Handlers
=============================================

What:  Register and list the dishes of a village.
How:   POST takes multipart/form-data; the picture in the `image` field is
       optional. A dish name is unique per village (409 on repeat).
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse
from villagers.schemas.content import FoodResponse
from villagers.services.content_service import content_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/foods", tags=["Foods"])


@router.post(
    "",
    status_code=201,
    response_model=FoodResponse,
    responses={
        201: {"description": "Dish registered", "model": FoodResponse},
        400: {"description": "Missing fields or unsupported image", "model": ErrorResponse},
        404: {"description": "Village not found", "model": ErrorResponse},
        409: {"description": "Dish already exists for the village", "model": ErrorResponse},
    },
    summary="Register a dish",
)
async def create_food(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    ingredients: Optional[str] = Form(None),
    pincode: Optional[str] = Form(None),
    village_name: Optional[str] = Form(None, alias="villageName"),
    image: Optional[UploadFile] = File(None, description="Optional picture of the dish"),
    db: AsyncSession = Depends(get_db_session),
) -> FoodResponse:
    # Browsers send an empty part when no file was picked
    content = (await image.read() or None) if image is not None else None

    return await content_service.create_food(
        db=db,
        name=name,
        description=description,
        ingredients=ingredients,
        pincode=pincode,
        village_name=village_name,
        filename=image.filename if image is not None else None,
        content=content,
        content_type=image.content_type if image is not None else None,
    )


@router.get(
    "",
    response_model=List[FoodResponse],
    summary="List approved dishes, newest first",
)
async def list_foods(db: AsyncSession = Depends(get_db_session)) -> List[FoodResponse]:
    return await content_service.list_foods(db)
