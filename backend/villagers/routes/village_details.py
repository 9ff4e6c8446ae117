"""
The Villagers Backend — Village Details Route
===============================================

What:  GET /api/village-details/{villageId}, the raw-row view of a village.
Who:   Called by the frontend village details page.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse
from villagers.schemas.village import VillageDetailsResponse
from villagers.services.village_service import village_service

router = APIRouter(prefix="/api/village-details", tags=["Villages"])


@router.get(
    "/{village_id}",
    response_model=VillageDetailsResponse,
    responses={
        200: {"description": "Village with all content rows", "model": VillageDetailsResponse},
        400: {"description": "Malformed village id", "model": ErrorResponse},
        404: {"description": "Village not found", "model": ErrorResponse},
    },
    summary="Get a village with its stories, food, specialties and photos",
)
async def get_village_details(
    village_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> VillageDetailsResponse:
    """
    Stories are listed regardless of approval; the other collections only
    contain approved rows. Every list is newest first.
    """
    return await village_service.get_village_details(db, village_id)
