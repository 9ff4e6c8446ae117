"""
The Villagers Backend — Village Profile Route
===============================================

What:  GET /api/villages/{id}, the flattened profile used by the village page.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse
from villagers.schemas.village import VillageProfileResponse
from villagers.services.village_service import village_service

router = APIRouter(prefix="/api/villages", tags=["Villages"])


@router.get(
    "/{village_id}",
    response_model=VillageProfileResponse,
    responses={
        400: {"description": "Malformed village id", "model": ErrorResponse},
        404: {"description": "Village not found", "model": ErrorResponse},
    },
    summary="Get a village profile",
)
async def get_village_profile(
    village_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> VillageProfileResponse:
    return await village_service.get_village_profile(db, village_id)
