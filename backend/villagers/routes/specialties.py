"""
The Villagers Backend — Specialty Route Handlers
==================================================

What:  Register and list village specialties (crafts, festivals, produce...).
How:   JSON body, village given as (pincode, villageName). A title is unique
       per village (409 on repeat).
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse
from villagers.schemas.content import SpecialtyCreate, SpecialtyResponse
from villagers.services.content_service import content_service

router = APIRouter(prefix="/api/specialties", tags=["Specialties"])


@router.post(
    "",
    status_code=201,
    response_model=SpecialtyResponse,
    responses={
        201: {"description": "Specialty registered", "model": SpecialtyResponse},
        400: {"description": "Missing required fields", "model": ErrorResponse},
        404: {"description": "Village not found", "model": ErrorResponse},
        409: {"description": "Specialty already exists for the village", "model": ErrorResponse},
    },
    summary="Register a specialty",
)
async def create_specialty(
    payload: SpecialtyCreate,
    db: AsyncSession = Depends(get_db_session),
) -> SpecialtyResponse:
    return await content_service.create_specialty(db, payload)


@router.get(
    "",
    response_model=List[SpecialtyResponse],
    summary="List approved specialties, newest first",
)
async def list_specialties(db: AsyncSession = Depends(get_db_session)) -> List[SpecialtyResponse]:
    return await content_service.list_specialties(db)
