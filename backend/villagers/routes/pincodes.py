"""
The Villagers Backend — Pincode Route Handlers
================================================

What:  Resolves a pincode to its postal area and villages.
Who:   Called by the frontend pincode selector before any submission.

The debug routes live on their own router so main.py can leave them out
entirely when ENABLE_DEBUG_ROUTES is false. They are registered ahead of
the `{code}` route.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse, StatusResponse
from villagers.schemas.pincode import PostalAreaResponse, VillageSummary
from villagers.services.pincode_service import pincode_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pincodes", tags=["Pincodes"])
debug_router = APIRouter(prefix="/api/pincodes/debug", tags=["Debug"])


@debug_router.get(
    "/all-villages",
    response_model=List[VillageSummary],
    summary="List every stored village",
)
async def list_all_villages(
    db: AsyncSession = Depends(get_db_session),
) -> List[VillageSummary]:
    return await pincode_service.list_all_villages(db)


@debug_router.delete(
    "/clear",
    response_model=StatusResponse,
    response_model_exclude_none=True,
    summary="Delete all stored data",
    description="Removes every content row, user, village and postal area.",
)
async def clear_all(db: AsyncSession = Depends(get_db_session)) -> StatusResponse:
    return await pincode_service.clear_all(db)


@router.get(
    "/{code}",
    response_model=PostalAreaResponse,
    responses={
        200: {"description": "Postal area with its approved villages", "model": PostalAreaResponse},
        400: {"description": "Code is not six digits", "model": ErrorResponse},
        404: {"description": "Pincode unknown to the postal directory", "model": ErrorResponse},
        500: {"description": "Postal directory unreachable", "model": ErrorResponse},
    },
    summary="Resolve a pincode",
    description=(
        "Returns the state, district and villages for a 6-digit pincode. "
        "Unknown codes are fetched from the India Post directory once and stored."
    ),
)
async def get_pincode(
    code: str,
    db: AsyncSession = Depends(get_db_session),
) -> PostalAreaResponse:
    """
    Resolve `code` from storage, falling back to the postal directory.

    Error responses (handled by global exception handlers):
        HTTP 400: code is not six digits (ValidationError)
        HTTP 404: directory reports no post offices (NotFoundError)
        HTTP 500: directory unreachable after retries (DirectoryServiceError)
    """
    return await pincode_service.resolve(db, code)
