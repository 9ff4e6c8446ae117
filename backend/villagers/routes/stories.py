"""
The Villagers Backend — Story Route Handlers
==============================================

What:  Create and list village stories.
Who:   Called by the frontend story form and the story feed.

Stories carry an author email; the user row is created on first use.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from villagers.database import get_db_session
from villagers.schemas.common import ErrorResponse
from villagers.schemas.content import StoryCreate, StoryResponse
from villagers.services.content_service import content_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stories", tags=["Stories"])


@router.post(
    "",
    status_code=201,
    response_model=StoryResponse,
    responses={
        201: {"description": "Story created", "model": StoryResponse},
        400: {"description": "Missing required fields", "model": ErrorResponse},
        404: {"description": "Village not found", "model": ErrorResponse},
    },
    summary="Submit a story",
)
async def create_story(
    payload: StoryCreate,
    db: AsyncSession = Depends(get_db_session),
) -> StoryResponse:
    """
    Create a story for an existing village.

    The village is checked before the author is resolved, so a request for
    an unknown village leaves no user behind.
    """
    return await content_service.create_story(db, payload)


@router.get(
    "",
    response_model=List[StoryResponse],
    summary="List all stories, newest first",
)
async def list_stories(db: AsyncSession = Depends(get_db_session)) -> List[StoryResponse]:
    return await content_service.list_stories(db)


@router.get(
    "/village/{village_id}",
    response_model=List[StoryResponse],
    responses={400: {"description": "Malformed village id", "model": ErrorResponse}},
    summary="List the stories of one village, newest first",
)
async def list_village_stories(
    village_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> List[StoryResponse]:
    return await content_service.list_village_stories(db, village_id)
