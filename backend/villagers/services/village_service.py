"""
The Villagers Backend — Village Aggregate Views
=================================================

What:  Two read projections of one village with all of its content.
Who:   GET /api/village-details/{id} and GET /api/villages/{id}.

Loading:
    One SELECT for the village, then one selectin query per collection
    (postal area, stories + authors, photos, foods, specialties). Each
    collection loader carries its own approval filter; ordering comes from
    the relationship definitions on Village:

        stories      all rows, newest first (not approval-filtered)
        photos       approved only, newest first
        foods        approved only, newest first
        specialties  approved only, newest first
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from villagers.database import translate_database_errors
from villagers.exceptions import NotFoundError
from villagers.models import Food, Photo, Specialty, Story, Village
from villagers.schemas.content import VillageRef
from villagers.schemas.village import (
    FoodRow,
    PhotoRow,
    ProfileFood,
    ProfilePhoto,
    ProfileSpecialty,
    ProfileStory,
    SpecialtyRow,
    StoryRow,
    VillageDetailsResponse,
    VillageProfileResponse,
)

logger = logging.getLogger(__name__)


class VillageService:

    async def _load_village_graph(self, db: AsyncSession, village_id: uuid.UUID) -> Village:
        result = await db.execute(
            select(Village)
            .where(Village.id == village_id)
            .options(
                selectinload(Village.postal_area),
                selectinload(Village.stories).selectinload(Story.author),
                selectinload(Village.photos.and_(Photo.approved.is_(True))),
                selectinload(Village.foods.and_(Food.approved.is_(True))),
                selectinload(Village.specialties.and_(Specialty.approved.is_(True))),
            )
            .execution_options(populate_existing=True)
        )
        village = result.scalar_one_or_none()
        if village is None:
            raise NotFoundError(resource="Village", resource_id=str(village_id))
        logger.debug(
            "Loaded village %s: %d stories, %d photos, %d foods, %d specialties",
            village.id, len(village.stories), len(village.photos),
            len(village.foods), len(village.specialties),
        )
        return village

    @translate_database_errors("get_village_details")
    async def get_village_details(self, db: AsyncSession, village_id: uuid.UUID) -> VillageDetailsResponse:
        """
        Projection for /api/village-details/{id}.

        Raw content rows under a small village header. The food collection is
        exposed as `food`.
        """
        village = await self._load_village_graph(db, village_id)

        return VillageDetailsResponse(
            village=VillageRef(id=village.id, name=village.name, pincode=village.postal_area.code),
            stories=[StoryRow.model_validate(s) for s in village.stories],
            food=[FoodRow.model_validate(f) for f in village.foods],
            specialties=[SpecialtyRow.model_validate(s) for s in village.specialties],
            photos=[PhotoRow.model_validate(p) for p in village.photos],
        )

    @translate_database_errors("get_village_profile")
    async def get_village_profile(self, db: AsyncSession, village_id: uuid.UUID) -> VillageProfileResponse:
        """
        Projection for /api/villages/{id}.

        Flattened header with district and state; content trimmed to what the
        village page renders. A story whose author is missing shows "Unknown".
        """
        village = await self._load_village_graph(db, village_id)
        area = village.postal_area

        return VillageProfileResponse(
            id=village.id,
            name=village.name,
            pincode=area.code,
            district=area.district,
            state=area.state,
            stories=[
                ProfileStory(
                    id=s.id,
                    title=s.title,
                    text=s.original_text,
                    created_at=s.created_at,
                    author=s.author.email if s.author else "Unknown",
                )
                for s in village.stories
            ],
            photos=[
                ProfilePhoto(id=p.id, url=p.image_url, caption=p.description)
                for p in village.photos
            ],
            foods=[
                ProfileFood(id=f.id, name=f.name, description=f.description, image_url=f.image_url)
                for f in village.foods
            ],
            specialties=[
                ProfileSpecialty(
                    id=s.id,
                    title=s.title,
                    description=s.description,
                    category=s.category,
                    image_url=s.image_url,
                )
                for s in village.specialties
            ],
        )


# ── Singleton Instance ────────────────────────────────────────────────────
village_service = VillageService()
