"""
The Villagers Backend — Content Registrar
===========================================

What:  Validates and persists user content (story, photo, food, specialty)
       attached to a village, and lists it back in display-ready form.
Who:   Called by the stories, photos, foods and specialties routes.

Registration Flow (all kinds):
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ resolve      │───▶│ resolve      │───▶│ encode image │───▶│ INSERT   │
    │ village      │    │ author       │    │ (photo/food) │    │ + shape  │
    └──────────────┘    │ (story only) │    └──────────────┘    └──────────┘
                        └──────────────┘
    The village is always resolved first: an unknown village fails the
    request before a user row can be created.

Village locators:
    - by id                        (stories)
    - by (pincode, village name)   (photos, foods, specialties)

Design Decision:
    ContentService is stateless; the session is passed into every call and
    the transaction is owned by get_db_session.

    Every relationship used for response shaping is eager-loaded in the
    query (AsyncSession cannot lazy-load). Reads use populate_existing so
    rows already in the session get their relationships loaded as well.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, selectinload

from villagers.database import insert_ignore_conflicts, translate_database_errors
from villagers.exceptions import ConflictError, NotFoundError, ValidationError
from villagers.models import Food, Photo, PostalArea, Specialty, Story, User, Village
from villagers.schemas.content import (
    AuthorRef,
    FoodResponse,
    PhotoResponse,
    SpecialtyCreate,
    SpecialtyResponse,
    StoryCreate,
    StoryResponse,
    VillageRef,
)
from villagers.services.upload_service import upload_service

logger = logging.getLogger(__name__)

DUPLICATE_FOOD_MESSAGE = "This dish already exists for the selected village"
DUPLICATE_SPECIALTY_MESSAGE = "This specialty already exists for the selected village"


def _require(**fields: Optional[str]) -> None:
    """Raise the generic 400 when any named field is missing or blank."""
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError(
            message="Missing required fields",
            context={"missing": missing},
        )


def _story_response(story: Story, village: Village, author: User) -> StoryResponse:
    return StoryResponse(
        id=story.id,
        title=story.title,
        original_text=story.original_text,
        original_lang=story.original_lang,
        created_at=story.created_at,
        author=AuthorRef(email=author.email),
        village=VillageRef(id=village.id, name=village.name, pincode=village.postal_area.code),
    )


def _photo_response(photo: Photo, village: Village) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        title=photo.title,
        description=photo.description,
        image_url=photo.image_url,
        village=village.name,
        pincode=village.postal_area.code,
    )


def _food_response(food: Food, village: Village) -> FoodResponse:
    return FoodResponse(
        id=food.id,
        name=food.name,
        description=food.description,
        ingredients=food.ingredients,
        image_url=food.image_url,
        village=village.name,
        pincode=village.postal_area.code,
    )


def _specialty_response(specialty: Specialty, village: Village) -> SpecialtyResponse:
    return SpecialtyResponse(
        id=specialty.id,
        title=specialty.title,
        description=specialty.description,
        category=specialty.category,
        image_url=specialty.image_url,
        village=village.name,
        pincode=village.postal_area.code,
    )


class ContentService:
    """Business logic for the four content kinds."""

    # ══════════════════════════════════════════════════════════════════════
    # Village & author resolution
    # ══════════════════════════════════════════════════════════════════════

    async def get_village_by_id(self, db: AsyncSession, village_id: uuid.UUID) -> Village:
        """Direct lookup. Raises NotFoundError("Village not found")."""
        result = await db.execute(
            select(Village)
            .where(Village.id == village_id)
            .options(selectinload(Village.postal_area))
            .execution_options(populate_existing=True)
        )
        village = result.scalar_one_or_none()
        if village is None:
            raise NotFoundError(resource="Village", resource_id=str(village_id))
        return village

    async def get_village_by_locator(
        self,
        db: AsyncSession,
        pincode: str,
        village_name: str,
    ) -> Village:
        """Composite lookup on (village name, parent postal area code)."""
        result = await db.execute(
            select(Village)
            .join(Village.postal_area)
            .where(Village.name == village_name, PostalArea.code == pincode)
            .options(contains_eager(Village.postal_area))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        village = result.scalars().first()
        if village is None:
            raise NotFoundError(
                resource="Village",
                context={"pincode": pincode, "village_name": village_name},
            )
        return village

    async def ensure_user(self, db: AsyncSession, email: str) -> User:
        """
        Find-or-create a user by email in one atomic step.

        INSERT ... ON CONFLICT (email) DO NOTHING, then SELECT. Two first-time
        submissions with the same email end up sharing one row.
        """
        await insert_ignore_conflicts(
            db,
            User,
            [{"id": uuid.uuid4(), "email": email}],
            conflict_columns=["email"],
        )
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one()

    # ══════════════════════════════════════════════════════════════════════
    # Stories
    # ══════════════════════════════════════════════════════════════════════

    @translate_database_errors("create_story")
    async def create_story(self, db: AsyncSession, payload: StoryCreate) -> StoryResponse:
        """
        Create a story signed by `payload.author_email`.

        Raises:
            NotFoundError: village id does not exist (no user is created).
        """
        village = await self.get_village_by_id(db, payload.village_id)
        author = await self.ensure_user(db, payload.author_email)

        story = Story(
            title=payload.title,
            original_text=payload.original_text,
            original_lang=payload.original_lang or "en",
            village_id=village.id,
            author_id=author.id,
            approved=True,
        )
        db.add(story)
        await db.flush()
        logger.info("Story %s created in village %s by %s", story.id, village.id, author.email)

        return _story_response(story, village, author)

    @translate_database_errors("list_stories")
    async def list_stories(
        self,
        db: AsyncSession,
        village_id: Optional[uuid.UUID] = None,
    ) -> List[StoryResponse]:
        """
        All stories, newest first, optionally for one village.

        Stories are not filtered by approval.
        """
        query = (
            select(Story)
            .options(
                selectinload(Story.author),
                selectinload(Story.village).selectinload(Village.postal_area),
            )
            .order_by(Story.created_at.desc())
            .execution_options(populate_existing=True)
        )
        if village_id is not None:
            query = query.where(Story.village_id == village_id)

        result = await db.execute(query)
        return [_story_response(s, s.village, s.author) for s in result.scalars().all()]

    async def list_village_stories(self, db: AsyncSession, village_id: uuid.UUID) -> List[StoryResponse]:
        """Stories of one village, newest first. An unknown village yields []."""
        return await self.list_stories(db, village_id=village_id)

    # ══════════════════════════════════════════════════════════════════════
    # Photos
    # ══════════════════════════════════════════════════════════════════════

    @translate_database_errors("create_photo")
    async def create_photo(
        self,
        db: AsyncSession,
        title: Optional[str],
        description: Optional[str],
        pincode: Optional[str],
        village_name: Optional[str],
        filename: Optional[str],
        content: Optional[bytes],
        content_type: Optional[str] = None,
    ) -> PhotoResponse:
        """
        Store an uploaded photo inline as a data URL.

        Raises:
            ValidationError: missing file/title/pincode/village name, or a bad image.
            NotFoundError: no such village under that pincode.
        """
        if not content:
            raise ValidationError(message="Missing required fields", field="photo")
        _require(title=title, pincode=pincode, village_name=village_name)

        village = await self.get_village_by_locator(db, pincode, village_name)
        image_url = upload_service.to_data_url(filename, content, content_type)

        photo = Photo(
            title=title,
            description=description,
            image_url=image_url,
            village_id=village.id,
            approved=True,
        )
        db.add(photo)
        await db.flush()
        logger.info("Photo %s uploaded to %s (%d bytes)", photo.id, village.name, len(content))

        return _photo_response(photo, village)

    @translate_database_errors("list_photos")
    async def list_photos(self, db: AsyncSession) -> List[PhotoResponse]:
        result = await db.execute(
            select(Photo)
            .where(Photo.approved.is_(True))
            .options(selectinload(Photo.village).selectinload(Village.postal_area))
            .order_by(Photo.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [_photo_response(p, p.village) for p in result.scalars().all()]

    # ══════════════════════════════════════════════════════════════════════
    # Foods
    # ══════════════════════════════════════════════════════════════════════

    @translate_database_errors("create_food")
    async def create_food(
        self,
        db: AsyncSession,
        name: Optional[str],
        description: Optional[str],
        ingredients: Optional[str],
        pincode: Optional[str],
        village_name: Optional[str],
        filename: Optional[str] = None,
        content: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> FoodResponse:
        """
        Register a dish for a village; the picture is optional.

        Raises:
            ValidationError: missing name/pincode/village name, or a bad image.
            NotFoundError: no such village under that pincode.
            ConflictError: the village already has a dish with this name.
        """
        _require(name=name, pincode=pincode, village_name=village_name)

        village = await self.get_village_by_locator(db, pincode, village_name)
        image_url = upload_service.to_data_url(filename, content, content_type) if content else None

        existing = await db.execute(
            select(Food.id).where(Food.name == name, Food.village_id == village.id)
        )
        if existing.first() is not None:
            raise ConflictError(
                message=DUPLICATE_FOOD_MESSAGE,
                context={"name": name, "village_id": str(village.id)},
            )

        food = Food(
            name=name,
            description=description,
            ingredients=ingredients,
            image_url=image_url,
            village_id=village.id,
            approved=True,
        )
        db.add(food)
        await self._flush_unique(db, DUPLICATE_FOOD_MESSAGE, {"name": name, "village_id": str(village.id)})
        logger.info("Food '%s' added to %s", name, village.name)

        return _food_response(food, village)

    @translate_database_errors("list_foods")
    async def list_foods(self, db: AsyncSession) -> List[FoodResponse]:
        result = await db.execute(
            select(Food)
            .where(Food.approved.is_(True))
            .options(selectinload(Food.village).selectinload(Village.postal_area))
            .order_by(Food.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [_food_response(f, f.village) for f in result.scalars().all()]

    # ══════════════════════════════════════════════════════════════════════
    # Specialties
    # ══════════════════════════════════════════════════════════════════════

    @translate_database_errors("create_specialty")
    async def create_specialty(self, db: AsyncSession, payload: SpecialtyCreate) -> SpecialtyResponse:
        """
        Register a specialty for a village.

        Raises:
            NotFoundError: no such village under that pincode.
            ConflictError: the village already has a specialty with this title.
        """
        village = await self.get_village_by_locator(db, payload.pincode, payload.village_name)
        context = {"title": payload.title, "village_id": str(village.id)}

        existing = await db.execute(
            select(Specialty.id).where(
                Specialty.title == payload.title,
                Specialty.village_id == village.id,
            )
        )
        if existing.first() is not None:
            raise ConflictError(message=DUPLICATE_SPECIALTY_MESSAGE, context=context)

        specialty = Specialty(
            title=payload.title,
            description=payload.description,
            category=payload.category,
            village_id=village.id,
            approved=True,
        )
        db.add(specialty)
        await self._flush_unique(db, DUPLICATE_SPECIALTY_MESSAGE, context)
        logger.info("Specialty '%s' (%s) added to %s", payload.title, payload.category, village.name)

        return _specialty_response(specialty, village)

    @translate_database_errors("list_specialties")
    async def list_specialties(self, db: AsyncSession) -> List[SpecialtyResponse]:
        result = await db.execute(
            select(Specialty)
            .where(Specialty.approved.is_(True))
            .options(selectinload(Specialty.village).selectinload(Village.postal_area))
            .order_by(Specialty.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [_specialty_response(s, s.village) for s in result.scalars().all()]

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    async def _flush_unique(self, db: AsyncSession, message: str, context: dict) -> None:
        """
        Flush, turning a unique-key violation into ConflictError.

        The SELECT before the insert catches ordinary duplicates; this covers
        two identical submissions racing past that check. The request-level
        session rolls the failed transaction back.
        """
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning("Unique constraint violated: %s | %s", message, context)
            raise ConflictError(message=message, context={**context, "constraint": str(e.orig)}) from e


# ── Singleton Instance ────────────────────────────────────────────────────
content_service = ContentService()
