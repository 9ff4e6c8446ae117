"""
The Villagers Backend — Content Registrar Tests
=================================================

What:  Tests for ContentService: village/author resolution, the four
       content kinds, uniqueness conflicts and listing order/filters.
How:   Real in-memory SQLite database seeded with one village.
"""

import uuid

import pytest
from sqlalchemy import func, select

from villagers.exceptions import ConflictError, NotFoundError, ValidationError
from villagers.models import Food, Photo, Specialty, Story, User
from villagers.schemas.content import SpecialtyCreate, StoryCreate
from villagers.services.content_service import (
    DUPLICATE_FOOD_MESSAGE,
    DUPLICATE_SPECIALTY_MESSAGE,
    ContentService,
)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def _story(village_id, email="asha@example.com", title="The banyan tree"):
    return StoryCreate(
        title=title,
        original_text="Long ago, under the old banyan tree...",
        village_id=village_id,
        author_email=email,
    )


class TestVillageResolution:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_by_id(self, db_session, seeded_village):
        village = await self.service.get_village_by_id(db_session, seeded_village.id)
        assert village.name == "Shivajinagar"
        assert village.postal_area.code == "560001"

    @pytest.mark.asyncio
    async def test_by_id_unknown(self, db_session):
        with pytest.raises(NotFoundError, match="Village not found"):
            await self.service.get_village_by_id(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_by_locator(self, db_session, seeded_village):
        village = await self.service.get_village_by_locator(db_session, "560001", "Shivajinagar")
        assert village.id == seeded_village.id

    @pytest.mark.asyncio
    async def test_by_locator_wrong_pincode(self, db_session, seeded_village):
        with pytest.raises(NotFoundError, match="Village not found"):
            await self.service.get_village_by_locator(db_session, "110001", "Shivajinagar")

    @pytest.mark.asyncio
    async def test_ensure_user_is_idempotent(self, db_session):
        first = await self.service.ensure_user(db_session, "ravi@example.com")
        second = await self.service.ensure_user(db_session, "ravi@example.com")

        assert first.id == second.id
        assert await _count(db_session, User) == 1


class TestStories:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_create_story(self, db_session, seeded_village):
        result = await self.service.create_story(db_session, _story(seeded_village.id))

        assert result.title == "The banyan tree"
        assert result.original_lang == "en"
        assert result.author.email == "asha@example.com"
        assert result.village.name == "Shivajinagar"
        assert result.village.pincode == "560001"

    @pytest.mark.asyncio
    async def test_same_author_reused_across_stories(self, db_session, seeded_village):
        await self.service.create_story(db_session, _story(seeded_village.id, title="One"))
        await self.service.create_story(db_session, _story(seeded_village.id, title="Two"))

        assert await _count(db_session, User) == 1
        assert await _count(db_session, Story) == 2

    @pytest.mark.asyncio
    async def test_unknown_village_creates_neither_user_nor_story(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.create_story(db_session, _story(uuid.uuid4()))

        assert await _count(db_session, User) == 0
        assert await _count(db_session, Story) == 0

    @pytest.mark.asyncio
    async def test_list_newest_first_and_unfiltered(self, db_session, seeded_village):
        await self.service.create_story(db_session, _story(seeded_village.id, title="Older"))
        newer = await self.service.create_story(db_session, _story(seeded_village.id, title="Newer"))
        story = await db_session.get(Story, newer.id)
        story.approved = False
        await db_session.flush()

        stories = await self.service.list_stories(db_session)

        assert [s.title for s in stories] == ["Newer", "Older"]

    @pytest.mark.asyncio
    async def test_list_village_stories(self, db_session, seeded_village):
        await self.service.create_story(db_session, _story(seeded_village.id))

        assert len(await self.service.list_village_stories(db_session, seeded_village.id)) == 1
        assert await self.service.list_village_stories(db_session, uuid.uuid4()) == []


class TestPhotos:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_create_photo_stores_data_url(self, db_session, seeded_village, png_bytes):
        result = await self.service.create_photo(
            db_session,
            title="Temple at dusk",
            description=None,
            pincode="560001",
            village_name="Shivajinagar",
            filename="temple.png",
            content=png_bytes,
            content_type="image/png",
        )

        assert result.image_url.startswith("data:image/png;base64,")
        assert result.village == "Shivajinagar"
        assert result.pincode == "560001"

    @pytest.mark.asyncio
    async def test_missing_file(self, db_session, seeded_village):
        with pytest.raises(ValidationError, match="Missing required fields"):
            await self.service.create_photo(
                db_session, "Title", None, "560001", "Shivajinagar", None, None,
            )

    @pytest.mark.asyncio
    async def test_missing_title(self, db_session, seeded_village, png_bytes):
        with pytest.raises(ValidationError, match="Missing required fields"):
            await self.service.create_photo(
                db_session, "  ", None, "560001", "Shivajinagar", "a.png", png_bytes, "image/png",
            )

    @pytest.mark.asyncio
    async def test_unknown_village(self, db_session, seeded_village, png_bytes):
        with pytest.raises(NotFoundError):
            await self.service.create_photo(
                db_session, "Title", None, "560001", "Nowhere", "a.png", png_bytes, "image/png",
            )
        assert await _count(db_session, Photo) == 0

    @pytest.mark.asyncio
    async def test_list_hides_unapproved(self, db_session, seeded_village):
        db_session.add_all([
            Photo(title="Shown", image_url="data:image/png;base64,AA==", village_id=seeded_village.id),
            Photo(title="Hidden", image_url="data:image/png;base64,AA==",
                  village_id=seeded_village.id, approved=False),
        ])
        await db_session.flush()

        photos = await self.service.list_photos(db_session)

        assert [p.title for p in photos] == ["Shown"]


class TestFoods:

    def setup_method(self):
        self.service = ContentService()

    @pytest.mark.asyncio
    async def test_create_without_image(self, db_session, seeded_village):
        result = await self.service.create_food(
            db_session, "Bisi bele bath", "Spiced rice and lentils", "rice, dal", "560001", "Shivajinagar",
        )

        assert result.image_url is None
        assert result.ingredients == "rice, dal"

    @pytest.mark.asyncio
    async def test_create_with_image(self, db_session, seeded_village, png_bytes):
        result = await self.service.create_food(
            db_session, "Mysore pak", None, None, "560001", "Shivajinagar",
            filename="pak.jpg", content=png_bytes, content_type="image/jpeg",
        )
        # The bytes decide, not the declared type or the extension
        assert result.image_url.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_duplicate_dish_conflicts(self, db_session, seeded_village):
        await self.service.create_food(db_session, "Dosa", None, None, "560001", "Shivajinagar")
        await db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_food(db_session, "Dosa", "Again", None, "560001", "Shivajinagar")

        assert exc_info.value.message == DUPLICATE_FOOD_MESSAGE
        assert await _count(db_session, Food) == 1

    @pytest.mark.asyncio
    async def test_missing_name(self, db_session, seeded_village):
        with pytest.raises(ValidationError, match="Missing required fields"):
            await self.service.create_food(db_session, None, None, None, "560001", "Shivajinagar")


class TestSpecialties:

    def setup_method(self):
        self.service = ContentService()

    def _payload(self, title="Silk weaving"):
        return SpecialtyCreate(
            title=title, category="Craft", pincode="560001", village_name="Shivajinagar",
        )

    @pytest.mark.asyncio
    async def test_create(self, db_session, seeded_village):
        result = await self.service.create_specialty(db_session, self._payload())

        assert result.category == "Craft"
        assert result.description is None
        assert result.village == "Shivajinagar"

    @pytest.mark.asyncio
    async def test_duplicate_title_conflicts(self, db_session, seeded_village):
        await self.service.create_specialty(db_session, self._payload())
        await db_session.commit()

        with pytest.raises(ConflictError, match=DUPLICATE_SPECIALTY_MESSAGE):
            await self.service.create_specialty(db_session, self._payload())

        assert await _count(db_session, Specialty) == 1

    @pytest.mark.asyncio
    async def test_same_title_in_another_village_is_fine(self, db_session, seeded_village):
        from villagers.models import Village

        db_session.add(Village(name="Frazer Town", postal_area_id=seeded_village.postal_area_id))
        await db_session.flush()
        await self.service.create_specialty(db_session, self._payload())

        other = SpecialtyCreate(
            title="Silk weaving", category="Craft", pincode="560001", village_name="Frazer Town",
        )
        await self.service.create_specialty(db_session, other)

        assert await _count(db_session, Specialty) == 2

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session, seeded_village):
        await self.service.create_specialty(db_session, self._payload("First"))
        await self.service.create_specialty(db_session, self._payload("Second"))

        assert [s.title for s in await self.service.list_specialties(db_session)] == ["Second", "First"]
