"""
The Villagers Backend — Pincode Resolver Tests
================================================

What:  Tests for pincode validation, directory payload parsing and the
       storage-first resolution in PincodeService.
How:   Real in-memory SQLite database; the postal directory is an AsyncMock.

What we test:
    ✅ Malformed codes fail before any storage or directory access
    ✅ First lookup stores one area and deduplicated villages
    ✅ Second lookup is served from storage with no directory call
    ✅ A non-"Success" directory answer stores nothing
    ✅ Unapproved villages are hidden from cached lookups
    ✅ Directory failures propagate as DirectoryServiceError
    ✅ Re-materializing stored rows keeps one area and the same village ids
    ✅ SQLAlchemy failures surface as DatabaseError
    ✅ Debug listing and clear
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from villagers.exceptions import DatabaseError, DirectoryServiceError, NotFoundError, ValidationError
from villagers.models import Food, PostalArea, Story, User, Village
from villagers.services.pincode_service import (
    PincodeService,
    extract_post_offices,
    validate_pincode,
)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestValidatePincode:

    def test_six_digits_accepted(self):
        assert validate_pincode("560001") == "560001"

    @pytest.mark.parametrize("code", ["56000", "5600011", "56a001", "", " 560001", "560 01"])
    def test_malformed_rejected(self, code):
        with pytest.raises(ValidationError, match="Invalid pincode"):
            validate_pincode(code)

    def test_non_ascii_digits_rejected(self):
        """Devanagari digits are digits to str.isdigit, but not pincodes."""
        with pytest.raises(ValidationError):
            validate_pincode("५६०००१")

    def test_none_rejected(self):
        with pytest.raises(ValidationError):
            validate_pincode(None)


class TestExtractPostOffices:

    def test_success_payload(self, directory_payload):
        offices = extract_post_offices(directory_payload)
        assert [o["Name"] for o in offices] == ["Bangalore G.P.O.", "Shivajinagar", "Bangalore G.P.O."]

    def test_error_status(self):
        assert extract_post_offices([{"Status": "Error", "PostOffice": None}]) == []

    def test_success_with_null_post_offices(self):
        assert extract_post_offices([{"Status": "Success", "PostOffice": None}]) == []

    def test_empty_payload(self):
        assert extract_post_offices([]) == []

    def test_only_first_element_is_consulted(self):
        payload = [
            {"Status": "Error", "PostOffice": None},
            {"Status": "Success", "PostOffice": [{"Name": "Ignored"}]},
        ]
        assert extract_post_offices(payload) == []


class TestResolve:

    def setup_method(self):
        self.service = PincodeService()

    @pytest.mark.asyncio
    async def test_invalid_code_touches_nothing(self, db_session, mock_directory):
        with pytest.raises(ValidationError):
            await self.service.resolve(db_session, "12345")

        mock_directory.lookup.assert_not_awaited()
        assert await _count(db_session, PostalArea) == 0

    @pytest.mark.asyncio
    async def test_first_lookup_materializes_area_and_villages(self, db_session, mock_directory):
        result = await self.service.resolve(db_session, "560001")

        mock_directory.lookup.assert_awaited_once_with("560001")
        assert result.code == "560001"
        assert result.state == "Karnataka"
        assert result.district == "Bangalore"
        # Duplicate "Bangalore G.P.O." collapses to one village; ordered by name
        assert [v.name for v in result.villages] == ["Bangalore G.P.O.", "Shivajinagar"]
        assert await _count(db_session, PostalArea) == 1
        assert await _count(db_session, Village) == 2

    @pytest.mark.asyncio
    async def test_second_lookup_served_from_storage(self, db_session, mock_directory):
        first = await self.service.resolve(db_session, "560001")
        await db_session.commit()

        second = await self.service.resolve(db_session, "560001")

        assert mock_directory.lookup.await_count == 1
        assert second.id == first.id
        assert [(v.id, v.name) for v in second.villages] == [(v.id, v.name) for v in first.villages]

    @pytest.mark.asyncio
    async def test_non_success_status_creates_nothing(self, db_session, mock_directory):
        mock_directory.lookup.return_value = [{"Message": "No records found", "Status": "Error", "PostOffice": None}]

        with pytest.raises(NotFoundError, match="Pincode not found"):
            await self.service.resolve(db_session, "999999")

        assert await _count(db_session, PostalArea) == 0
        assert await _count(db_session, Village) == 0

    @pytest.mark.asyncio
    async def test_directory_failure_propagates(self, db_session, mock_directory):
        mock_directory.lookup.side_effect = DirectoryServiceError(context={"code": "560001"})

        with pytest.raises(DirectoryServiceError):
            await self.service.resolve(db_session, "560001")

        assert await _count(db_session, PostalArea) == 0

    @pytest.mark.asyncio
    async def test_cached_lookup_hides_unapproved_villages(self, db_session, mock_directory):
        first = await self.service.resolve(db_session, "560001")
        hidden = Village(name="Hidden Hamlet", postal_area_id=first.id, approved=False)
        db_session.add(hidden)
        await db_session.commit()

        result = await self.service.resolve(db_session, "560001")

        assert "Hidden Hamlet" not in [v.name for v in result.villages]
        assert len(result.villages) == 2

    @pytest.mark.asyncio
    async def test_stored_area_without_villages_is_not_refreshed(self, db_session, mock_directory):
        """A stored area is final, even when it has no approved village."""
        area = PostalArea(code="560001", state="Karnataka", district="Bangalore")
        db_session.add(area)
        await db_session.commit()

        result = await self.service.resolve(db_session, "560001")

        mock_directory.lookup.assert_not_awaited()
        assert result.id == area.id
        assert result.villages == []

    @pytest.mark.asyncio
    async def test_materialize_over_existing_rows_keeps_them(self, db_session, directory_payload):
        """A concurrent request already stored the area and its villages."""
        offices = extract_post_offices(directory_payload)
        first = await self.service._materialize(db_session, "560001", offices)
        first_ids = {v.name: v.id for v in first.villages}
        await db_session.commit()
        db_session.expunge_all()

        # Both inserts now collide: area on code, villages on (name, area)
        second = await self.service._materialize(db_session, "560001", offices)
        await db_session.commit()

        assert second.id == first.id
        assert {v.name: v.id for v in second.villages} == first_ids
        assert await _count(db_session, PostalArea) == 1
        assert await _count(db_session, Village) == 2

    @pytest.mark.asyncio
    async def test_materialize_adds_only_new_villages(self, db_session, seeded_village):
        offices = [
            {"Name": "Shivajinagar", "District": "Bangalore", "State": "Karnataka"},
            {"Name": "Cubbonpet", "District": "Bangalore", "State": "Karnataka"},
        ]

        area = await self.service._materialize(db_session, "560001", offices)

        assert area.id == seeded_village.postal_area_id
        by_name = {v.name: v.id for v in area.villages}
        assert set(by_name) == {"Cubbonpet", "Shivajinagar"}
        assert by_name["Shivajinagar"] == seeded_village.id
        assert await _count(db_session, PostalArea) == 1

    @pytest.mark.asyncio
    async def test_database_failure_surfaces_as_database_error(self, mock_directory):
        broken = AsyncMock()
        broken.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.resolve(broken, "560001")

        assert exc_info.value.context == {"operation": "resolve", "original_error": "OperationalError"}
        assert isinstance(exc_info.value.__cause__, OperationalError)
        mock_directory.lookup.assert_not_awaited()


class TestDebugOperations:

    def setup_method(self):
        self.service = PincodeService()

    @pytest.mark.asyncio
    async def test_list_all_villages(self, db_session, mock_directory):
        await self.service.resolve(db_session, "560001")

        villages = await self.service.list_all_villages(db_session)

        assert [v.name for v in villages] == ["Bangalore G.P.O.", "Shivajinagar"]

    @pytest.mark.asyncio
    async def test_clear_all_removes_every_row(self, db_session, seeded_village):
        user = User(email="asha@example.com")
        db_session.add(user)
        db_session.add(Story(title="T", original_text="Once", village_id=seeded_village.id, author=user))
        db_session.add(Food(name="Dosa", village_id=seeded_village.id))
        await db_session.commit()

        result = await self.service.clear_all(db_session)
        await db_session.commit()

        assert result.status == "cleared"
        for model in (Story, Food, User, Village, PostalArea):
            assert await _count(db_session, model) == 0
