"""
The Villagers Backend — Pincode Resolver
==========================================

What:  Maps a 6-digit pincode to {state, district, villages[]}, populating
       the database from the postal directory on first use.
Who:   GET /api/pincodes/{code} and the debug routes.

Resolution Flow:
    ┌──────────┐   hit   ┌────────────────────────────────┐
    │ validate │──▶ DB ──▶ return area + approved villages │
    └──────────┘    │    └────────────────────────────────┘
                    │ miss
                    ▼
            postal directory ──(not "Success" / empty)──▶ NotFoundError
                    │
                    ▼
      INSERT area ON CONFLICT (code) DO NOTHING
      INSERT villages ON CONFLICT (name, area) DO NOTHING
      re-read area with ALL villages ──▶ return

    A cached area is never refreshed. All writes share the request
    transaction opened by get_db_session.
"""

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from villagers.database import insert_ignore_conflicts, translate_database_errors
from villagers.exceptions import NotFoundError, ValidationError
from villagers.models import Food, Photo, PostalArea, Specialty, Story, User, Village
from villagers.schemas.common import StatusResponse
from villagers.schemas.pincode import PostalAreaResponse, VillageSummary
from villagers.services.postal_directory import postal_directory

logger = logging.getLogger(__name__)

# ASCII digits only; \d would also accept other Unicode digit characters
PINCODE_PATTERN = re.compile(r"[0-9]{6}")


def validate_pincode(code: Optional[str]) -> str:
    """Raise ValidationError unless `code` is exactly six ASCII digits."""
    if code is None or not PINCODE_PATTERN.fullmatch(code):
        raise ValidationError(message="Invalid pincode", field="code", context={"code": code})
    return code


def extract_post_offices(payload: List[Any]) -> List[Dict[str, Any]]:
    """
    Pull the post office records out of a directory payload.

    Only the first element is consulted. Anything other than
    Status == "Success" with a non-empty PostOffice list yields [].
    """
    if not payload:
        return []
    first = payload[0]
    if not isinstance(first, dict) or first.get("Status") != "Success":
        return []
    offices = first.get("PostOffice") or []
    return [office for office in offices if isinstance(office, dict) and office.get("Name")]


class PincodeService:
    """
    Storage-backed pincode resolution.

    The "cache" is the postal_areas table itself; there is no in-memory layer.
    """

    @translate_database_errors("resolve")
    async def resolve(self, db: AsyncSession, code: str) -> PostalAreaResponse:
        """
        Resolve a pincode, fetching and persisting it on a miss.

        Raises:
            ValidationError: code is not six digits (before any I/O).
            NotFoundError: the directory does not know the code.
            DirectoryServiceError: the directory could not be reached.
        """
        validate_pincode(code)

        # ── Step 1: storage lookup ────────────────────────────────────────
        area = await self._load_area(db, code, approved_only=True)
        if area is not None:
            logger.debug("Pincode %s served from storage (%d villages)", code, len(area.villages))
            return self._to_response(area)

        # ── Step 2: directory fallback ────────────────────────────────────
        logger.info("Pincode %s not stored; querying postal directory", code)
        payload = await postal_directory.lookup(code)
        post_offices = extract_post_offices(payload)
        if not post_offices:
            logger.info("Postal directory has no match for %s", code)
            raise NotFoundError(resource="Pincode", resource_id=code)

        # ── Step 3: materialize ───────────────────────────────────────────
        area = await self._materialize(db, code, post_offices)
        logger.info(
            "Stored pincode %s (%s, %s) with %d villages",
            code, area.district, area.state, len(area.villages),
        )
        return self._to_response(area)

    async def _materialize(
        self,
        db: AsyncSession,
        code: str,
        post_offices: List[Dict[str, Any]],
    ) -> PostalArea:
        first = post_offices[0]
        await insert_ignore_conflicts(
            db,
            PostalArea,
            [{
                "id": uuid.uuid4(),
                "code": code,
                "state": first.get("State") or "",
                "district": first.get("District") or "",
            }],
            conflict_columns=["code"],
        )
        # The row may come from a concurrent request; read back whichever won
        area_id = (
            await db.execute(select(PostalArea.id).where(PostalArea.code == code))
        ).scalar_one()

        names = list(dict.fromkeys(office["Name"].strip() for office in post_offices))
        await insert_ignore_conflicts(
            db,
            Village,
            [
                {"id": uuid.uuid4(), "name": name, "postal_area_id": area_id, "approved": True}
                for name in names
                if name
            ],
            conflict_columns=["name", "postal_area_id"],
        )

        area = await self._load_area(db, code, approved_only=False)
        if area is None:  # pragma: no cover - the row was just selected above
            raise NotFoundError(resource="Pincode", resource_id=code)
        return area

    async def _load_area(
        self,
        db: AsyncSession,
        code: str,
        approved_only: bool,
    ) -> Optional[PostalArea]:
        villages = PostalArea.villages
        if approved_only:
            villages = villages.and_(Village.approved.is_(True))

        result = await db.execute(
            select(PostalArea)
            .where(PostalArea.code == code)
            .options(selectinload(villages))
            # The session may already hold this area with a differently
            # filtered collection; reload it with this query's criteria.
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_response(area: PostalArea) -> PostalAreaResponse:
        return PostalAreaResponse(
            id=area.id,
            code=area.code,
            state=area.state,
            district=area.district,
            villages=[VillageSummary(id=v.id, name=v.name) for v in area.villages],
        )

    # ══════════════════════════════════════════════════════════════════════
    # Debug operations
    # ══════════════════════════════════════════════════════════════════════

    @translate_database_errors("list_all_villages")
    async def list_all_villages(self, db: AsyncSession) -> List[VillageSummary]:
        result = await db.execute(select(Village.id, Village.name).order_by(Village.name))
        return [VillageSummary(id=row.id, name=row.name) for row in result]

    @translate_database_errors("clear_all")
    async def clear_all(self, db: AsyncSession) -> StatusResponse:
        """Delete every row of every table, children before parents."""
        for model in (Story, Photo, Food, Specialty, User, Village, PostalArea):
            await db.execute(delete(model))
        logger.warning("All tables cleared through the debug endpoint")
        return StatusResponse(status="cleared")


# ── Singleton Instance ────────────────────────────────────────────────────
pincode_service = PincodeService()
