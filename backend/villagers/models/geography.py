"""
The Villagers Backend — Postal Area & Village Models
======================================================

What:  ORM models for the `postal_areas` and `villages` tables.
Who:   PincodeService materializes them; every content model points at Village.

Table Design:
    - postal_areas.code is UNIQUE: the resolver inserts with ON CONFLICT DO
      NOTHING on it, so two concurrent first lookups keep a single row.
    - villages has UNIQUE (name, postal_area_id): the directory can list the
      same office name twice, and repeated materialization must be a no-op.
    - Both are created once and never updated. Only the debug clear deletes them.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villagers.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostalArea(Base):
    """
    A 6-digit pincode with the state and district the directory reported
    for its first post office.
    """

    __tablename__ = "postal_areas"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    code: Mapped[str] = mapped_column(
        String(6),
        nullable=False,
        unique=True,
        comment="6-digit Indian postal code",
    )
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    villages: Mapped[List["Village"]] = relationship(
        back_populates="postal_area",
        order_by="Village.name",
    )

    def __repr__(self) -> str:
        return f"<PostalArea(code='{self.code}', district='{self.district}')>"


class Village(Base):
    """
    A named sub-location (one post office) inside a postal area.

    `approved` is always true at creation; nothing flips it. It stays a read
    filter for the pincode lookup.
    """

    __tablename__ = "villages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    postal_area_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("postal_areas.id"),
        nullable=False,
        index=True,
    )

    approved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    postal_area: Mapped[PostalArea] = relationship(back_populates="villages")

    # Content collections load newest first; approval filtering happens per query
    stories: Mapped[List["Story"]] = relationship(
        back_populates="village", order_by="Story.created_at.desc()"
    )
    photos: Mapped[List["Photo"]] = relationship(
        back_populates="village", order_by="Photo.created_at.desc()"
    )
    foods: Mapped[List["Food"]] = relationship(
        back_populates="village", order_by="Food.created_at.desc()"
    )
    specialties: Mapped[List["Specialty"]] = relationship(
        back_populates="village", order_by="Specialty.created_at.desc()"
    )

    __table_args__ = (
        UniqueConstraint("name", "postal_area_id", name="uq_villages_name_postal_area"),
    )

    def __repr__(self) -> str:
        return f"<Village(id={self.id}, name='{self.name}')>"
