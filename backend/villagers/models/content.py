"""
The Villagers Backend — Content Models
========================================

What:  The four content kinds attached to a village: Story, Photo, Food, Specialty.
Who:   Written by ContentService, read by ContentService listings and VillageService.

Shared shape:
    Every row belongs to exactly one village, carries `approved` (always true
    at creation) and a UTC `created_at` indexed for newest-first listings.

    Images (photo, food, specialty) live inline in `image_url` as
    `data:<mime>;base64,<payload>` strings.

Uniqueness:
    foods       UNIQUE (name, village_id)   → duplicate dish → 409
    specialties UNIQUE (title, village_id)  → duplicate specialty → 409
    stories and photos have no uniqueness rule.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villagers.database import Base
from villagers.models.geography import Village, utcnow
from villagers.models.user import User


def _village_fk() -> Mapped[uuid.UUID]:
    return mapped_column(Uuid, ForeignKey("villages.id"), nullable=False, index=True)


def _approved() -> Mapped[bool]:
    # Dev mode: everything is visible immediately, nothing moderates it.
    return mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class Story(Base):
    """A written story in its original language, signed by an email."""

    __tablename__ = "stories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    original_lang: Mapped[str] = mapped_column(
        String(16), nullable=False, default="en", server_default=text("'en'")
    )
    village_id: Mapped[uuid.UUID] = _village_fk()
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    approved: Mapped[bool] = _approved()
    created_at: Mapped[datetime] = _created_at()

    village: Mapped[Village] = relationship(back_populates="stories")
    author: Mapped[User] = relationship(back_populates="stories")

    __table_args__ = (Index("idx_stories_created_at", "created_at"),)


class Photo(Base):
    """An uploaded photograph with a title and optional caption."""

    __tablename__ = "photos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    village_id: Mapped[uuid.UUID] = _village_fk()
    approved: Mapped[bool] = _approved()
    created_at: Mapped[datetime] = _created_at()

    village: Mapped[Village] = relationship(back_populates="photos")

    __table_args__ = (Index("idx_photos_created_at", "created_at"),)


class Food(Base):
    """A local dish: name, description, ingredients and an optional picture."""

    __tablename__ = "foods"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ingredients: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    village_id: Mapped[uuid.UUID] = _village_fk()
    approved: Mapped[bool] = _approved()
    created_at: Mapped[datetime] = _created_at()

    village: Mapped[Village] = relationship(back_populates="foods")

    __table_args__ = (
        UniqueConstraint("name", "village_id", name="uq_foods_name_village"),
        Index("idx_foods_created_at", "created_at"),
    )


class Specialty(Base):
    """Something a village is known for (craft, festival, produce...)."""

    __tablename__ = "specialties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    village_id: Mapped[uuid.UUID] = _village_fk()
    approved: Mapped[bool] = _approved()
    created_at: Mapped[datetime] = _created_at()

    village: Mapped[Village] = relationship(back_populates="specialties")

    __table_args__ = (
        UniqueConstraint("title", "village_id", name="uq_specialties_title_village"),
        Index("idx_specialties_created_at", "created_at"),
    )
