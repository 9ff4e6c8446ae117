"""
The Villagers Backend — User Model
====================================

A user is nothing but a unique email address. No password, no session:
the row is created the first time someone submits a story with that email.
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villagers.database import Base
from villagers.models.geography import utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # UNIQUE: ContentService.ensure_user inserts with ON CONFLICT (email) DO NOTHING
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    stories: Mapped[List["Story"]] = relationship(back_populates="author")

    def __repr__(self) -> str:
        return f"<User(email='{self.email}')>"
