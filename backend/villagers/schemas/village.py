"""
The Villagers Backend — Village Aggregate Schemas
===================================================

Two read projections over the same village graph. They overlap but are
shaped differently because different frontend pages consume them:

    /api/village-details/{id}  → VillageDetailsResponse
        village header + raw content rows; the food list is named `food`.

    /api/villages/{id}         → VillageProfileResponse
        flat header with district/state + trimmed, renamed content fields
        (story `text`, photo `url`/`caption`, author as a bare email).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from villagers.schemas.common import CamelModel
from villagers.schemas.content import VillageRef


# ── /api/village-details rows (column sets as stored) ─────────────────────

class StoryRow(CamelModel):
    id: uuid.UUID
    title: str
    original_text: str
    original_lang: str
    approved: bool
    created_at: datetime
    village_id: uuid.UUID
    author_id: uuid.UUID


class PhotoRow(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    image_url: str
    approved: bool
    created_at: datetime
    village_id: uuid.UUID


class FoodRow(CamelModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    ingredients: Optional[str] = None
    image_url: Optional[str] = None
    approved: bool
    created_at: datetime
    village_id: uuid.UUID


class SpecialtyRow(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: str
    image_url: Optional[str] = None
    approved: bool
    created_at: datetime
    village_id: uuid.UUID


class VillageDetailsResponse(CamelModel):
    village: VillageRef
    stories: List[StoryRow]
    food: List[FoodRow]
    specialties: List[SpecialtyRow]
    photos: List[PhotoRow]


# ── /api/villages profile ─────────────────────────────────────────────────

class ProfileStory(CamelModel):
    id: uuid.UUID
    title: str
    text: str
    created_at: datetime
    author: str


class ProfilePhoto(CamelModel):
    id: uuid.UUID
    url: str
    caption: Optional[str] = None


class ProfileFood(CamelModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None


class ProfileSpecialty(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: str
    image_url: Optional[str] = None


class VillageProfileResponse(CamelModel):
    id: uuid.UUID
    name: str
    pincode: str
    district: str
    state: str
    stories: List[ProfileStory]
    photos: List[ProfilePhoto]
    foods: List[ProfileFood]
    specialties: List[ProfileSpecialty]
