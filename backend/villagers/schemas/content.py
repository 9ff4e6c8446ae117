"""
The Villagers Backend — Content Schemas
=========================================

What:  Request bodies and display-ready responses for stories, photos,
       foods and specialties.

Response shaping:
    Responses are denormalized for direct display: the village entity is
    flattened to its name and the parent postal code string, so the frontend
    never needs a second request to label a card.

    Photo and food uploads arrive as multipart forms, so they have no request
    model here; their form fields are declared on the route.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field

from villagers.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class StoryCreate(CamelModel):
    """Body of POST /api/stories."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    original_text: str = Field(min_length=1)
    original_lang: str = Field(default="en", min_length=1, max_length=16)
    village_id: uuid.UUID
    author_email: str = Field(min_length=3, max_length=320)


class SpecialtyCreate(CamelModel):
    """Body of POST /api/specialties (JSON, no image upload)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    category: str = Field(min_length=1, max_length=100)
    pincode: str = Field(min_length=1)
    village_name: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorRef(CamelModel):
    email: str


class VillageRef(CamelModel):
    id: uuid.UUID
    name: str
    pincode: str = Field(description="Parent postal area code")


class StoryResponse(CamelModel):
    """
    A story with its author email and village context.

    Returned by POST /api/stories, GET /api/stories and
    GET /api/stories/village/{villageId}.
    """
    id: uuid.UUID
    title: str
    original_text: str
    original_lang: str
    created_at: datetime
    author: AuthorRef
    village: VillageRef


class PhotoResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    image_url: str = Field(description="Inline data URL (data:<mime>;base64,...)")
    village: str = Field(description="Village name")
    pincode: str


class FoodResponse(CamelModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    ingredients: Optional[str] = None
    image_url: Optional[str] = None
    village: str
    pincode: str


class SpecialtyResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: str
    image_url: Optional[str] = None
    village: str
    pincode: str
