"""
The Villagers Backend — Pincode Schemas
=========================================

What:  Response contract for GET /api/pincodes/{code} and the debug listing.
Who:   The frontend pincode selector renders `villages` as a dropdown and
       sends the chosen village id (or name) back with content submissions.
"""

import uuid
from typing import List

from pydantic import Field

from villagers.schemas.common import CamelModel


class VillageSummary(CamelModel):
    id: uuid.UUID = Field(description="Village identifier")
    name: str = Field(description="Village / post office name")


class PostalAreaResponse(CamelModel):
    """
    A resolved pincode.

    Example:
        {
            "id": "5b0c...",
            "code": "560001",
            "state": "Karnataka",
            "district": "Bangalore",
            "villages": [{"id": "9f1e...", "name": "Bangalore G.P.O."}]
        }
    """
    id: uuid.UUID
    code: str = Field(description="6-digit postal code")
    state: str
    district: str
    villages: List[VillageSummary] = Field(default_factory=list)
