"""
ORM models. Importing this package registers every table with Base.metadata
and lets string relationship targets ("Story", "Village", ...) resolve.
"""

from villagers.models.geography import PostalArea, Village
from villagers.models.user import User
from villagers.models.content import Story, Photo, Food, Specialty

__all__ = [
    "PostalArea",
    "Village",
    "User",
    "Story",
    "Photo",
    "Food",
    "Specialty",
]
