"""
The Villagers Backend — Shared Schema Pieces
==============================================

What:  Base model with camelCase wire names, plus error and health responses.
How:   Python attributes stay snake_case; `alias_generator=to_camel` gives the
       JSON names the frontend reads (originalText, imageUrl, createdAt, ...).
       FastAPI serializes response models by alias.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every request/response model exposed over HTTP."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """
    Error body returned by every failing endpoint.

    Example:
        {"error": "This dish already exists for the selected village"}
    """
    error: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container health checks."""
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class StatusResponse(BaseModel):
    status: str
