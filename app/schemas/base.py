"""
Base Pydantic schemas with common fields.

These are templates that other schemas inherit from.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from app.utils.time import ensure_utc


class OrganizationScopedRead(BaseModel):
    """
    Base schema for reading organization-scoped data.

    Includes all the auto-generated fields like id, timestamps, etc.
    """

    id: UUID
    organization_id: UUID
    created_at: datetime
    updated_at: datetime

    # This tells Pydantic to work with SQLAlchemy models
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)
