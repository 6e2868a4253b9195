"""
Activity log Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from app.utils.time import ensure_utc


class StageTransitionEventRead(BaseModel):
    """Schema for reading an activity entry (API response)."""

    id: int
    application_id: UUID
    organization_id: UUID
    kind: str
    from_stage: str
    to_stage: str
    actor_id: str
    note: Optional[str] = None
    occurred_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("occurred_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

