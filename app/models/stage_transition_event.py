"""
StageTransitionEvent model.

Append-only activity log for applications. Rows are never updated or
deleted; replaying the stage_change rows of an application from "applied"
yields its current stage.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.utils.time import utc_now


class ActivityKind:
    """Kinds of activity entries."""
    STAGE_CHANGE = "stage_change"
    NOTE = "note"

    ALL = [STAGE_CHANGE, NOTE]


class StageTransitionEvent(Base):
    """stage_transition_event table - one row per stage change or annotation."""

    __tablename__ = "stage_transition_event"

    # Monotonic id doubles as the insertion-order tie-break for equal timestamps
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("application.id"),
        nullable=False,
    )

    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
    )

    kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ActivityKind.STAGE_CHANGE,
    )

    from_stage: Mapped[str] = mapped_column(String(20), nullable=False)
    to_stage: Mapped[str] = mapped_column(String(20), nullable=False)

    # Who made the change (authenticated user id)
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)

    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_stage_transition_event_application", "application_id", "occurred_at", "id"),
    )
