"""
PipelineStageCount model.

Persisted per-scope stage counters. These are a cache over the application
table and can always be recomputed from it.
"""

import uuid

from sqlalchemy import Integer, String, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class ScopeType:
    """Aggregation boundaries for stage counts."""
    ORGANIZATION = "organization"
    JOB_POSTING = "job_posting"

    ALL = [ORGANIZATION, JOB_POSTING]


class PipelineStageCount(Base):
    """pipeline_stage_count table - number of applications in a stage for a scope."""

    __tablename__ = "pipeline_stage_count"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    scope_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # organization id or job posting id, depending on scope_type
    scope_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    stage: Mapped[str] = mapped_column(String(20), nullable=False)

    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("scope_type", "scope_id", "stage", name="uq_pipeline_stage_count_scope_stage"),
        CheckConstraint("count >= 0", name="ck_pipeline_stage_count_non_negative"),
    )
