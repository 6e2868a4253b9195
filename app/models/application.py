"""
Application model.

One candidate's submission to one job posting, and its current position in
the hiring pipeline.
"""

import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.pipeline_stages import INITIAL_STAGE, ORDERED_STAGES
from app.models.base_model import OrganizationScopedModel


class Application(OrganizationScopedModel):
    """
    Application table.

    `stage` is a materialized copy of the last stage_change event in the
    activity log and is only written by the transition service. `version`
    is bumped by SQLAlchemy on every UPDATE; a write against a stale
    version fails with StaleDataError.
    """

    __tablename__ = "application"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("job_posting.id"),
        nullable=False,
    )

    # Authenticated subject id of the candidate
    candidate_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Display-only candidate details
    candidate_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    candidate_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cover_letter: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resume_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    stage: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=INITIAL_STAGE.value,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("job_posting_id", "candidate_id", name="uq_application_job_candidate"),
        Index("ix_application_job_stage", "job_posting_id", "stage"),
        Index("ix_application_org_stage", "organization_id", "stage"),
        CheckConstraint(
            "stage IN (" + ", ".join(f"'{s.value}'" for s in ORDERED_STAGES) + ")",
            name="ck_application_stage",
        ),
    )
