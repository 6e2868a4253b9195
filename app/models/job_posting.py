"""
JobPosting model.

Read-only view of the job posting catalog. Postings are created and edited
elsewhere; the pipeline only checks that a posting exists, which
organization owns it, and whether it is open for applications.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base_model import OrganizationScopedModel


class JobPostingStatus:
    """Posting lifecycle values."""
    DRAFT = "draft"
    OPEN = "open"
    CLOSED = "closed"

    ALL = [DRAFT, OPEN, CLOSED]


class JobPosting(OrganizationScopedModel):
    """JobPosting table - an opening candidates apply to."""

    __tablename__ = "job_posting"

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=JobPostingStatus.OPEN,
    )
