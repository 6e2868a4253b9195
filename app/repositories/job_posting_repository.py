"""
JobPosting repository - read access to the job posting catalog.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job_posting import JobPosting


class JobPostingRepository:
    """Repository for JobPosting lookups."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(
        self,
        job_posting_id: UUID,
        organization_id: Optional[UUID] = None,
    ) -> Optional[JobPosting]:
        """Get a job posting by ID, optionally restricted to one organization."""
        query = select(JobPosting).where(JobPosting.id == job_posting_id)
        if organization_id is not None:
            query = query.where(JobPosting.organization_id == organization_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def exists(self, job_posting_id: UUID) -> bool:
        """Return True if the job posting exists."""
        result = await self.db.execute(
            select(JobPosting.id).where(JobPosting.id == job_posting_id)
        )
        return result.scalar_one_or_none() is not None

    async def list_ids_for_organization(self, organization_id: UUID) -> list[UUID]:
        """IDs of every posting owned by an organization."""
        result = await self.db.execute(
            select(JobPosting.id)
            .where(JobPosting.organization_id == organization_id)
            .order_by(JobPosting.created_at.asc())
        )
        return list(result.scalars().all())
