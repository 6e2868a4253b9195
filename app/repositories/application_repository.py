"""
Application repository - database operations for Application.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pipeline_stages import INITIAL_STAGE
from app.models.application import Application
from app.schemas.application import ApplicationFields, ApplicationUpdate


class ApplicationRepository:
    """Repository for Application database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(
        self,
        application_id: UUID,
        organization_id: Optional[UUID] = None,
    ) -> Optional[Application]:
        """Get an application by ID, optionally restricted to one organization."""
        query = select(Application).where(Application.id == application_id)
        if organization_id is not None:
            query = query.where(Application.organization_id == organization_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_for_update(self, application_id: UUID) -> Optional[Application]:
        """
        Load an application holding its row lock until the transaction ends.

        populate_existing refreshes an instance already in the identity map,
        so a caller that waited on the lock sees the committed state.
        """
        result = await self.db.execute(
            select(Application)
            .where(Application.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_job_and_candidate(
        self,
        job_posting_id: UUID,
        candidate_id: str,
    ) -> Optional[Application]:
        """Get the application for a candidate-job pair if it exists."""
        result = await self.db.execute(
            select(Application).where(
                Application.job_posting_id == job_posting_id,
                Application.candidate_id == candidate_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_job(
        self,
        job_posting_id: UUID,
        stage: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Application]:
        """Applications for a job posting, oldest first."""
        query = select(Application).where(Application.job_posting_id == job_posting_id)

        if stage is not None:
            query = query.where(Application.stage == stage)

        query = query.order_by(Application.created_at.asc(), Application.id.asc())
        if limit is not None:
            query = query.limit(limit)
        query = query.offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_by_candidate(
        self,
        candidate_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Application]:
        """Applications submitted by a candidate, newest first."""
        result = await self.db.execute(
            select(Application)
            .where(Application.candidate_id == candidate_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def create(
        self,
        organization_id: UUID,
        job_posting_id: UUID,
        candidate_id: str,
        data: ApplicationFields,
    ) -> Application:
        """Create a new application in the initial stage."""
        application = Application(
            organization_id=organization_id,
            job_posting_id=job_posting_id,
            candidate_id=candidate_id,
            stage=INITIAL_STAGE.value,
            **data.model_dump(include=set(ApplicationFields.model_fields)),
        )
        self.db.add(application)
        await self.db.flush()
        await self.db.refresh(application)
        return application

    async def update_fields(
        self,
        application: Application,
        data: ApplicationUpdate,
    ) -> Application:
        """Update display fields. Never touches stage."""
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(application, field, value)

        await self.db.flush()
        return application

    async def update_stage(
        self,
        application: Application,
        new_stage: str,
        timestamp: datetime,
    ) -> Application:
        """
        Write a new stage onto an application.

        Only TransitionService calls this, inside the same transaction that
        appends the matching activity event. Raises StaleDataError on flush
        if the row's version moved since it was loaded.
        """
        application.stage = new_stage
        application.updated_at = timestamp
        await self.db.flush()
        return application

    async def count_by_stage(
        self,
        organization_id: UUID,
        job_posting_id: Optional[UUID] = None,
    ) -> Dict[str, int]:
        """Count applications per stage for an organization or one of its postings."""
        query = (
            select(Application.stage, func.count(Application.id))
            .where(Application.organization_id == organization_id)
            .group_by(Application.stage)
        )
        if job_posting_id is not None:
            query = query.where(Application.job_posting_id == job_posting_id)

        result = await self.db.execute(query)
        return {stage: count for stage, count in result.all()}

    async def list_job_posting_ids(self, organization_id: UUID) -> List[UUID]:
        """Distinct job postings that have applications in an organization."""
        result = await self.db.execute(
            select(Application.job_posting_id)
            .where(Application.organization_id == organization_id)
            .distinct()
        )
        return list(result.scalars().all())
