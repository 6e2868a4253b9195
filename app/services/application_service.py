"""
Application business logic service.

Owns applying to a job and reading applications. Stage changes are not
made here; see TransitionService.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pipeline_stages import INITIAL_STAGE, is_valid_stage
from app.errors import ConflictRetry, DuplicateApplication, InvalidStage, JobPostingClosed, NotFound
from app.models.application import Application
from app.models.job_posting import JobPostingStatus
from app.repositories.application_repository import ApplicationRepository
from app.repositories.job_posting_repository import JobPostingRepository
from app.schemas.application import ApplicationFields, ApplicationUpdate
from app.services.pipeline_aggregator_service import PipelineAggregatorService, scopes_for

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service for application records."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ApplicationRepository(db)
        self.job_postings = JobPostingRepository(db)
        self.aggregator = PipelineAggregatorService(db)

    async def apply(
        self,
        job_posting_id: UUID,
        candidate_id: str,
        data: ApplicationFields,
    ) -> Application:
        """
        Submit a candidate's application to an open job posting.

        Raises:
            NotFound: The posting does not exist
            JobPostingClosed: The posting is not open
            DuplicateApplication: The candidate already applied to this posting
        """
        posting = await self.job_postings.get_by_id(job_posting_id)
        if posting is None:
            raise NotFound("Job posting not found", {"job_posting_id": str(job_posting_id)})
        if posting.status != JobPostingStatus.OPEN:
            raise JobPostingClosed(job_posting_id, posting.status)

        existing = await self.repository.get_by_job_and_candidate(job_posting_id, candidate_id)
        if existing is not None:
            raise DuplicateApplication(details={"application_id": str(existing.id)})

        try:
            application = await self.repository.create(
                organization_id=posting.organization_id,
                job_posting_id=job_posting_id,
                candidate_id=candidate_id,
                data=data,
            )
        except IntegrityError as exc:
            # A concurrent apply for the same pair won the unique constraint
            raise DuplicateApplication() from exc

        for scope in scopes_for(application):
            await self.aggregator.on_create(scope, INITIAL_STAGE.value)

        logger.info(
            "Application %s created for job %s (candidate %s)",
            application.id,
            job_posting_id,
            candidate_id,
        )
        return application

    async def get_application(
        self,
        application_id: UUID,
        organization_id: Optional[UUID] = None,
    ) -> Application:
        """Get an application, raising NotFound when absent or owned elsewhere."""
        application = await self.repository.get_by_id(application_id, organization_id)
        if application is None:
            raise NotFound("Application not found", {"application_id": str(application_id)})
        return application

    async def list_by_job(
        self,
        organization_id: UUID,
        job_posting_id: UUID,
        stage: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Application]:
        """Applications for one of the organization's postings, oldest first."""
        if stage is not None and not is_valid_stage(stage):
            raise InvalidStage(stage)

        posting = await self.job_postings.get_by_id(job_posting_id, organization_id)
        if posting is None:
            raise NotFound("Job posting not found", {"job_posting_id": str(job_posting_id)})

        return await self.repository.list_by_job(job_posting_id, stage, limit, offset)

    async def list_by_candidate(
        self,
        candidate_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Application]:
        """Applications a candidate has submitted."""
        return await self.repository.list_by_candidate(candidate_id, limit, offset)

    async def has_applied(self, job_posting_id: UUID, candidate_id: str) -> bool:
        """Return True if the candidate already applied to the posting."""
        if not await self.job_postings.exists(job_posting_id):
            raise NotFound("Job posting not found", {"job_posting_id": str(job_posting_id)})
        existing = await self.repository.get_by_job_and_candidate(job_posting_id, candidate_id)
        return existing is not None

    async def update_application(
        self,
        organization_id: UUID,
        application_id: UUID,
        data: ApplicationUpdate,
    ) -> Application:
        """Edit an application's display fields."""
        application = await self.get_application(application_id, organization_id)
        try:
            return await self.repository.update_fields(application, data)
        except StaleDataError as exc:
            logger.warning("Concurrent edit of application %s", application_id)
            raise ConflictRetry() from exc
