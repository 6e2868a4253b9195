"""
Pipeline aggregator - live stage counts per organization and job posting.

Counters are adjusted inside the same transaction as the application write
that caused them (apply or stage move), so a committed state always has
matching counters. `rebuild` recounts from the application table and is the
repair path if counters ever drift.
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pipeline_stages import empty_counts
from app.errors import NotFound
from app.models.application import Application
from app.models.pipeline_stage_count import ScopeType
from app.repositories.application_repository import ApplicationRepository
from app.repositories.job_posting_repository import JobPostingRepository
from app.repositories.pipeline_count_repository import PipelineCountRepository
from app.schemas.pipeline import PipelineScope, PipelineSummary

logger = logging.getLogger(__name__)


def _scope_key(scope: PipelineScope) -> tuple[str, UUID]:
    if scope.is_job_scope:
        return ScopeType.JOB_POSTING, scope.job_posting_id
    return ScopeType.ORGANIZATION, scope.organization_id


def scopes_for(application: Application) -> List[PipelineScope]:
    """Every scope an application is counted in."""
    return [
        PipelineScope(organization_id=application.organization_id),
        PipelineScope(
            organization_id=application.organization_id,
            job_posting_id=application.job_posting_id,
        ),
    ]


class PipelineAggregatorService:
    """Service for pipeline stage counters."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.counts = PipelineCountRepository(db)
        self.applications = ApplicationRepository(db)
        self.job_postings = JobPostingRepository(db)

    async def resolve_scope(
        self,
        organization_id: UUID,
        job_posting_id: Optional[UUID] = None,
    ) -> PipelineScope:
        """Build a scope, checking that a job posting belongs to the organization."""
        if job_posting_id is not None:
            posting = await self.job_postings.get_by_id(job_posting_id, organization_id)
            if posting is None:
                raise NotFound("Job posting not found", {"job_posting_id": str(job_posting_id)})
        return PipelineScope(organization_id=organization_id, job_posting_id=job_posting_id)

    async def summary(self, scope: PipelineScope) -> PipelineSummary:
        """Current stage counts for a scope, with every stage present."""
        scope_type, scope_id = _scope_key(scope)
        counts = empty_counts()
        counts.update(await self.counts.get_counts(scope_type, scope_id))
        return self._to_summary(scope, counts)

    async def on_create(self, scope: PipelineScope, initial_stage: str) -> None:
        """Count a newly created application."""
        scope_type, scope_id = _scope_key(scope)
        await self.counts.increment(scope_type, scope_id, initial_stage)

    async def on_transition(self, scope: PipelineScope, from_stage: str, to_stage: str) -> None:
        """Move one application's count from one stage to another."""
        scope_type, scope_id = _scope_key(scope)
        # Rows are written in stage-name order, matching lock_scope
        if to_stage < from_stage:
            await self.counts.increment(scope_type, scope_id, to_stage)
            decremented = await self.counts.decrement(scope_type, scope_id, from_stage)
        else:
            decremented = await self.counts.decrement(scope_type, scope_id, from_stage)
            await self.counts.increment(scope_type, scope_id, to_stage)
        if not decremented:
            logger.warning(
                "Pipeline counter drift: %s %s had no %s count to decrement; run rebuild",
                scope_type,
                scope_id,
                from_stage,
            )

    async def rebuild(self, scope: PipelineScope) -> PipelineSummary:
        """
        Recompute a scope's counters from application rows and store them.

        Differences from the stored counters are logged, not raised. The
        scope's counter rows are locked before counting, so a stage move
        that already adjusted them commits first and one that has not yet
        waits until the rebuilt values are committed.
        """
        scope_type, scope_id = _scope_key(scope)
        actual = empty_counts()
        await self.counts.lock_scope(scope_type, scope_id, actual)

        actual.update(
            await self.applications.count_by_stage(scope.organization_id, scope.job_posting_id)
        )
        stored = await self.counts.get_counts(scope_type, scope_id)

        drift: Dict[str, Dict[str, int]] = {
            stage: {"stored": stored.get(stage, 0), "actual": count}
            for stage, count in actual.items()
            if stored.get(stage, 0) != count
        }
        if drift:
            logger.warning("Pipeline counter drift repaired for %s %s: %s", scope_type, scope_id, drift)
        else:
            logger.debug("Pipeline counters consistent for %s %s", scope_type, scope_id)

        await self.counts.replace_counts(scope_type, scope_id, actual)
        return self._to_summary(scope, actual)

    async def rebuild_organization(self, organization_id: UUID) -> List[PipelineSummary]:
        """Rebuild the organization scope and every job posting scope under it."""
        job_ids = set(await self.job_postings.list_ids_for_organization(organization_id))
        job_ids.update(await self.applications.list_job_posting_ids(organization_id))

        summaries = [await self.rebuild(PipelineScope(organization_id=organization_id))]
        for job_posting_id in sorted(job_ids, key=str):
            summaries.append(
                await self.rebuild(
                    PipelineScope(organization_id=organization_id, job_posting_id=job_posting_id)
                )
            )
        return summaries

    def _to_summary(self, scope: PipelineScope, counts: Dict[str, int]) -> PipelineSummary:
        return PipelineSummary(
            organization_id=scope.organization_id,
            job_posting_id=scope.job_posting_id,
            counts=counts,
            total=sum(counts.values()),
        )
