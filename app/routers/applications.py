"""
Applications router - API endpoints for the hiring pipeline.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_actor_id, get_db, get_organization_id
from app.schemas.activity import StageTransitionEventRead
from app.schemas.application import (
    ApplicationRead,
    ApplicationUpdate,
    ApplyRequest,
    HasAppliedRead,
    MoveStageRequest,
    NoteRequest,
)
from app.schemas.pipeline import PipelineSummary
from app.services.activity_log_service import ActivityLogService
from app.services.application_service import ApplicationService
from app.services.pipeline_aggregator_service import PipelineAggregatorService
from app.services.transition_service import TransitionService

router = APIRouter(prefix="/applications", tags=["applications"])


# ---- Candidate routes (no organization header) ----

@router.post("/apply", response_model=ApplicationRead, status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    request: ApplyRequest,
    candidate_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit an application to an open job posting."""
    service = ApplicationService(db)
    application = await service.apply(request.job_posting_id, candidate_id, request)
    await db.commit()
    return application


@router.get("/my", response_model=List[ApplicationRead])
async def get_my_applications(
    candidate_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
):
    """Applications submitted by the calling candidate, newest first."""
    service = ApplicationService(db)
    return await service.list_by_candidate(candidate_id, limit, offset)


@router.get("/check/{job_posting_id}", response_model=HasAppliedRead)
async def check_applied(
    job_posting_id: UUID,
    candidate_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Whether the calling candidate already applied to a posting."""
    service = ApplicationService(db)
    return HasAppliedRead(has_applied=await service.has_applied(job_posting_id, candidate_id))


# ---- Organization routes ----

@router.get("/job/{job_posting_id}", response_model=List[ApplicationRead])
async def get_applications_by_job(
    job_posting_id: UUID,
    organization_id: UUID = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
    stage: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
):
    """
    List applications for a job posting, oldest first.

    Returns every application unless limit is given.

    Filters: stage.
    """
    service = ApplicationService(db)
    return await service.list_by_job(organization_id, job_posting_id, stage, limit, offset)


@router.get("/pipeline-summary", response_model=PipelineSummary)
async def get_pipeline_summary(
    organization_id: UUID = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
    job_posting_id: Optional[UUID] = None,
):
    """Stage counts for the organization, or for one job posting."""
    service = PipelineAggregatorService(db)
    scope = await service.resolve_scope(organization_id, job_posting_id)
    return await service.summary(scope)


@router.post("/pipeline-summary/rebuild", response_model=PipelineSummary)
async def rebuild_pipeline_summary(
    organization_id: UUID = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
    job_posting_id: Optional[UUID] = None,
):
    """Recount stage counters from application records."""
    service = PipelineAggregatorService(db)
    scope = await service.resolve_scope(organization_id, job_posting_id)
    summary = await service.rebuild(scope)
    await db.commit()
    return summary


@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application(
    application_id: UUID,
    organization_id: UUID = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Get an application by ID."""
    service = ApplicationService(db)
    return await service.get_application(application_id, organization_id)


@router.put("/{application_id}", response_model=ApplicationRead)
async def update_application(
    application_id: UUID,
    data: ApplicationUpdate,
    organization_id: UUID = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Edit display fields. Stage changes go through PUT /{id}/stage."""
    service = ApplicationService(db)
    application = await service.update_application(organization_id, application_id, data)
    await db.commit()
    return application


@router.put("/{application_id}/stage", response_model=ApplicationRead)
async def move_application_stage(
    application_id: UUID,
    request: MoveStageRequest,
    organization_id: UUID = Depends(get_organization_id),
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Move an application to another pipeline stage."""
    service = TransitionService(db)
    result = await service.move_stage(
        organization_id=organization_id,
        application_id=application_id,
        target_stage=request.stage,
        actor_id=actor_id,
        note=request.note,
        expected_version=request.expected_version,
    )
    await db.commit()
    return result.application


@router.get("/{application_id}/activity", response_model=List[StageTransitionEventRead])
async def get_activity_history(
    application_id: UUID,
    organization_id: UUID = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Stage changes and notes for an application, oldest first."""
    service = ActivityLogService(db)
    return await service.history_for(organization_id, application_id)


@router.post(
    "/{application_id}/notes",
    response_model=StageTransitionEventRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_application_note(
    application_id: UUID,
    request: NoteRequest,
    organization_id: UUID = Depends(get_organization_id),
    actor_id: str = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Add a note to an application's activity history."""
    service = ActivityLogService(db)
    event = await service.add_note(organization_id, application_id, actor_id, request.note)
    await db.commit()
    return event
