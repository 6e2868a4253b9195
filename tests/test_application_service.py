"""Application store tests: apply, dedupe, reads and field edits."""

import uuid

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from app.errors import DuplicateApplication, InvalidStage, JobPostingClosed, NotFound
from app.models.application import Application
from app.models.job_posting import JobPostingStatus
from app.schemas.application import ApplicationFields, ApplicationUpdate
from app.schemas.pipeline import PipelineScope
from app.services.application_service import ApplicationService
from app.services.pipeline_aggregator_service import PipelineAggregatorService
from app.services.transition_service import TransitionService


async def _count_applications(session, job_posting_id):
    result = await session.execute(
        select(func.count(Application.id)).where(Application.job_posting_id == job_posting_id)
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_apply_starts_in_applied_and_counts(session, organization_id, job_posting, submit):
    application = await submit(
        job_posting.id,
        "cand-1",
        candidate_name="Ada Lovelace",
        candidate_email="ada@example.com",
        resume_url="https://files.example.com/ada.pdf",
    )

    assert application.stage == "applied"
    assert application.version == 1
    assert application.organization_id == organization_id
    assert application.candidate_email == "ada@example.com"

    aggregator = PipelineAggregatorService(session)
    org_summary = await aggregator.summary(PipelineScope(organization_id=organization_id))
    job_summary = await aggregator.summary(
        PipelineScope(organization_id=organization_id, job_posting_id=job_posting.id)
    )
    assert org_summary.counts["applied"] == 1
    assert job_summary.counts["applied"] == 1
    assert job_summary.total == 1


@pytest.mark.asyncio
async def test_duplicate_apply_rejected(session, organization_id, job_posting, submit):
    await submit(job_posting.id, "cand-1")

    with pytest.raises(DuplicateApplication) as exc_info:
        await submit(job_posting.id, "cand-1")
    await session.rollback()

    assert exc_info.value.code == "DUPLICATE_APPLICATION"
    assert await _count_applications(session, job_posting.id) == 1

    summary = await PipelineAggregatorService(session).summary(
        PipelineScope(organization_id=organization_id, job_posting_id=job_posting.id)
    )
    assert summary.counts["applied"] == 1


@pytest.mark.asyncio
async def test_unique_constraint_backs_duplicate_check(session, job_posting, submit, monkeypatch):
    await submit(job_posting.id, "cand-1")

    service = ApplicationService(session)

    async def _missed_check(job_posting_id, candidate_id):
        return None

    # Simulates a concurrent apply that passed the up-front check
    monkeypatch.setattr(service.repository, "get_by_job_and_candidate", _missed_check)

    with pytest.raises(DuplicateApplication):
        await service.apply(job_posting.id, "cand-1", ApplicationFields())
    await session.rollback()

    assert await _count_applications(session, job_posting.id) == 1


@pytest.mark.asyncio
async def test_same_candidate_may_apply_to_other_postings(organization_id, make_posting, submit):
    first = await make_posting(organization_id, title="First")
    second = await make_posting(organization_id, title="Second")

    a = await submit(first.id, "cand-1")
    b = await submit(second.id, "cand-1")

    assert a.id != b.id


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [JobPostingStatus.CLOSED, JobPostingStatus.DRAFT])
async def test_apply_to_unopened_posting_rejected(organization_id, make_posting, submit, status):
    posting = await make_posting(organization_id, status=status)

    with pytest.raises(JobPostingClosed) as exc_info:
        await submit(posting.id, "cand-1")

    assert exc_info.value.details["status"] == status


@pytest.mark.asyncio
async def test_apply_to_missing_posting(submit):
    with pytest.raises(NotFound):
        await submit(uuid.uuid4(), "cand-1")


@pytest.mark.asyncio
async def test_get_application_is_organization_scoped(session, organization_id, job_posting, submit):
    application = await submit(job_posting.id)
    service = ApplicationService(session)

    found = await service.get_application(application.id, organization_id)
    assert found.id == application.id

    with pytest.raises(NotFound):
        await service.get_application(application.id, uuid.uuid4())
    with pytest.raises(NotFound):
        await service.get_application(uuid.uuid4(), organization_id)


@pytest.mark.asyncio
async def test_list_by_job_ordering_and_stage_filter(session, organization_id, job_posting, submit):
    created = [await submit(job_posting.id, f"cand-{i}") for i in range(4)]

    await TransitionService(session).move_stage(
        organization_id, created[1].id, "screening", "recruiter-1"
    )
    await session.commit()

    service = ApplicationService(session)
    listed = await service.list_by_job(organization_id, job_posting.id)
    assert {a.id for a in listed} == {a.id for a in created}
    timestamps = [a.created_at for a in listed]
    assert timestamps == sorted(timestamps)

    screening = await service.list_by_job(organization_id, job_posting.id, stage="screening")
    assert [a.id for a in screening] == [created[1].id]

    page = await service.list_by_job(organization_id, job_posting.id, limit=2, offset=1)
    assert [a.id for a in page] == [a.id for a in listed[1:3]]


@pytest.mark.asyncio
async def test_list_by_job_validates_stage_and_posting(session, organization_id, job_posting):
    service = ApplicationService(session)

    with pytest.raises(InvalidStage):
        await service.list_by_job(organization_id, job_posting.id, stage="withdrawn")

    with pytest.raises(NotFound):
        await service.list_by_job(uuid.uuid4(), job_posting.id)

    with pytest.raises(NotFound):
        await service.list_by_job(organization_id, uuid.uuid4())


@pytest.mark.asyncio
async def test_list_by_candidate_and_has_applied(session, organization_id, make_posting, submit):
    first = await make_posting(organization_id, title="First")
    second = await make_posting(organization_id, title="Second")
    await submit(first.id, "cand-1")
    await submit(second.id, "cand-1")
    await submit(first.id, "cand-2")

    service = ApplicationService(session)
    mine = await service.list_by_candidate("cand-1")
    assert {a.job_posting_id for a in mine} == {first.id, second.id}

    assert await service.has_applied(first.id, "cand-2")
    assert not await service.has_applied(second.id, "cand-2")

    with pytest.raises(NotFound):
        await service.has_applied(uuid.uuid4(), "cand-2")


@pytest.mark.asyncio
async def test_update_application_edits_display_fields_only(session, organization_id, job_posting, submit):
    application = await submit(job_posting.id, candidate_name="Old Name")

    updated = await ApplicationService(session).update_application(
        organization_id,
        application.id,
        ApplicationUpdate(candidate_name="New Name", notes="Referred by Grace"),
    )
    await session.commit()

    assert updated.candidate_name == "New Name"
    assert updated.notes == "Referred by Grace"
    assert updated.stage == "applied"
    assert updated.version == 2


@pytest.mark.unit
def test_update_schema_has_no_stage_field():
    with pytest.raises(ValidationError):
        ApplicationUpdate(stage="hired")
