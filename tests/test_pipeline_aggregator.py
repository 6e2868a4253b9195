"""Pipeline aggregator tests: summaries, conservation and rebuild."""

import logging
import random
import uuid

import pytest

from app.errors import NoOpTransition, NotFound, TerminalStageViolation
from app.models.pipeline_stage_count import ScopeType
from app.repositories.application_repository import ApplicationRepository
from app.repositories.pipeline_count_repository import PipelineCountRepository
from app.schemas.pipeline import PipelineScope
from app.services.pipeline_aggregator_service import PipelineAggregatorService
from app.services.transition_service import TransitionService

STAGES = ["applied", "screening", "interview", "assessment", "offer", "hired", "rejected"]


@pytest.mark.asyncio
async def test_summary_lists_every_stage(session, organization_id):
    summary = await PipelineAggregatorService(session).summary(
        PipelineScope(organization_id=organization_id)
    )

    assert list(summary.counts) == STAGES
    assert summary.total == 0
    assert summary.job_posting_id is None


@pytest.mark.asyncio
async def test_counts_follow_transitions(session, organization_id, job_posting, submit):
    first = await submit(job_posting.id)
    await submit(job_posting.id)

    await TransitionService(session).move_stage(
        organization_id, first.id, "interview", "recruiter-1"
    )
    await session.commit()

    summary = await PipelineAggregatorService(session).summary(
        PipelineScope(organization_id=organization_id, job_posting_id=job_posting.id)
    )
    assert summary.counts["applied"] == 1
    assert summary.counts["interview"] == 1
    assert summary.total == 2


@pytest.mark.asyncio
async def test_counts_conserved_across_postings(session, organization_id, make_posting, submit):
    rng = random.Random(11)
    postings = [await make_posting(organization_id, title=f"Role {i}") for i in range(3)]
    applications = []
    for posting in postings:
        for _ in range(rng.randint(1, 4)):
            applications.append(await submit(posting.id))

    transitions = TransitionService(session)
    for _ in range(30):
        application = rng.choice(applications)
        try:
            await transitions.move_stage(
                organization_id, application.id, rng.choice(STAGES), "recruiter-1"
            )
        except (TerminalStageViolation, NoOpTransition):
            await session.rollback()
            continue
        await session.commit()

    aggregator = PipelineAggregatorService(session)
    org_summary = await aggregator.summary(PipelineScope(organization_id=organization_id))
    assert org_summary.total == len(applications)

    repository = ApplicationRepository(session)
    job_totals = 0
    for posting in postings:
        scope = PipelineScope(organization_id=organization_id, job_posting_id=posting.id)
        job_summary = await aggregator.summary(scope)
        actual = await repository.count_by_stage(organization_id, posting.id)
        assert {k: v for k, v in job_summary.counts.items() if v} == actual
        job_totals += job_summary.total

    assert job_totals == org_summary.total


@pytest.mark.asyncio
async def test_rebuild_repairs_drift(session, organization_id, job_posting, submit, caplog):
    application = await submit(job_posting.id)
    await submit(job_posting.id)
    await TransitionService(session).move_stage(
        organization_id, application.id, "offer", "recruiter-1"
    )
    await session.commit()

    scope = PipelineScope(organization_id=organization_id, job_posting_id=job_posting.id)
    await PipelineCountRepository(session).replace_counts(
        ScopeType.JOB_POSTING, job_posting.id, {"applied": 5, "offer": 0, "hired": 2}
    )
    await session.commit()

    aggregator = PipelineAggregatorService(session)
    with caplog.at_level(logging.WARNING, logger="app.services.pipeline_aggregator_service"):
        rebuilt = await aggregator.rebuild(scope)
    await session.commit()

    assert "drift" in caplog.text
    assert rebuilt.counts["applied"] == 1
    assert rebuilt.counts["offer"] == 1
    assert rebuilt.counts["hired"] == 0
    assert rebuilt.total == 2
    assert await aggregator.summary(scope) == rebuilt


@pytest.mark.asyncio
async def test_rebuild_without_drift_is_quiet(session, organization_id, job_posting, submit, caplog):
    await submit(job_posting.id)

    with caplog.at_level(logging.WARNING, logger="app.services.pipeline_aggregator_service"):
        rebuilt = await PipelineAggregatorService(session).rebuild(
            PipelineScope(organization_id=organization_id)
        )

    assert "drift" not in caplog.text
    assert rebuilt.counts["applied"] == 1


@pytest.mark.asyncio
async def test_missing_counter_is_not_driven_negative(session, organization_id, caplog):
    scope = PipelineScope(organization_id=organization_id)
    aggregator = PipelineAggregatorService(session)

    with caplog.at_level(logging.WARNING, logger="app.services.pipeline_aggregator_service"):
        await aggregator.on_transition(scope, "screening", "interview")

    summary = await aggregator.summary(scope)
    assert summary.counts["screening"] == 0
    assert summary.counts["interview"] == 1
    assert "drift" in caplog.text


@pytest.mark.asyncio
async def test_rebuild_organization_covers_every_posting(session, organization_id, make_posting, submit):
    first = await make_posting(organization_id, title="First")
    second = await make_posting(organization_id, title="Second")
    await submit(first.id)
    await submit(second.id)
    await submit(second.id)

    summaries = await PipelineAggregatorService(session).rebuild_organization(organization_id)

    assert summaries[0].job_posting_id is None
    assert summaries[0].total == 3
    by_job = {s.job_posting_id: s.total for s in summaries[1:]}
    assert by_job == {first.id: 1, second.id: 2}


@pytest.mark.asyncio
async def test_resolve_scope_rejects_foreign_posting(session, organization_id, make_posting):
    other_posting = await make_posting(uuid.uuid4())

    with pytest.raises(NotFound):
        await PipelineAggregatorService(session).resolve_scope(organization_id, other_posting.id)


@pytest.mark.asyncio
async def test_rebuild_creates_a_counter_row_per_stage(session, organization_id, job_posting, submit):
    await submit(job_posting.id)

    await PipelineAggregatorService(session).rebuild(
        PipelineScope(organization_id=organization_id, job_posting_id=job_posting.id)
    )
    await session.commit()

    stored = await PipelineCountRepository(session).get_counts(ScopeType.JOB_POSTING, job_posting.id)
    assert stored == {stage: (1 if stage == "applied" else 0) for stage in STAGES}


@pytest.mark.asyncio
async def test_lock_scope_keeps_existing_counts(session, organization_id):
    counts = PipelineCountRepository(session)
    await counts.increment(ScopeType.ORGANIZATION, organization_id, "offer")
    await counts.increment(ScopeType.ORGANIZATION, organization_id, "offer")

    await counts.lock_scope(ScopeType.ORGANIZATION, organization_id, STAGES)
    await session.commit()

    stored = await counts.get_counts(ScopeType.ORGANIZATION, organization_id)
    assert set(stored) == set(STAGES)
    assert stored["offer"] == 2
    assert stored["applied"] == 0
