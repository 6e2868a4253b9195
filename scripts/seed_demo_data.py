"""
Seed a demo organization with a job posting and a few applications.

Applications are created and moved through the services, so the activity
log and stage counters are populated the same way the API does it.

Usage:
    python scripts/seed_demo_data.py
"""

import asyncio
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Settings are built when app modules are imported, so .env must be loaded first
load_dotenv()

from sqlalchemy import select

from app.db.session import AsyncSessionLocal
from app.models.job_posting import JobPosting, JobPostingStatus
from app.schemas.application import ApplicationFields
from app.schemas.pipeline import PipelineScope
from app.services.application_service import ApplicationService
from app.services.pipeline_aggregator_service import PipelineAggregatorService
from app.services.transition_service import TransitionService

DEMO_ORGANIZATION_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

DEMO_CANDIDATES = [
    ("cand-ada", "Ada Lovelace", "ada@example.com", ["screening", "interview"]),
    ("cand-alan", "Alan Turing", "alan@example.com", ["screening", "rejected"]),
    ("cand-grace", "Grace Hopper", "grace@example.com", []),
]


async def seed_demo_data() -> None:
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(JobPosting).where(JobPosting.organization_id == DEMO_ORGANIZATION_ID).limit(1)
        )
        posting = result.scalar_one_or_none()
        if posting is None:
            posting = JobPosting(
                organization_id=DEMO_ORGANIZATION_ID,
                title="Backend Engineer",
                status=JobPostingStatus.OPEN,
            )
            db.add(posting)
            await db.flush()
            print(f"[OK] Created job posting {posting.title} ({posting.id})")

        applications = ApplicationService(db)
        transitions = TransitionService(db)

        for candidate_id, name, email, moves in DEMO_CANDIDATES:
            if await applications.has_applied(posting.id, candidate_id):
                print(f"[SKIP] {name} already applied")
                continue
            application = await applications.apply(
                posting.id,
                candidate_id,
                ApplicationFields(candidate_name=name, candidate_email=email),
            )
            for stage in moves:
                await transitions.move_stage(
                    DEMO_ORGANIZATION_ID, application.id, stage, actor_id="seed-script"
                )
            print(f"[OK] {name}: {application.stage}")

        summary = await PipelineAggregatorService(db).summary(
            PipelineScope(organization_id=DEMO_ORGANIZATION_ID, job_posting_id=posting.id)
        )
        await db.commit()
        print(f"[OK] Pipeline: {summary.counts}")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
