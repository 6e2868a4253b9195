"""
Recount pipeline stage counters from application records.

Repairs counters that drifted (for example after a crash between commits in
an older deployment, or manual data fixes). Drift is logged at WARNING.

Usage (from project root):
    python scripts/rebuild_pipeline_counts.py --organization-id <uuid>
    python scripts/rebuild_pipeline_counts.py --organization-id <uuid> --job-posting-id <uuid>
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional
from uuid import UUID

from dotenv import load_dotenv

# Add parent directory to path so we can import app modules
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Settings are built when app modules are imported, so .env must be loaded first
load_dotenv()

from app.db.session import get_async_session_context
from app.services.pipeline_aggregator_service import PipelineAggregatorService


async def rebuild(organization_id: UUID, job_posting_id: Optional[UUID] = None) -> None:
    async with get_async_session_context() as db:
        service = PipelineAggregatorService(db)
        if job_posting_id is None:
            summaries = await service.rebuild_organization(organization_id)
        else:
            scope = await service.resolve_scope(organization_id, job_posting_id)
            summaries = [await service.rebuild(scope)]

    for summary in summaries:
        label = f"job {summary.job_posting_id}" if summary.job_posting_id else f"organization {summary.organization_id}"
        counts = ", ".join(f"{stage}={count}" for stage, count in summary.counts.items())
        print(f"[OK] {label}: total={summary.total} ({counts})")


def main():
    parser = argparse.ArgumentParser(description="Rebuild pipeline stage counters")
    parser.add_argument("--organization-id", type=UUID, required=True, help="Organization to rebuild")
    parser.add_argument("--job-posting-id", type=UUID, help="Only rebuild this job posting's counters")
    parser.add_argument("--log-level", default="INFO")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    asyncio.run(rebuild(args.organization_id, args.job_posting_id))


if __name__ == "__main__":
    main()
