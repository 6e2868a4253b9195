"""
Pipeline summary Pydantic schemas.
"""

from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PipelineScope(BaseModel):
    """
    Aggregation boundary for stage counts.

    With only organization_id set the scope is organization-wide;
    with job_posting_id set it narrows to that posting.
    """

    model_config = ConfigDict(frozen=True)

    organization_id: UUID
    job_posting_id: Optional[UUID] = None

    @property
    def is_job_scope(self) -> bool:
        return self.job_posting_id is not None


class PipelineSummary(BaseModel):
    """Stage name to number of applications currently in that stage."""

    organization_id: UUID
    job_posting_id: Optional[UUID] = None
    counts: Dict[str, int]
    total: int
