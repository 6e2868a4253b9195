"""
Schemas package.

Pydantic request/response models for the pipeline API.
"""

from app.schemas.base import OrganizationScopedRead
from app.schemas.application import (
    ApplicationFields,
    ApplicationRead,
    ApplicationUpdate,
    ApplyRequest,
    HasAppliedRead,
    MoveStageRequest,
    NoteRequest,
)
from app.schemas.activity import StageTransitionEventRead
from app.schemas.pipeline import PipelineScope, PipelineSummary

__all__ = [
    "OrganizationScopedRead",
    "ApplicationFields",
    "ApplicationRead",
    "ApplicationUpdate",
    "ApplyRequest",
    "HasAppliedRead",
    "MoveStageRequest",
    "NoteRequest",
    "StageTransitionEventRead",
    "PipelineScope",
    "PipelineSummary",
]
