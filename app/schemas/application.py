"""
Application Pydantic schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.base import OrganizationScopedRead


class ApplicationFields(BaseModel):
    """Candidate-supplied display fields carried on an application."""

    candidate_name: Optional[str] = Field(default=None, max_length=255)
    candidate_email: Optional[EmailStr] = None
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = None


class ApplyRequest(ApplicationFields):
    """Request body for applying to a job posting."""

    job_posting_id: UUID


class ApplicationUpdate(BaseModel):
    """
    Schema for editing display fields. All fields optional.

    `stage` is deliberately absent and unknown keys are rejected: stage
    changes only go through the stage endpoint.
    """

    model_config = ConfigDict(extra="forbid")

    candidate_name: Optional[str] = Field(default=None, max_length=255)
    candidate_email: Optional[EmailStr] = None
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = None


class ApplicationRead(OrganizationScopedRead):
    """Schema for reading application data (API response)."""

    job_posting_id: UUID
    candidate_id: str
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    notes: Optional[str] = None
    stage: str
    version: int


class MoveStageRequest(BaseModel):
    """Request to move an application to another stage."""

    stage: str
    note: Optional[str] = None
    # Version the caller last saw; a mismatch is reported as a conflict
    expected_version: Optional[int] = Field(default=None, ge=1)


class NoteRequest(BaseModel):
    """Request to annotate an application's activity history."""

    note: str = Field(min_length=1)


class HasAppliedRead(BaseModel):
    has_applied: bool
