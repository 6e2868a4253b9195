"""Structured error helpers for API responses."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(code, message, details)


class NotFound(AppError):
    """Unknown application or job posting (or one owned by another organization)."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, "NOT_FOUND", message, details)


class DuplicateApplication(AppError):
    """The candidate already has an application for this job posting."""

    def __init__(self, message: str = "Candidate has already applied to this job", details: Optional[Dict[str, Any]] = None):
        super().__init__(status.HTTP_409_CONFLICT, "DUPLICATE_APPLICATION", message, details)


class InvalidStage(AppError):
    """Stage name is not part of the pipeline registry."""

    def __init__(self, stage: Any):
        super().__init__(
            422,
            "INVALID_STAGE",
            f"Unknown pipeline stage: {stage}",
            {"stage": stage},
        )


class TerminalStageViolation(AppError):
    """Attempted to move an application out of hired/rejected."""

    def __init__(self, current_stage: str, target_stage: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "TERMINAL_STAGE",
            f"Application is {current_stage}; no further stage changes are allowed",
            {"current_stage": current_stage, "target_stage": target_stage},
        )


class NoOpTransition(AppError):
    """Target stage equals the current stage."""

    def __init__(self, stage: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "NO_OP_TRANSITION",
            f"Application is already in stage {stage}",
            {"current_stage": stage},
        )


class ConflictRetry(AppError):
    """Lost a concurrent update race; the caller should re-read and resubmit."""

    def __init__(self, current_stage: Optional[str] = None, current_version: Optional[int] = None):
        details: Dict[str, Any] = {}
        if current_stage is not None:
            details["current_stage"] = current_stage
        if current_version is not None:
            details["current_version"] = current_version
        super().__init__(
            status.HTTP_409_CONFLICT,
            "CONFLICT_RETRY",
            "Application was modified concurrently; reload and retry",
            details or None,
        )


class JobPostingClosed(AppError):
    """The job posting is not accepting applications."""

    def __init__(self, job_posting_id: Any, posting_status: str):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "JOB_POSTING_CLOSED",
            "Job posting is not accepting applications",
            {"job_posting_id": str(job_posting_id), "status": posting_status},
        )


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)

