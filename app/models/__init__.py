"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from app.models.job_posting import JobPosting
from app.models.application import Application
from app.models.stage_transition_event import StageTransitionEvent
from app.models.pipeline_stage_count import PipelineStageCount

# Export all models
__all__ = [
    "JobPosting",
    "Application",
    "StageTransitionEvent",
    "PipelineStageCount",
]
