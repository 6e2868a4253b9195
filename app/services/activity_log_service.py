"""
Activity log service - per-application history of stage changes and notes.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pipeline_stages import replay_stages
from app.errors import NotFound
from app.models.stage_transition_event import ActivityKind, StageTransitionEvent
from app.repositories.application_repository import ApplicationRepository
from app.repositories.stage_transition_repository import StageTransitionRepository
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


class ActivityLogService:
    """Service for reading and annotating application history."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = StageTransitionRepository(db)
        self.applications = ApplicationRepository(db)

    async def history_for(
        self,
        organization_id: UUID,
        application_id: UUID,
    ) -> List[StageTransitionEvent]:
        """Activity for an application in chronological order."""
        application = await self.applications.get_by_id(application_id, organization_id)
        if application is None:
            raise NotFound("Application not found", {"application_id": str(application_id)})
        return await self.repository.history_for(application_id)

    async def add_note(
        self,
        organization_id: UUID,
        application_id: UUID,
        actor_id: str,
        note: str,
    ) -> StageTransitionEvent:
        """
        Record an annotation. The application's stage is not touched.

        The application row is locked like a stage move would, so the note
        records the stage as of the latest committed move.
        """
        application = await self.applications.get_for_update(application_id)
        if application is None or application.organization_id != organization_id:
            raise NotFound("Application not found", {"application_id": str(application_id)})

        event = StageTransitionEvent(
            application_id=application.id,
            organization_id=application.organization_id,
            kind=ActivityKind.NOTE,
            from_stage=application.stage,
            to_stage=application.stage,
            actor_id=actor_id,
            note=note,
            occurred_at=utc_now(),
        )
        return await self.repository.append(event)

    async def verify_consistency(self, application_id: UUID) -> bool:
        """Replay the stage history and compare it with the stored stage."""
        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise NotFound("Application not found", {"application_id": str(application_id)})

        events = await self.repository.history_for(application_id, kind=ActivityKind.STAGE_CHANGE)
        try:
            replayed = replay_stages(events).value
        except ValueError:
            logger.exception("Activity history for application %s cannot be replayed", application_id)
            return False

        if replayed != application.stage:
            logger.error(
                "Application %s stage %s disagrees with its history (%s)",
                application_id,
                application.stage,
                replayed,
            )
            return False
        return True
