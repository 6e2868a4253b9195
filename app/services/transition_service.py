"""
Transition service - the only code path that changes an application's stage.

A move validates against the stage registry, then appends the activity
event, writes the new stage and adjusts the pipeline counters in the
caller's transaction. The application row is locked for the rest of that
transaction, so concurrent moves of one application run one after another;
the version column catches the race on backends without row locks.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.pipeline_stages import is_terminal, is_valid_stage, parse_stage
from app.errors import (
    ConflictRetry,
    InvalidStage,
    NoOpTransition,
    NotFound,
    TerminalStageViolation,
)
from app.models.application import Application
from app.models.stage_transition_event import ActivityKind, StageTransitionEvent
from app.repositories.application_repository import ApplicationRepository
from app.repositories.stage_transition_repository import StageTransitionRepository
from app.services.pipeline_aggregator_service import PipelineAggregatorService, scopes_for
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    application: Application
    event: StageTransitionEvent


class TransitionService:
    """Validates and applies application stage changes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.applications = ApplicationRepository(db)
        self.activity_log = StageTransitionRepository(db)
        self.aggregator = PipelineAggregatorService(db)

    async def move_stage(
        self,
        organization_id: UUID,
        application_id: UUID,
        target_stage: str,
        actor_id: str,
        note: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> TransitionResult:
        """
        Move an application to another stage.

        Args:
            organization_id: Organization the caller acts for
            application_id: Application to move
            target_stage: Stage name to move to
            actor_id: Authenticated user making the change
            note: Optional note stored on the activity event
            expected_version: Application version the caller based the move
                on; a mismatch raises ConflictRetry instead of applying

        Raises:
            NotFound, InvalidStage, TerminalStageViolation, NoOpTransition,
            ConflictRetry. Nothing is written when any of these is raised.
        """
        application = await self.applications.get_for_update(application_id)
        if application is None or application.organization_id != organization_id:
            raise NotFound("Application not found", {"application_id": str(application_id)})

        if not is_valid_stage(target_stage):
            raise InvalidStage(target_stage)

        current = application.stage
        target = parse_stage(target_stage).value

        if is_terminal(current):
            logger.info(
                "Rejected move of application %s from terminal stage %s to %s",
                application_id,
                current,
                target,
            )
            raise TerminalStageViolation(current, target)

        if target == current:
            raise NoOpTransition(current)

        if expected_version is not None and expected_version != application.version:
            logger.warning(
                "Stale move of application %s: caller saw version %s, current is %s",
                application_id,
                expected_version,
                application.version,
            )
            raise ConflictRetry(current, application.version)

        now = utc_now()
        event = StageTransitionEvent(
            application_id=application.id,
            organization_id=application.organization_id,
            kind=ActivityKind.STAGE_CHANGE,
            from_stage=current,
            to_stage=target,
            actor_id=actor_id,
            note=note,
            occurred_at=now,
        )

        try:
            await self.applications.update_stage(application, target, now)
        except StaleDataError as exc:
            logger.warning("Lost concurrent update race on application %s", application_id)
            raise ConflictRetry() from exc

        await self.activity_log.append(event)
        for scope in scopes_for(application):
            await self.aggregator.on_transition(scope, current, target)

        logger.info(
            "Application %s moved %s -> %s by %s",
            application_id,
            current,
            target,
            actor_id,
        )
        return TransitionResult(application=application, event=event)
