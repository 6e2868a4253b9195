"""
Repository for the application activity log.

Only inserts and reads exist here; log rows are never modified.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.stage_transition_event import StageTransitionEvent


class StageTransitionRepository:
    """Append/read operations for StageTransitionEvent."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, event: StageTransitionEvent) -> StageTransitionEvent:
        """Insert an activity entry."""
        self.db.add(event)
        await self.db.flush()
        return event

    async def history_for(
        self,
        application_id: UUID,
        kind: Optional[str] = None,
    ) -> List[StageTransitionEvent]:
        """Entries for an application, oldest first; insertion order breaks timestamp ties."""
        query = select(StageTransitionEvent).where(
            StageTransitionEvent.application_id == application_id
        )
        if kind is not None:
            query = query.where(StageTransitionEvent.kind == kind)

        query = query.order_by(
            StageTransitionEvent.occurred_at.asc(),
            StageTransitionEvent.id.asc(),
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

