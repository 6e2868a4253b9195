"""
Repository for persisted pipeline stage counters.

Increments are single upsert statements and decrements single guarded
UPDATEs, so concurrent transitions on different applications never
read-modify-write the same counter in Python.
"""

from typing import Dict, Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.pipeline_stage_count import PipelineStageCount

_CONFLICT_COLUMNS = ["scope_type", "scope_id", "stage"]


class PipelineCountRepository:
    """Counter reads and atomic adjustments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        # on_conflict_do_update is dialect specific; both backends share the API
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite.insert(PipelineStageCount)
        return postgresql.insert(PipelineStageCount)

    async def get_counts(self, scope_type: str, scope_id: UUID) -> Dict[str, int]:
        """Stored counters for a scope (stages without a row are omitted)."""
        result = await self.db.execute(
            select(PipelineStageCount.stage, PipelineStageCount.count).where(
                PipelineStageCount.scope_type == scope_type,
                PipelineStageCount.scope_id == scope_id,
            )
        )
        return {stage: count for stage, count in result.all()}

    async def lock_scope(self, scope_type: str, scope_id: UUID, stages: Iterable[str]) -> None:
        """
        Lock every counter row of a scope until the transaction ends.

        Missing rows are created with a zero count first so that there is a
        row to lock for each stage. Rows are locked in stage-name order, the
        same order on_transition writes them in.
        """
        ordered = sorted(stages)
        stmt = self._insert().values(
            [
                {"scope_type": scope_type, "scope_id": scope_id, "stage": stage, "count": 0}
                for stage in ordered
            ]
        )
        await self.db.execute(stmt.on_conflict_do_nothing(index_elements=_CONFLICT_COLUMNS))

        await self.db.execute(
            select(PipelineStageCount.id)
            .where(
                PipelineStageCount.scope_type == scope_type,
                PipelineStageCount.scope_id == scope_id,
            )
            .order_by(PipelineStageCount.stage)
            .with_for_update()
        )

    async def increment(self, scope_type: str, scope_id: UUID, stage: str) -> None:
        """Add one to a stage counter, creating the row if needed."""
        stmt = self._insert().values(
            scope_type=scope_type,
            scope_id=scope_id,
            stage=stage,
            count=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=_CONFLICT_COLUMNS,
            set_={"count": PipelineStageCount.count + stmt.excluded.count},
        )
        await self.db.execute(stmt)

    async def decrement(self, scope_type: str, scope_id: UUID, stage: str) -> bool:
        """
        Subtract one from a stage counter.

        Returns False when there was nothing to subtract (missing row or a
        zero count); the counter is left unchanged in that case.
        """
        result = await self.db.execute(
            update(PipelineStageCount)
            .where(
                PipelineStageCount.scope_type == scope_type,
                PipelineStageCount.scope_id == scope_id,
                PipelineStageCount.stage == stage,
                PipelineStageCount.count > 0,
            )
            .values(count=PipelineStageCount.count - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def replace_counts(
        self,
        scope_type: str,
        scope_id: UUID,
        counts: Dict[str, int],
    ) -> None:
        """Overwrite every given stage counter for a scope."""
        for stage, count in counts.items():
            stmt = self._insert().values(
                scope_type=scope_type,
                scope_id=scope_id,
                stage=stage,
                count=count,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=_CONFLICT_COLUMNS,
                set_={"count": stmt.excluded.count},
            )
            await self.db.execute(stmt)
        await self.db.flush()
