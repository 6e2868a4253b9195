"""Health check router."""

from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_db
from app.core.pipeline_stages import ORDERED_STAGES

router = APIRouter()


def _load_alembic_head() -> Optional[str]:
    project_root = Path(__file__).resolve().parents[2]
    cfg_path = project_root / "alembic.ini"
    script_location = project_root / "alembic"
    if not cfg_path.exists() or not script_location.exists():
        return None

    config = Config(str(cfg_path))
    config.set_main_option("script_location", str(script_location))
    script = ScriptDirectory.from_config(config)
    return script.get_current_head()


async def _alembic_current(db: AsyncSession) -> Optional[str]:
    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
    except SQLAlchemyError:
        # Schema created without alembic (tests, fresh databases)
        await db.rollback()
        return None
    return result.scalar_one_or_none()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Lightweight health endpoint with DB + alembic checks."""
    db_ok = True
    alembic_current: Optional[str] = None

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db_ok = False
        await db.rollback()

    if db_ok:
        alembic_current = await _alembic_current(db)

    alembic_head = _load_alembic_head()

    return {
        "app": settings.APP_NAME,
        "api_ok": True,
        "db_ok": db_ok,
        "alembic_head_ok": bool(alembic_current and alembic_current == alembic_head),
        "alembic_current": alembic_current,
        "alembic_head": alembic_head,
        "stages": [stage.value for stage in ORDERED_STAGES],
    }
