"""
Pytest configuration and shared fixtures.

Tests run against a throwaway SQLite database per test (aiosqlite). Tests
marked `db` target the PostgreSQL database in DATABASE_URL instead and are
skipped unless RUN_DB_TESTS=1.
"""

import os

# Settings require DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import app.models  # noqa: F401
from app.core.dependencies import get_db
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.main import app
from app.models.job_posting import JobPosting, JobPostingStatus
from app.schemas.application import ApplicationFields
from app.services.application_service import ApplicationService


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: requires database")
    config.addinivalue_line("markers", "server: requires running HTTP server")


def pytest_collection_modifyitems(config, items):
    run_db = os.environ.get("RUN_DB_TESTS") == "1"
    run_server = os.environ.get("RUN_SERVER_TESTS") == "1"

    skip_db = pytest.mark.skip(reason="db tests skipped by default; set RUN_DB_TESTS=1 to enable")
    skip_server = pytest.mark.skip(reason="server tests skipped by default; set RUN_SERVER_TESTS=1 to enable")

    for item in items:
        if "db" in item.keywords and not run_db:
            item.add_marker(skip_db)
        if "server" in item.keywords and not run_server:
            item.add_marker(skip_server)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite file database with all tables created."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'pipeline.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db
        await db.rollback()


@pytest.fixture
def organization_id():
    return uuid.uuid4()


@pytest.fixture
def make_posting(session_factory):
    """Insert a job posting directly; postings are only read by the service."""

    async def _make(organization_id, status=JobPostingStatus.OPEN, title="Backend Engineer"):
        async with session_factory() as db:
            posting = JobPosting(organization_id=organization_id, title=title, status=status)
            db.add(posting)
            await db.commit()
        return posting

    return _make


@pytest_asyncio.fixture
async def job_posting(make_posting, organization_id):
    return await make_posting(organization_id)


@pytest.fixture
def submit(session_factory):
    """
    Apply through ApplicationService in a session of its own and commit.

    The returned application is detached, so rollbacks in the test session
    do not expire it.
    """

    async def _submit(job_posting_id, candidate_id=None, **fields):
        candidate_id = candidate_id or f"cand-{uuid.uuid4().hex[:8]}"
        fields.setdefault("candidate_name", "Test Candidate")
        async with session_factory() as db:
            application = await ApplicationService(db).apply(
                job_posting_id, candidate_id, ApplicationFields(**fields)
            )
            await db.commit()
        return application

    return _submit


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app with get_db bound to the test database."""

    async def override_get_db():
        async with session_factory() as db:
            try:
                yield db
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
