"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.errors import AppError, app_error_handler
from app.routers import applications, health

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    Configures logging on startup; nothing to release on shutdown since
    sessions are per-request.
    """
    configure_logging()
    logger.info("Starting %s", settings.APP_NAME)

    yield

    logger.info("Shutting down %s", settings.APP_NAME)


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Hiring pipeline: applications, stage transitions, stage counts and activity history",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(applications.router)
