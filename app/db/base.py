"""
SQLAlchemy declarative base.

Every pipeline table (job postings, applications, transition events,
stage counters) inherits from this Base so Alembic sees one metadata.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass
