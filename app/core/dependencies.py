"""
FastAPI dependencies for the application.

Authentication happens upstream; requests arrive with the caller's
organization and user id in headers.
"""

from uuid import UUID

from fastapi import Header, HTTPException, status

from app.db.session import get_db

__all__ = ["get_db", "get_organization_id", "get_actor_id"]


async def get_organization_id(x_organization_id: str = Header(None)) -> UUID:
    """
    Extract and validate the organization id from the X-Organization-ID header.

    Raises 400 if the header is missing or not a UUID.
    """
    if not x_organization_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Organization-ID header is required"
        )
    try:
        return UUID(x_organization_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Organization-ID must be a UUID"
        )


async def get_actor_id(x_actor_id: str = Header(None)) -> str:
    """
    Extract the authenticated user id from the X-Actor-ID header.

    Used as the actor on activity entries and as the candidate id on
    candidate-facing endpoints. Raises 400 if missing.
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-ID header is required"
        )
    return x_actor_id.strip()
