"""Minimal auth dependency.

Stub implementation that extracts user_id from a bearer token or uses the
dev user. Session validation against the hosted auth provider happens
upstream of this service.
"""

import uuid
from typing import Annotated

from fastapi import Header, HTTPException, status

from backend.research_docs.db.context import RequestContext

DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


async def get_current_context(
    authorization: Annotated[str | None, Header()] = None,
) -> RequestContext:
    """Extract request context from authorization header.

    Accepts:
    - "Bearer <user_id>" where user_id is a UUID
    - no header, which maps to the dev user

    Args:
        authorization: Authorization header (e.g., "Bearer <token>")

    Returns:
        RequestContext with user_id

    Raises:
        HTTPException: If authorization is invalid
    """
    if not authorization:
        return RequestContext(user_id=DEV_USER_ID)

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:]  # Strip "Bearer "

    try:
        return RequestContext(user_id=uuid.UUID(token.strip()))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token (expected user id)",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
