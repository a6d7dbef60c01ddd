"""Health check endpoints.

- /health: liveness, always 200 while the process runs
- /healthz: checks document store (database) connectivity
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from backend.research_docs.db.engine import get_async_engine

router = APIRouter()


async def check_db(engine: AsyncEngine) -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


def get_health_engine() -> AsyncEngine | None:
    """Engine dependency for health checks; None when the DB is not configured."""
    try:
        return get_async_engine()
    except ValueError:
        return None


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz(
    engine: Annotated[AsyncEngine | None, Depends(get_health_engine)],
) -> dict[str, Any] | JSONResponse:
    """Health check endpoint.

    Returns:
        200 with component status if the database is reachable
        503 if it is not (or not configured)
    """
    if engine is None:
        db_ok, db_status = (False, "not_configured")
    else:
        db_ok, db_status = await check_db(engine)

    response_body = {
        "status": "ok" if db_ok else "degraded",
        "components": {"db": db_status},
    }

    if not db_ok:
        return JSONResponse(content=response_body, status_code=503)

    return response_body
