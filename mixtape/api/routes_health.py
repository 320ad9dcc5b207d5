"""Health check endpoints for the Mixtape API."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from mixtape.db.session import get_session

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def health_check():
    """Liveness probe; answers as long as the process serves requests."""
    return {"ok": True}


@router.get("/readyz")
async def readiness_check(db: AsyncSession = Depends(get_session)):
    """
    Readiness probe.

    Returns:
        ok=True once the update-entry database answers a trivial query
    """
    await db.execute(text("SELECT 1"))
    return {"ok": True}
