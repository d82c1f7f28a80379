"""
Health check endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from bookingflow.core.database import get_session
from bookingflow.config import settings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live")
async def liveness() -> Any:
    """
    Liveness probe
    """
    return {"status": "alive", "service": "bookingflow-api"}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> Any:
    """
    Readiness probe - checks the database
    """
    database = False
    try:
        result = await db.execute(text("SELECT 1"))
        database = result.scalar() == 1
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")

    return {
        "status": "ready" if database else "not ready",
        "checks": {"database": database, "api": True},
        "version": settings.APP_VERSION
    }
