from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import settings
from src.core.logging import logger
from src.infrastructure.database.async_db import get_async_db

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
    services: Dict[str, Any]
    timestamp: datetime


async def check_database_health_async(db: AsyncSession) -> Dict[str, Any]:
    """Check database connection health."""
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error_type=type(e).__name__)
        return {"status": "unhealthy"}


@router.get("", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_async_db)):
    """
    Health check endpoint that verifies the record store is reachable.
    """
    db_health = await check_database_health_async(db)
    overall_status = "ok" if db_health["status"] == "healthy" else "degraded"

    return HealthResponse(
        status=overall_status,
        env=settings.APP_ENV,
        version=settings.VERSION,
        services={"database": db_health},
        timestamp=datetime.now(timezone.utc),
    )
