"""Health check endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from core.database import get_db
from core.config import get_settings
from schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check system health."""
    settings = get_settings()
    services = {
        "api": "ok",
    }

    # Check database
    try:
        await db.execute(text("SELECT 1"))
        services["database"] = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        services["database"] = "error"

    return HealthResponse(
        status="ok" if all(v == "ok" for v in services.values()) else "degraded",
        version=settings.VERSION,
        services=services,
    )
