"""Health check endpoints."""

from fastapi import APIRouter

from cityflow.core.config import settings
from cityflow.infra.database import db_manager

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint including database connectivity."""
    database_ok = await db_manager.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unavailable",
        "version": settings.APP_VERSION,
    }
