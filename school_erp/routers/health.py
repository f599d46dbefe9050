"""Health check endpoints."""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.cache import CacheManager, get_cache
from ..core.config import settings
from ..core.database import get_db, health_check_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Health"])

@router.get("/health")
async def health_check():
    """Basic health check"""
    return {
        "status": "ok",
        "service": "School ERP API",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@router.get("/db/health")
async def database_health(db: AsyncSession = Depends(get_db), cache: CacheManager = Depends(get_cache)):
    """Database connectivity check; cache status is informational"""
    ok, error = await health_check_db(db)
    checks = {
        "database": "ok" if ok else "error",
        "cache": "ok" if await cache.ping() else "unavailable",
    }
    if not ok:
        return JSONResponse(
            status_code=500,
            content={"status": "error", "checks": checks, "error": error},
        )
    return {"status": "ok", "checks": checks}
