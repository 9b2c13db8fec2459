"""Health check endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.events import EventKind
from infrastructure.config import get_settings
from infrastructure.database import get_db
from services.event_bus import event_bus

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

DB_CHECK_TIMEOUT = 5.0


async def _database_status(db: AsyncSession) -> str:
    try:
        result = await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=DB_CHECK_TIMEOUT)
        result.scalar()
        return "connected"
    except TimeoutError:
        logger.error("Health check DB timeout")
        return "error: database timeout"
    except Exception as e:
        logger.error("Health check DB error: %s", str(e))
        return "error: database check failed"


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Database connectivity plus the number of event deliveries still in flight."""
    db_status = await _database_status(db)
    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
        "pending_event_deliveries": event_bus.pending,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Ready once the database answers; subscriber counts show whether startup wiring ran."""
    db_ok = await _database_status(db) == "connected"
    return {
        "ready": db_ok,
        "database": "ok" if db_ok else "unavailable",
        "event_subscribers": {str(kind): len(event_bus.subscribers(kind)) for kind in EventKind},
    }


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}
