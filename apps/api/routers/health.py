"""
Health and readiness probes.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import redis.asyncio as redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from database import engine

router = APIRouter()
logger = logging.getLogger(__name__)


async def _database_status() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database health check failed: %s", exc)
        return f"down: {exc}"
    return "up"


async def _redis_status() -> str:
    client = redis.from_url(settings.REDIS_URL)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        return f"down: {exc}"
    finally:
        await client.aclose()
    return "up"


@router.get("/health")
async def health_check():
    """
    Component status. Only the database can degrade the service; Redis
    backs share-link rate limits, which fall back to in-process counters.
    """
    database = await _database_status()
    return {
        "status": "healthy" if database == "up" else "degraded",
        "api": "up",
        "database": database,
        "redis": await _redis_status(),
        "notifications": "configured" if settings.NOTIFICATION_WEBHOOK_URL else "disabled",
    }


@router.get("/health/ready")
async def readiness_check():
    """Ready once storage and the secrets used for sessions and share passwords are set."""
    missing = [
        name
        for name in ("DATABASE_URL", "JWT_SECRET", "ENCRYPTION_KEY")
        if not (getattr(settings, name) or "").strip()
    ]
    if missing:
        return JSONResponse(status_code=503, content={"ready": False, "missing": missing})
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    return {"alive": True}
