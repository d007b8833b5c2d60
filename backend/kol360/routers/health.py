"""
Health checks.

/health and /health/live answer without touching the database.
/health/ready runs SELECT 1. /health/full adds latency, uptime and memory,
and needs the health token in production.
"""
import hmac
import logging
import resource
import sys
import time
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from kol360.auth import get_bearer_token
from kol360.config import get_settings
from kol360.database import get_db, utcnow
from kol360.exceptions import ApiError, UnauthorizedError
from kol360.services.settings_service import settings_service

logger = logging.getLogger(__name__)

router = APIRouter()

PROCESS_STARTED = time.monotonic()
DEGRADED_LATENCY_MS = 500


def memory_usage_mb() -> float:
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes on Linux
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(peak / divisor, 1)


@router.get("")
async def health():
    return {"status": "ok", "timestamp": utcnow().isoformat()}


@router.get("/live")
async def liveness():
    return {"status": "ok", "timestamp": utcnow().isoformat()}


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "checks": {"database": "error"}})
    return {"status": "ok", "checks": {"database": "ok"}}


@router.get("/full")
async def full_health(request: Request, db: AsyncSession = Depends(get_db)):
    config = get_settings()
    if config.is_production:
        expected = (await settings_service.get_effective(db))["health_check_token"]
        if not expected:
            raise ApiError("Health check token not configured", 503, "Service Unavailable")
        provided = request.headers.get("x-health-token") or get_bearer_token(request) or ""
        if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            raise UnauthorizedError("Invalid health check token")

    checks = {}
    status = "ok"
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        checks["database"] = {"status": "ok", "latency_ms": latency_ms}
        if latency_ms > DEGRADED_LATENCY_MS:
            status = "degraded"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = {"status": "error", "error": "Database connection failed"}
        status = "error"

    body = {
        "status": status,
        "version": config.app_version,
        "uptime_seconds": int(time.monotonic() - PROCESS_STARTED),
        "timestamp": utcnow().isoformat(),
        "checks": checks,
        "memory": {"max_rss_mb": memory_usage_mb()},
    }
    return JSONResponse(status_code=503 if status == "error" else 200, content=body)
