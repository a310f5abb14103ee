"""
Skoolar API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- Background job scheduler
- Admission control and CORS middleware
- Error rendering (client action bridge)
- API routing
- Health check endpoints
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skoolar import __version__
from skoolar.api import api_router
from skoolar.core.bridge import register_exception_handlers
from skoolar.core.config import settings
from skoolar.core.database import close_db, init_db
from skoolar.core.logging_config import configure_logging
from skoolar.core.rate_limit import (
    AdmissionMiddleware,
    RedisWindowStore,
    admission_controller,
    register_admission_jobs,
)
from skoolar.core.redis import close_redis, get_redis, init_redis
from skoolar.core.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown of:
    - Redis connection (shared admission windows)
    - Database connection
    - Background job scheduler
    """
    configure_logging()
    logger.info(f"Starting Skoolar API in {settings.python_env} mode...")

    try:
        client = await init_redis()
        if client is not None:
            admission_controller.redis_store = RedisWindowStore(client)
            logger.info("[OK] Redis connected, admission windows shared")
        else:
            logger.info("[OK] Redis disabled, admission windows kept in memory")
    except Exception as e:
        logger.error(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        register_admission_jobs()
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield

    logger.info("Shutting down Skoolar API...")

    await stop_scheduler()
    admission_controller.redis_store = None
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Skoolar API",
    description="Skoolar multi-tenant school management API",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

register_exception_handlers(app)

# Admission runs before routing and authentication
app.add_middleware(
    AdmissionMiddleware,
    controller=admission_controller,
    trust_forwarded_for=settings.trust_forwarded_for,
)

# Added last so it wraps admission and 429 responses carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API status message."""
    return {
        "status": "ok",
        "message": "Skoolar API is running",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str | float]:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "uptime": round(time.monotonic() - _started_at, 3),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> JSONResponse:
    """Readiness check: database reachable and, when configured, Redis."""
    checks: dict[str, str] = {}

    try:
        await init_db()
        checks["database"] = "ok"
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        checks["database"] = "error"

    redis = get_redis()
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as e:
            logger.warning(f"Readiness: redis check failed: {e}")
            checks["redis"] = "error"

    ready = "error" not in checks.values()
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual job triggering for local development only.

if settings.is_development:

    @app.get("/debug/jobs", tags=["Debug"])
    async def list_jobs():
        """List registered background jobs and their next run time."""
        from skoolar.core.scheduler import list_registered_jobs

        return {"jobs": list_registered_jobs()}

    @app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
    async def trigger_job(job_id: str):
        """
        Run a background job immediately, bypassing its schedule.

        Available jobs:
            - admission_evict_idle_windows
        """
        from skoolar.core.errors import ValidationError
        from skoolar.core.scheduler import trigger_job_manually

        try:
            return await trigger_job_manually(job_id)
        except ValueError as e:
            raise ValidationError(str(e), error_code="UNKNOWN_JOB") from e
