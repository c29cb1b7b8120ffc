"""
LMS API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Session issuer (fails fast without a signing key)
- Database and Redis connections
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from lms_api.api import api_router
from lms_api.core.config import settings
from lms_api.core.database import close_db, init_db
from lms_api.core.redis import close_redis, init_redis, is_redis_available
from lms_api.core.security import get_session_issuer

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Session issuer construction (ConfigurationError is fatal)
    - Redis connection (optional)
    - Database connection
    """
    logger.info(f"Starting LMS API in {settings.python_env} mode...")

    # Build the issuer up front so a missing JWT_SECRET_KEY stops startup
    get_session_issuer()
    logger.info("[OK] Session issuer configured")

    if settings.resend_api_key:
        logger.info("[OK] Email delivery configured")
    elif settings.is_production:
        logger.error("[FAIL] RESEND_API_KEY not set, password reset emails cannot be delivered")
    else:
        logger.warning("[SKIP] RESEND_API_KEY not set, emails are logged instead of sent")

    if await init_redis():
        logger.info("[OK] Redis connected")
    else:
        logger.warning("[SKIP] Redis unavailable, rate limiting uses in-memory storage")

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info("Shutting down LMS API...")
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="LMS API",
    description="Learning platform identity and instructor onboarding API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to LMS API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check: the database must answer; Redis is reported but optional."""
    try:
        await init_db()
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "NOT_READY", "message": "Database is unavailable."},
        ) from e

    return {
        "status": "ready",
        "database": "connected",
        "redis": "connected" if is_redis_available() else "unavailable",
    }
