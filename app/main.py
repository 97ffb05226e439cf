"""
FastAPI Application Entry Point

QR Restaurant Ordering - Hybrid Architecture
Supports both Mock services (development) and Real APIs (production).

Routers (all under /api):
    - /auth, /admin, /subadmin: staff accounts and restaurant management
    - /menu, /categories, /banner: menu content (public menu per table QR)
    - /upload: menu images (Cloudinary)
    - /orders: guest order placement and tracking, staff order handling
    - /qr: table QR codes
    - /health, /health/integrations: system health
"""

import asyncio
import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import redis
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

# psycopg's async driver needs the selector loop on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from app.api import routers
from app.core.config import get_settings, setup_logging
from app.database import engine, get_db, init_db
from app.schemas import HealthResponse
from app.services.notifications import get_notification_service
from app.services.storage import get_storage_service, uploads_root

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

START_TIME = time.time()


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info(f"   CORS origins: {settings.cors_origins}")
    logger.info("=" * 60)

    # Initialize database
    await init_db()
    logger.info("✅ Database initialized")

    uploads_root().mkdir(parents=True, exist_ok=True)

    # Log service configuration
    notification_service = get_notification_service()
    storage_service = get_storage_service()
    logger.info(f"✅ Notification Service: {notification_service.provider_name}")
    logger.info(f"✅ Storage Service: {storage_service.provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "QR code table ordering for restaurants: public per-table menus, "
        "guest orders and a staff back office."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=[
        "Origin",
        "X-Requested-With",
        "Content-Type",
        "Accept",
        "Authorization",
        "Cache-Control",
    ],
)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if (exc.status_code, exc.detail) in ((404, "Not Found"), (405, "Method Not Allowed")):
        # raised by the router itself: no route matches this path and method
        return JSONResponse(status_code=404, content={"message": "Route not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    logger.debug(f"Validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "message": "Something went wrong!",
            "error": str(exc) if settings.is_development else {},
        },
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/api/health",
    }


@app.get(
    "/api/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Report database and Redis connectivity. Only the database affects status."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check Redis
    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2, socket_connect_timeout=2)
        r.ping()
        r.close()
    except redis.RedisError as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.warning(f"Redis health check failed: {e}")

    return HealthResponse(
        status="OK" if db_status == "healthy" else "DEGRADED",
        timestamp=datetime.now(timezone.utc),
        uptime=round(time.time() - START_TIME, 3),
        database=db_status,
        redis=redis_status,
    )


@app.get("/api/health/integrations", tags=["Health"])
async def integrations_health() -> Any:
    """Whether email and WhatsApp delivery are configured."""
    try:
        service = get_notification_service()
        email = await service.email_status()
        whatsapp = service.whatsapp_status()
    except Exception as e:
        logger.exception(f"Integration health check failed: {e}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "email": email.to_dict(),
        "whatsapp": whatsapp.to_dict(),
    }


# =============================================================================
# ROUTERS
# =============================================================================

for router in routers:
    app.include_router(router, prefix="/api")

# locally stored uploads (development storage backend)
app.mount("/uploads", StaticFiles(directory=str(uploads_root()), check_dir=False), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
