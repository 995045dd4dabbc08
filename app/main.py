"""
Attendance Tracker Service - Main Application Entry Point.

This service handles employee attendance tracking including:
- Registration, login and session token validation/refresh
- Check-in/Check-out submission with location and face image references
- Duplicate check-in/check-out prevention per user and calendar day
- Attendance history and dashboard aggregates
- Organization-wide business hours
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.api.routes.attendance import router as attendance_router
from app.api.routes.auth import router as auth_router
from app.api.routes.business_hours import router as business_hours_router
from app.api.routes.stats import router as stats_router
from app.api.routes.users import router as users_router
from app.core.config import settings
from app.core.database import create_db_and_tables, engine
from app.core.exceptions import AttendanceAppError, StoreError
from app.core.logging import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"
LEGACY_API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(_: FastAPI):
    """
    Application lifespan manager.
    Ensures the schema exists before the first request is served.
    """
    # Startup
    logger.info("Starting Attendance Tracker Service...")

    logger.info("Creating database and tables...")
    create_db_and_tables()
    logger.info("Database and tables created successfully")

    logger.info("Attendance Tracker Service startup complete")

    yield

    # Shutdown
    logger.info("Attendance Tracker Service shutting down...")
    logger.info("Attendance Tracker Service shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Attendance Tracker Service - Tracks employee check-in/out, location and attendance metrics",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


# Error handlers


@app.exception_handler(AttendanceAppError)
async def attendance_error_handler(request: Request, exc: AttendanceAppError):
    if isinstance(exc, StoreError):
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "error": f"{field}: {message}" if field else message,
            "code": "validation_error",
            "details": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors
            ],
        },
    )


# Include routers
for router in (
    auth_router,
    users_router,
    attendance_router,
    stats_router,
    business_hours_router,
):
    app.include_router(router, prefix=API_PREFIX)

# Unversioned auth paths used by older clients
app.include_router(auth_router, prefix=LEGACY_API_PREFIX, include_in_schema=False)


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    """Liveness check. Does not touch the database."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/ready", tags=["health"])
async def readiness_check():
    """
    Readiness check endpoint.
    Verifies that the database accepts queries.
    """
    database_ready = False
    try:
        with Session(engine) as session:
            session.execute(text("SELECT 1"))
        database_ready = True
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")

    return {
        "status": "ready" if database_ready else "not_ready",
        "checks": {"database": "ok" if database_ready else "error"},
    }


@app.get("/", tags=["root"])
async def root():
    """
    Service information and the base path of the current API version.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "api": API_PREFIX,
        "docs": "/docs",
    }
