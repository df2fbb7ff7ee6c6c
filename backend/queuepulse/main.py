"""
QueuePulse API - Main FastAPI application.

Crowd-sourced wait-time estimates for banks, clinics and offices.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from queuepulse.config import get_settings
from queuepulse.database import init_db
from queuepulse.services.exceptions import StorageUnavailable
from queuepulse.utils.log_config import configure_logging

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    # Startup
    print(f"Starting {settings.app_name} in {settings.app_env} mode...", flush=True)
    await init_db()
    print("Database initialized.", flush=True)

    yield

    # Shutdown
    print("Shutting down...", flush=True)


app = FastAPI(
    title=settings.app_name,
    description="Crowd-sourced queue wait-time estimates",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware - allow frontend apps to connect
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageUnavailable)
async def handle_storage_unavailable(_request: Request, exc: StorageUnavailable) -> JSONResponse:
    """Storage failures are reported as 503 without internal details."""
    logger.error("Request failed: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage temporarily unavailable"},
    )


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "app": settings.app_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}


# Routers
from queuepulse.routers import admin, checkins, locations  # noqa: E402

app.include_router(locations.router, prefix="/api", tags=["Locations"])
app.include_router(checkins.router, prefix="/api", tags=["Check-ins"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
