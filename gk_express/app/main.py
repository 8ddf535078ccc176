"""
FastAPI Application Entry Point.

This is the main application file for the GK Express Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from gk_express.app.core.config import settings
from gk_express.app.api.v1.router import router as api_v1_router
from gk_express.app.core.observability import ObservabilityMiddleware, setup_logging
from gk_express.app.db.session import engine, Base
from gk_express.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from gk_express.app.realtime.bus import NotificationBus
from gk_express.app.realtime.events import EventDispatcher
from gk_express.app.realtime.presence import PresenceTracker

# Import models to ensure they are registered with Base
from gk_express.app.models.office import Office
from gk_express.app.models.user import User
from gk_express.app.models.parcel import Parcel
from gk_express.app.models.status_history import StatusHistoryEntry
from gk_express.app.models.message import Message

logger = logging.getLogger("gk_express")


def init_realtime(app: FastAPI) -> None:
    """Create the process-wide bus, presence tracker and dispatcher."""
    bus = NotificationBus()
    app.state.bus = bus
    app.state.presence = PresenceTracker()
    app.state.dispatcher = EventDispatcher(bus)


def shutdown_realtime(app: FastAPI) -> None:
    app.state.presence.clear()
    app.state.bus.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables on startup.
    2. Creates the real-time components and tears them down on shutdown.
    """
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    init_realtime(app)
    logger.info("Realtime notifications ready")
    yield
    shutdown_realtime(app)
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel tracking and real-time office notifications for GK Express",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "GK Express Backend is running",
        "docs": "/docs",
        "health": "/health",
        "realtime": f"/{settings.api_version}/ws",
    }
