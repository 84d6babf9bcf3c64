"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import calendars, health, timetable_classes
from app.core.database import init_db
from app.core.settings import settings
from app.services.calendar_store import CalendarSnapshotCache

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting academic timetable application...")

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    app.state.calendar_cache = CalendarSnapshotCache()

    yield

    # Cleanup
    logger.info("Shutting down...")
    app.state.calendar_cache.invalidate()
    logger.info("Application stopped")


# Create FastAPI app
app = FastAPI(
    title="Academic Timetable",
    description="Class schedules generated from academic calendars",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router)
app.include_router(calendars.router, prefix="/api")
app.include_router(timetable_classes.router, prefix="/api")
app.include_router(timetable_classes.class_dates_router, prefix="/api")


if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.env == "dev",
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
