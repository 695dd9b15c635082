"""
Blog Analytics - FastAPI Backend
Main application entry point: telemetry ingestion, dashboard aggregation and health checks.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager

from config import settings, validate_security_settings
from database import engine, Base
import models  # noqa: F401
from routers import (
    health,
    analytics,
    dashboard,
    feedback,
    reading_analytics,
    views,
)
from services.event_store import configure_event_store

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info("Starting Blog Analytics API...")
    validate_security_settings()
    backend = configure_event_store(settings.EVENT_STORE_BACKEND)
    logger.info("Event store backend: %s", backend)
    if backend == "sql" and settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema verified.")
        except Exception as e:
            logger.warning("Database bootstrap skipped: %s", e)
    yield
    # Shutdown
    await engine.dispose()
    logger.info("Shutting down API...")


app = FastAPI(
    title="Blog Analytics API",
    description="Collect reader telemetry for blog posts and aggregate it for the dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed client payloads are a 400, same as shape checks done in the services.
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(feedback.router, prefix="/feedback", tags=["Feedback"])
app.include_router(views.router, prefix="/views", tags=["Views"])
app.include_router(reading_analytics.router, prefix="/reading-analytics", tags=["Reading Analytics"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Blog Analytics API",
        "version": "0.1.0",
        "status": "running"
    }
