"""CareCircle FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carecircle import __version__
from carecircle.config import settings
from carecircle.core.exceptions import CareError, StoreError
from carecircle.database import close_database
from carecircle.logging_config import get_logger, setup_logging
from carecircle.middleware import CorrelationIdMiddleware
from carecircle.routers import admin, caregivers, health, notes

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Migrations are applied by alembic before uvicorn starts
    logger.info("CareCircle API started")

    yield

    logger.info("Shutting down CareCircle API...")
    await close_database()
    logger.info("CareCircle API shutdown complete")


app = FastAPI(
    title="CareCircle API",
    description="Caregiver coordination API for people living with dementia",
    version=__version__,
    lifespan=lifespan,
)

# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(admin.router)
app.include_router(caregivers.router)
app.include_router(notes.router)


@app.exception_handler(CareError)
async def care_error_handler(request: Request, exc: CareError) -> JSONResponse:
    """Answer core errors with their status and message."""
    if isinstance(exc, StoreError):
        logger.error(
            "Store error",
            method=request.method,
            path=request.url.path,
            error=exc.message,
        )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "CareCircle API",
        "version": __version__,
        "docs": "/docs",
    }
