"""Main FastAPI application for the Passwords share API.

This module initializes and configures the FastAPI application with its
routers, middleware, exception handlers and startup/shutdown events.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Dict

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

# Load environment variables from file specified by ENV_FILE (fallback to ".env")
load_dotenv(os.getenv("ENV_FILE", ".env"))

# Import settings after loading env so pydantic's BaseSettings picks up values
from .config import settings  # noqa: E402
from .database import async_session_maker, create_tables  # noqa: E402
from .exceptions import ApiException  # noqa: E402
from .logging_config import setup_logging  # noqa: E402
from .middleware import (  # noqa: E402
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from .routers import shares  # noqa: E402
from .schemas import HealthCheckResponse  # noqa: E402

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown."""
    setup_logging()
    logger.info("Starting Passwords share API...")

    try:
        await create_tables()
        logger.info("Database initialized")
    except Exception:
        logger.exception("Startup failed")
        raise

    yield

    logger.info("Passwords share API shutdown complete")


app = FastAPI(
    title="Passwords Share API",
    description="Share stored passwords with other users of the platform",
    version=API_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Configure middleware
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=False,  # Must be False when allow_origins is "*"
    allow_methods=["PUT", "POST", "GET", "DELETE", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
    max_age=1728000,
)

app.include_router(shares.router)


@app.exception_handler(ApiException)
async def api_exception_handler(request: Request, exc: ApiException) -> JSONResponse:
    """Report a rejected operation with its status and message."""
    logger.warning(
        f"{request.method} {request.url.path} rejected with {exc.status_code}: {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "message": exc.message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report unexpected failures without leaking internals."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"status": "error", "message": "Internal server error"},
    )


@app.get("/api", response_model=dict)
async def api_root() -> Dict[str, str]:
    """API root endpoint with basic information."""
    return {
        "message": "Passwords Share API",
        "version": API_VERSION,
        "docs": "/api/docs",
    }


@app.get("/api/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Report API and database connectivity."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
            database_connected = True
    except Exception as e:
        logger.error(f"Health check database query failed: {e}")
        database_connected = False

    return HealthCheckResponse(
        status="healthy" if database_connected else "degraded",
        message=f"API operational, database {'connected' if database_connected else 'disconnected'}",
        timestamp=datetime.now(timezone.utc),
        database_connected=database_connected,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "passwords.main:app",
        host=settings.HOST,
        port=int(settings.PORT),
        reload=bool(settings.DEBUG),
        reload_dirs=["passwords"],
        log_level="info",
    )
