"""
HireOS API - FastAPI Application

Main entry point for the API server.
Run with: uvicorn hireos.main:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hireos.config.database import init_db
from hireos.config.settings import settings
from hireos.endpoints import api_router
from hireos.endpoints.health import router as health_router
from hireos.middleware.auth import AuthMiddleware
from hireos.middleware.error_handler import setup_exception_handlers
from hireos.middleware.logging import LoggingMiddleware, configure_logging
from hireos.services.encryption import EncryptionKeyError, validate_encryption_key

# Configure structured logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(
        "Starting HireOS API",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )

    # Fails fast in production if the key is missing
    try:
        validate_encryption_key()
    except EncryptionKeyError as e:
        logger.critical("Encryption key validation failed", error=str(e))
        raise

    # Migrations own the schema outside DEBUG
    if settings.DEBUG:
        logger.info("Initializing database tables (DEBUG mode)")
        init_db()

    yield

    logger.info("Shutting down HireOS API")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Candidate lifecycle service: pipeline transitions, interviews and offers",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Setup exception handlers
setup_exception_handlers(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add authentication middleware
app.add_middleware(AuthMiddleware)

# Add logging middleware (added last, so it wraps auth)
app.add_middleware(LoggingMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")
app.include_router(health_router, prefix="/health", tags=["Health"])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs" if settings.DEBUG else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hireos.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
