"""
Main FastAPI application entry point for the BON-LOG search backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import uvicorn

from bonlog.core.config import settings
from bonlog.core.cache import close_redis_client
from bonlog.core.database import dispose_engine
from bonlog.core.exceptions import (
    bonlog_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)
from bonlog.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from bonlog.core.rate_limit import limiter
from bonlog.api.routes import api_router
from bonlog.services.fulltext import fulltext_search_service, required_extension
from bonlog.utils.exceptions import BonLogException


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    mode = fulltext_search_service.mode
    logger.info(f"Starting BON-LOG search backend (search mode: {mode.value})")

    extension = required_extension(mode)
    if extension and not await fulltext_search_service.is_extension_available(extension):
        # Searches still work through the LIKE fallback
        logger.warning(
            f"SEARCH_MODE={mode.value} but {extension.value} is not installed; "
            f"run scripts/setup_fulltext_search.py"
        )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    if settings.REDIS_URL:
        await close_redis_client()
    await dispose_engine()


# Create FastAPI app
app = FastAPI(
    title="BON-LOG Search API",
    description="Full-text search for BON-LOG posts, users and hashtags",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add custom middleware (order matters - first added is outermost)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Add exception handlers
app.add_exception_handler(BonLogException, bonlog_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0", "search_mode": fulltext_search_service.mode.value}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "BON-LOG Search API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
