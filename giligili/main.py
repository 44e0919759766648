"""Giligili Recommendation API - FastAPI Application."""

import logging
from contextlib import asynccontextmanager

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from giligili.logging import setup_logging

setup_logging()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from giligili.config import get_settings
from giligili.api.v1.router import api_router
from giligili.core.twitch_client import get_twitch_client
from giligili.db.database import init_db
from giligili.middleware import CorrelationIDMiddleware

logger = logging.getLogger(__name__)
settings = get_settings()

# 100 requests per minute per IP; recommendations have a stricter limit
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    logger.info("Database tables ready")

    yield

    logger.info("Shutting down application...")
    await get_twitch_client().close()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="Stream, video and clip recommendations from Twitch and user favorites",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID"],
)

app.add_middleware(CorrelationIDMiddleware)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
