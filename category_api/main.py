"""
FastAPI application entry point.
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from category_api.api.v1.router import router as v1_router
from category_api.config import get_settings
from category_api.core.security import sanitize_string_for_logging
from category_api.deps import close_category_client, close_redis, get_redis
from category_api.schemas.common import HealthResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    # Startup
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info(f"Category API starting (backend={settings.category_backend_url})")
    yield
    # Shutdown
    await close_category_client()
    await close_redis()


app = FastAPI(
    title="Marketplace Category API",
    description="Category tree management for the marketplace admin panel",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(v1_router, prefix="/api/v1")


@app.get("/api/v1/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(ok=True)


@app.get("/api/v1/health/redis", tags=["health"])
async def health_check_redis():
    """Check Redis connection health."""
    try:
        redis = await get_redis()
        await redis.ping()
        return {"ok": True, "redis": "connected"}
    except Exception as e:
        return {"ok": False, "redis": "disconnected", "error": sanitize_string_for_logging(str(e))}


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Marketplace Category API",
        "version": "1.0.0",
        "docs": "/docs"
    }
