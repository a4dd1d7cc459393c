"""
Dependency injection for FastAPI.
"""

import logging
from typing import Optional
import redis.asyncio as aioredis

from category_api.config import get_settings
from category_api.core.category_cache import CategoryCache
from category_api.core.category_client import CategoryClient
from category_api.core.category_repo import CategoryRepo
from category_api.core.category_service import CategoryService

logger = logging.getLogger(__name__)

_redis_client: Optional[aioredis.Redis] = None
_category_client: Optional[CategoryClient] = None


async def get_redis() -> aioredis.Redis:
    """Get Redis client (singleton) with lazy connection."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=3.0,
            retry_on_timeout=True,
            health_check_interval=30,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def get_category_client() -> CategoryClient:
    """Get the categories backend client (singleton)."""
    global _category_client
    if _category_client is None:
        settings = get_settings()
        _category_client = CategoryClient(
            base_url=settings.category_backend_url,
            api_token=settings.category_backend_token,
            timeout=settings.backend_timeout,
            max_retries=settings.backend_max_retries,
        )
        logger.info(f"Category backend: {settings.category_backend_url}")
    return _category_client


async def close_category_client():
    """Close the categories backend client."""
    global _category_client
    if _category_client:
        await _category_client.close()
        _category_client = None


async def get_category_cache() -> CategoryCache:
    """Category cache (no-op when caching is disabled)."""
    settings = get_settings()
    if not settings.category_cache_enabled:
        return CategoryCache(None)
    redis = await get_redis()
    return CategoryCache(redis, ttl=settings.category_cache_ttl)


async def get_category_service() -> CategoryService:
    """Get a CategoryService wired to the backend client and cache."""
    cache = await get_category_cache()
    return CategoryService(CategoryRepo(get_category_client(), cache))
