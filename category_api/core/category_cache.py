"""
Redis cache for the category forest and single-category lookups.
"""

import json
import logging
from typing import Any, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from category_api.core.category_paths import encode_path, normalize_path

logger = logging.getLogger(__name__)

TREE_KEY = "categories:tree"
PATH_KEY_PREFIX = "categories:path:"
DEFAULT_TTL = 24 * 60 * 60  # 24h


class CategoryCache:
    """
    JSON cache in Redis.

    Invalidation is coarse: a mutation drops the whole tree plus the
    single-category entries for the affected paths and their descendants.
    Redis failures are logged and behave like a miss.
    """

    def __init__(self, redis_client: Optional[aioredis.Redis], ttl: int = DEFAULT_TTL):
        """
        Initialize category cache.

        Args:
            redis_client: Redis async client (None disables caching)
            ttl: Entry TTL in seconds
        """
        self.redis = redis_client
        self.ttl = ttl

    @staticmethod
    def path_key(path: str) -> str:
        return f"{PATH_KEY_PREFIX}{encode_path(normalize_path(path))}"

    async def _get(self, key: str) -> Optional[Any]:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Category cache read failed for {key}: {str(e)}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Discarding unreadable category cache entry {key}")
            return None

    async def _set(self, key: str, value: Any):
        if self.redis is None:
            return
        try:
            await self.redis.set(key, json.dumps(value), ex=self.ttl)
        except (RedisError, OSError) as e:
            logger.warning(f"Category cache write failed for {key}: {str(e)}")

    async def get_tree(self) -> Optional[List[Any]]:
        data = await self._get(TREE_KEY)
        if data is not None:
            logger.debug("Returning cached categories")
        return data

    async def set_tree(self, tree_data: List[Any]):
        await self._set(TREE_KEY, tree_data)

    async def get_category(self, path: str) -> Optional[Any]:
        return await self._get(self.path_key(path))

    async def set_category(self, path: str, data: Any):
        await self._set(self.path_key(path), data)

    async def invalidate(self, *paths: str):
        """Drop the tree entry and the entries for `paths` and every path below them."""
        if self.redis is None:
            return
        keys = [TREE_KEY]
        try:
            for path in paths:
                if not path:
                    continue
                key = self.path_key(path)
                keys.append(key)
                async for child_key in self.redis.scan_iter(match=f"{key}/*"):
                    keys.append(child_key)
            await self.redis.delete(*keys)
            logger.info(f"Categories cache invalidated ({len(keys)} keys)")
        except (RedisError, OSError) as e:
            logger.error(f"Error invalidating categories cache: {str(e)}")
