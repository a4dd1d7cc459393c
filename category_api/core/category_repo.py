"""
CategoryRepo - Storage layer for categories.
Backend REST API behind a Redis cache.
"""

import logging
from typing import Any, Dict, List

from category_api.core.category_cache import CategoryCache
from category_api.core.category_client import CategoryClient
from category_api.core.category_paths import normalize_path
from category_api.core.category_tree import Category, category_from_dict, dump_tree, load_tree

logger = logging.getLogger(__name__)


class CategoryRepo:
    """Repository for the category forest"""

    def __init__(self, client: CategoryClient, cache: CategoryCache):
        self.client = client
        self.cache = cache

    async def get_tree(self) -> List[Category]:
        """Full forest, from cache when available"""
        cached = await self.cache.get_tree()
        if cached is not None:
            return load_tree(cached)

        raw = await self.client.get_categories()
        tree = load_tree(raw)
        await self.cache.set_tree(dump_tree(tree))
        logger.info(f"Loaded {len(tree)} root categories from backend")
        return tree

    async def get_category(self, path: str) -> Category:
        """Single category by path, from cache when available"""
        path = normalize_path(path)
        cached = await self.cache.get_category(path)
        if cached is not None:
            return category_from_dict(cached)

        data = await self.client.get_category(path)
        category = category_from_dict(data)
        await self.cache.set_category(path, category.to_dict())
        return category

    async def update(self, path: str, patch: Dict[str, Any], *extra_paths: str) -> Dict[str, Any]:
        """PUT a partial update, then invalidate the tree and the touched paths"""
        result = await self.client.update_category(path, patch)
        await self.cache.invalidate(path, *extra_paths)
        return result

    async def delete(self, path: str) -> bool:
        """DELETE a subtree, then invalidate"""
        success = await self.client.delete_category(path)
        if success:
            await self.cache.invalidate(path)
        return success

    async def create(self, parent_path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """POST a new category under `parent_path`, then invalidate"""
        created = await self.client.create_category({**data, "parent_path": parent_path})
        await self.cache.invalidate(parent_path)
        return created
