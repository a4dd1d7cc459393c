"""
CategoryService - read-modify-write business logic over CategoryRepo.

Every mutation loads the current forest, applies a pure tree operation
(which validates and raises before any backend call), then commits the
resulting patch and returns data derived from the new tree.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from category_api.core.category_flatten import FlatCategory, TreeStats, flatten, tree_stats
from category_api.core.category_paths import (
    CategoryIndex,
    child_path,
    normalize_path,
    parent_path_of,
    resolve,
    resolve_children,
)
from category_api.core.category_repo import CategoryRepo
from category_api.core.category_tree import Category, CategoryAttribute, category_from_dict
from category_api.core.category_views import CategoryView, build_view
from category_api.core.errors import CategoryNotFound
from category_api.core.ops import category_mutations as mutations
from category_api.core.ops.sort_session import SortOrderChange

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for the category tree"""

    def __init__(self, repo: CategoryRepo):
        self.repo = repo

    # -- reads ---------------------------------------------------------------

    async def get_tree(self) -> List[Category]:
        return await self.repo.get_tree()

    async def get_flattened(self) -> Tuple[List[Category], List[FlatCategory], TreeStats]:
        """Tree, its flattened records and statistics"""
        tree = await self.repo.get_tree()
        records = flatten(tree)
        return tree, records, tree_stats(tree, records)

    async def get_children(self, path: str = "") -> List[Category]:
        """Current sibling list; [] when `path` does not resolve"""
        tree = await self.repo.get_tree()
        return resolve_children(tree, normalize_path(path))

    async def get_category(self, path: str) -> Category:
        """
        Single category for the detail/edit screens.

        Raises:
            CategoryNotFound: If `path` does not resolve.
        """
        path = normalize_path(path)
        if not path:
            raise CategoryNotFound("", "Empty path does not address a category")
        return await self.repo.get_category(path)

    async def get_view(
        self,
        mode: str,
        path: str = "",
        edit_mode: bool = False,
        query: str = "",
    ) -> CategoryView:
        tree = await self.repo.get_tree()
        return build_view(mode, tree, normalize_path(path), edit_mode, query)

    # -- ordering ------------------------------------------------------------

    async def _persist_sort_orders(self, new_tree: List[Category], siblings: List[Category]) -> int:
        """Renumber `siblings` and PUT sort_order for each one that changed"""
        changes = mutations.assign_sort_orders(siblings)
        index = CategoryIndex(new_tree)
        for node, sort_order in changes:
            await self.repo.update(index.path_of(node.id), {"sort_order": sort_order})
        return len(changes)

    async def move(self, category_id: int, direction: str) -> List[Category]:
        """Move up/down among real siblings; boundary moves do not touch the backend"""
        tree = await self.repo.get_tree()
        new_tree = mutations.move_category(tree, category_id, direction)
        if new_tree is tree:
            return tree

        siblings = CategoryIndex(new_tree).siblings_of(category_id)
        count = await self._persist_sort_orders(new_tree, siblings)
        logger.info(f"Moved category {category_id} {direction} ({count} sort orders updated)")
        return new_tree

    async def reorder(self, parent_path: str, ordered_ids: List[int]) -> List[Category]:
        """Persist a drag-and-drop reordered sibling list"""
        parent_path = normalize_path(parent_path)
        tree = await self.repo.get_tree()
        new_tree = mutations.reorder_siblings(tree, parent_path, ordered_ids)

        siblings = new_tree if not parent_path else resolve(new_tree, parent_path).subcategories
        count = await self._persist_sort_orders(new_tree, siblings)
        logger.info(f"Reordered children of '{parent_path or '<root>'}' ({count} sort orders updated)")
        return new_tree

    async def commit_sort_changes(self, changes: List[SortOrderChange]) -> int:
        """
        Commit the pending changes of a sort-order edit session.

        Ids are translated to paths against the current tree; every id must
        resolve before anything is sent.

        Returns:
            Number of categories updated
        """
        if not changes:
            return 0
        tree = await self.repo.get_tree()
        index = CategoryIndex(tree)
        paths = [index.path_of(change.id) for change in changes]

        for path, change in zip(paths, changes):
            await self.repo.update(path, {
                "sort_order": change.sort_order,
                "display_priority": change.display_priority,
                "is_featured": change.is_featured,
            })
        logger.info(f"Committed {len(changes)} sort order changes")
        return len(changes)

    async def toggle_featured(self, category_id: int) -> Category:
        tree = await self.repo.get_tree()
        new_tree = mutations.toggle_featured(tree, category_id)
        index = CategoryIndex(new_tree)
        node = index.get(category_id)

        await self.repo.update(index.path_of(category_id), {"is_featured": node.is_featured})
        logger.info(f"Category {category_id} featured={node.is_featured}")
        return node

    # -- path-keyed edits ----------------------------------------------------

    async def update(self, path: str, patch: Dict[str, Any]) -> Category:
        """
        Rename / re-icon / re-color the category at `path`.

        Returns:
            The updated category, resolved in the new tree (its path changes
            on rename).
        """
        path = normalize_path(path)
        tree = await self.repo.get_tree()
        new_tree = mutations.update_category(tree, path, patch)

        new_path = path
        if "name" in patch:
            patch = {**patch, "name": patch["name"].strip()}
            new_path = child_path(parent_path_of(path), patch["name"])
        await self.repo.update(path, patch, new_path)
        logger.info(f"Updated category '{path}' fields={sorted(patch)}")
        return resolve(new_tree, new_path)

    async def add_subcategory(
        self,
        parent_path: str,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        parent_path = normalize_path(parent_path)
        tree = await self.repo.get_tree()
        _, created = mutations.add_subcategory(tree, parent_path, name, icon, color)

        result = await self.repo.create(parent_path, {
            "name": created.name,
            "icon": created.icon,
            "color": created.color,
            "sort_order": created.sort_order,
        })
        logger.info(f"Created category '{child_path(parent_path, created.name)}'")
        if result.get("id"):
            return category_from_dict(result)
        return created

    async def delete(self, path: str) -> None:
        path = normalize_path(path)
        tree = await self.repo.get_tree()
        mutations.delete_category(tree, path)

        await self.repo.delete(path)
        logger.info(f"Deleted category '{path}' and its subcategories")

    # -- attributes (leaf-only) ----------------------------------------------

    async def _commit_attributes(self, path: str, new_tree: List[Category]) -> Category:
        node = resolve(new_tree, path)
        await self.repo.update(path, {"attributes": [attr.to_dict() for attr in node.attributes]})
        return node

    async def get_attributes(self, path: str) -> List[CategoryAttribute]:
        tree = await self.repo.get_tree()
        return resolve(tree, normalize_path(path)).attributes

    async def add_attribute(self, path: str, attribute: CategoryAttribute) -> Category:
        path = normalize_path(path)
        tree = await self.repo.get_tree()
        new_tree = mutations.add_attribute(tree, path, attribute)
        node = await self._commit_attributes(path, new_tree)
        logger.info(f"Added attribute '{attribute.key}' to '{path}'")
        return node

    async def update_attribute(self, path: str, key: str, attribute: CategoryAttribute) -> Category:
        path = normalize_path(path)
        tree = await self.repo.get_tree()
        new_tree = mutations.update_attribute(tree, path, key, attribute)
        node = await self._commit_attributes(path, new_tree)
        logger.info(f"Updated attribute '{key}' on '{path}'")
        return node

    async def delete_attribute(self, path: str, key: str) -> Category:
        path = normalize_path(path)
        tree = await self.repo.get_tree()
        new_tree = mutations.delete_attribute(tree, path, key)
        node = await self._commit_attributes(path, new_tree)
        logger.info(f"Deleted attribute '{key}' from '{path}'")
        return node
