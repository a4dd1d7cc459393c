"""
Sort-order edit session for one sibling list.

Mirrors the admin console's edit mode: changes are staged on a working copy
and collected as pending changes; cancel restores the snapshot, save hands
the pending changes over for a single batch commit.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from category_api.core.category_tree import Category, copy_tree
from category_api.core.errors import CategoryNotFound, CategoryValidationError
from category_api.core.ops.category_mutations import (
    assign_sort_orders,
    drag_move,
    move_down,
    move_up,
)

logger = logging.getLogger(__name__)


@dataclass
class SortOrderChange:
    """Pending ordering/promotion change for one category."""
    id: int
    sort_order: int
    display_priority: int = 0
    is_featured: bool = False

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "sort_order": self.sort_order,
            "display_priority": self.display_priority,
            "is_featured": self.is_featured,
        }


class SortOrderSession:
    """Stages reorder and featured changes for one sibling list."""

    def __init__(self):
        self.active = False
        self.categories: List[Category] = []
        self._original: List[Category] = []
        self._pending: Dict[int, SortOrderChange] = {}

    @property
    def pending_changes(self) -> List[SortOrderChange]:
        return list(self._pending.values())

    @property
    def has_changes(self) -> bool:
        return bool(self._pending)

    def start(self, siblings: List[Category]) -> None:
        """Snapshot `siblings` and begin editing a working copy."""
        self._original = copy_tree(siblings)
        self.categories = copy_tree(siblings)
        self._pending = {}
        self.active = True
        logger.debug(f"Sort session started with {len(siblings)} categories")

    def _require_active(self):
        if not self.active:
            raise CategoryValidationError("Sort session is not active; call start() first")

    def _record(self, node: Category):
        self._pending[node.id] = SortOrderChange(
            id=node.id,
            sort_order=node.sort_order,
            display_priority=node.display_priority,
            is_featured=node.is_featured,
        )

    def _apply_order(self, ordered: List[Category]) -> bool:
        if ordered is self.categories:
            return False
        self.categories = ordered
        for node, _ in assign_sort_orders(self.categories):
            self._record(node)
        return True

    def move_up(self, category_id: int) -> bool:
        """Returns False when the category is already first."""
        self._require_active()
        return self._apply_order(move_up(self.categories, category_id))

    def move_down(self, category_id: int) -> bool:
        """Returns False when the category is already last."""
        self._require_active()
        return self._apply_order(move_down(self.categories, category_id))

    def drag(self, from_index: int, to_index: int) -> bool:
        self._require_active()
        if from_index == to_index:
            return False
        return self._apply_order(drag_move(self.categories, from_index, to_index))

    def toggle_featured(self, category_id: int) -> bool:
        self._require_active()
        for node in self.categories:
            if node.id == category_id:
                node.is_featured = not node.is_featured
                self._record(node)
                return node.is_featured
        raise CategoryNotFound(str(category_id), f"Category with ID {category_id} not found in sort session")

    def cancel(self) -> List[Category]:
        """Discard pending changes and return the original list."""
        original = self._original
        self._reset()
        logger.debug("Sort session cancelled")
        return original

    def save(self) -> List[SortOrderChange]:
        """
        End the session and return the pending changes.

        An empty list means nothing changed and nothing needs committing.
        """
        self._require_active()
        changes = self.pending_changes
        self._reset()
        logger.debug(f"Sort session saved with {len(changes)} pending changes")
        return changes

    def _reset(self):
        self.active = False
        self.categories = []
        self._original = []
        self._pending = {}
