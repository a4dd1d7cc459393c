"""
Flatten a category forest into depth-annotated records, plus tree statistics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from category_api.core.category_tree import Category, CategoryAttribute
from category_api.core.category_paths import child_path


@dataclass
class FlatCategory:
    """
    One flattened node: every Category field plus its path and depth.

    Attributes:
        path: Slash-joined name path from the root
        level: Depth, root categories are level 0
    """
    id: int
    name: str
    path: str
    level: int
    icon: Optional[str] = None
    color: Optional[str] = None
    is_featured: bool = False
    sort_order: int = 0
    display_priority: int = 0
    subcategories: List[Category] = field(default_factory=list)
    attributes: List[CategoryAttribute] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.subcategories

    @classmethod
    def from_category(cls, node: Category, path: str, level: int) -> "FlatCategory":
        return cls(
            id=node.id,
            name=node.name,
            path=path,
            level=level,
            icon=node.icon,
            color=node.color,
            is_featured=node.is_featured,
            sort_order=node.sort_order,
            display_priority=node.display_priority,
            subcategories=node.subcategories,
            attributes=node.attributes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "level": self.level,
            "icon": self.icon,
            "color": self.color,
            "is_featured": self.is_featured,
            "sort_order": self.sort_order,
            "display_priority": self.display_priority,
            "is_leaf": self.is_leaf,
            "subcategory_count": len(self.subcategories),
            "attributes": [attr.to_dict() for attr in self.attributes],
        }


def flatten(nodes: List[Category], parent_path: str = "") -> List[FlatCategory]:
    """
    Flatten a category tree into a pre-order, depth-first list.

    Siblings keep their original order; each node is followed by its
    whole subtree.

    Args:
        nodes: Categories at one level (the root list for the whole forest)
        parent_path: Path of the level's parent ("" for the root)

    Returns:
        Flat list of FlatCategory records
    """
    result: List[FlatCategory] = []
    base_level = len([part for part in parent_path.split("/") if part])

    def traverse(node: Category, path_prefix: str, level: int):
        path = child_path(path_prefix, node.name)
        result.append(FlatCategory.from_category(node, path, level))
        for child in node.subcategories:
            traverse(child, path, level + 1)

    for node in nodes:
        traverse(node, parent_path, base_level)

    return result


def count_categories(records: List[FlatCategory]) -> int:
    return len(records)


def count_leaves(records: List[FlatCategory]) -> int:
    return sum(1 for record in records if record.is_leaf)


def count_attributes(records: List[FlatCategory]) -> int:
    return sum(len(record.attributes) for record in records)


@dataclass
class TreeStats:
    """Whole-forest statistics for the dashboard cards."""
    total_categories: int = 0
    root_categories: int = 0
    leaf_categories: int = 0
    total_attributes: int = 0
    featured_categories: int = 0
    max_depth: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_categories": self.total_categories,
            "root_categories": self.root_categories,
            "leaf_categories": self.leaf_categories,
            "total_attributes": self.total_attributes,
            "featured_categories": self.featured_categories,
            "max_depth": self.max_depth,
        }


def tree_stats(tree: List[Category], records: Optional[List[FlatCategory]] = None) -> TreeStats:
    """Compute TreeStats, reusing already flattened records when given."""
    if records is None:
        records = flatten(tree)
    return TreeStats(
        total_categories=count_categories(records),
        root_categories=len(tree),
        leaf_categories=count_leaves(records),
        total_attributes=count_attributes(records),
        featured_categories=sum(1 for record in records if record.is_featured),
        max_depth=max((record.level for record in records), default=0),
    )


@dataclass
class CategoryStats:
    """Per-category counts shown on the detail page."""
    subcategory_count: int = 0
    total_subcategories: int = 0
    attribute_count: int = 0
    total_attributes: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "subcategory_count": self.subcategory_count,
            "total_subcategories": self.total_subcategories,
            "attribute_count": self.attribute_count,
            "total_attributes": self.total_attributes,
        }


def category_stats(category: Category) -> CategoryStats:
    """
    Recursive counts for a single category.

    subcategory_count and attribute_count are the node's own; the totals
    add every descendant.
    """
    stats = CategoryStats(
        subcategory_count=len(category.subcategories),
        total_subcategories=len(category.subcategories),
        attribute_count=len(category.attributes),
        total_attributes=len(category.attributes),
    )
    for child in category.subcategories:
        child_stats = category_stats(child)
        stats.total_subcategories += child_stats.total_subcategories
        stats.total_attributes += child_stats.total_attributes
    return stats
