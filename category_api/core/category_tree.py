"""
Category tree model for marketplace categories.
Nodes, attributes and conversion from backend payloads (nested or flat rows).
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ATTRIBUTE_TYPES = ("string", "number", "boolean", "array")


@dataclass
class CategoryAttribute:
    """
    Custom field definition scoped to a leaf category.

    Attributes:
        key: Stable identity within the owning category (immutable once created)
        label: User-facing display name
        type: One of "string", "number", "boolean", "array"
        required: Whether a listing must fill this field
        options: Selectable values, only kept for type "array"
    """
    key: str
    label: str
    type: str = "string"
    required: bool = False
    options: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "key": self.key,
            "label": self.label,
            "type": self.type,
            "required": self.required,
        }
        if self.type == "array":
            data["options"] = list(self.options or [])
        return data


@dataclass
class Category:
    """
    Represents a category node in the tree.

    Attributes:
        id: Backend category ID (not used for addressing)
        name: Category name, unique among siblings; the path segment
        icon: Symbolic pictogram identifier
        color: Symbolic palette identifier
        is_featured: Promotion flag
        subcategories: Ordered child categories (empty for a leaf)
        attributes: Ordered attribute definitions (authoritative on leaves only)
        sort_order: Persisted position among siblings
        display_priority: Admin sort view metadata, carried through
    """
    id: int
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    is_featured: bool = False
    subcategories: List["Category"] = field(default_factory=list)
    attributes: List[CategoryAttribute] = field(default_factory=list)
    sort_order: int = 0
    display_priority: int = 0

    @property
    def is_leaf(self) -> bool:
        return not self.subcategories

    def to_dict(self) -> Dict[str, Any]:
        """Serialize recursively in the backend's nested format."""
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "is_featured": self.is_featured,
            "sort_order": self.sort_order,
            "display_priority": self.display_priority,
            "subcategories": [child.to_dict() for child in self.subcategories],
            "attributes": [attr.to_dict() for attr in self.attributes],
        }

    def __repr__(self):
        return f"Category(id={self.id}, name='{self.name}', children={len(self.subcategories)})"


def is_leaf(category: Category) -> bool:
    """A category is a leaf iff it has no subcategories."""
    return not category.subcategories


def attribute_from_dict(data: Dict[str, Any]) -> CategoryAttribute:
    """Parse an attribute dict, dropping options for non-array types."""
    attr_type = data.get("type") or "string"
    options = data.get("options")
    if attr_type != "array":
        options = None
    elif options is None:
        options = []
    else:
        # Options can arrive as a JSON-encoded column from older rows
        if isinstance(options, str):
            try:
                options = json.loads(options)
            except (json.JSONDecodeError, TypeError):
                options = []
        options = [str(opt) for opt in options] if isinstance(options, list) else []

    return CategoryAttribute(
        key=data.get("key", ""),
        label=data.get("label", ""),
        type=attr_type,
        required=bool(data.get("required", False)),
        options=options,
    )


def category_from_dict(data: Dict[str, Any]) -> Category:
    """
    Build a Category (and its subtree) from a nested backend dict.

    Missing subcategories/attributes (None or absent) become empty lists.
    """
    raw_children = data.get("subcategories") or []
    raw_attributes = data.get("attributes") or data.get("category_attributes") or []

    return Category(
        id=data.get("id", 0),
        name=data.get("name", ""),
        icon=data.get("icon"),
        color=data.get("color"),
        is_featured=bool(data.get("is_featured", False)),
        subcategories=[category_from_dict(child) for child in raw_children],
        attributes=[attribute_from_dict(attr) for attr in raw_attributes if isinstance(attr, dict)],
        sort_order=data.get("sort_order") or 0,
        display_priority=data.get("display_priority") or 0,
    )


def build_category_tree(raw_categories: List[Dict]) -> List[Category]:
    """
    Build a hierarchical tree structure from flat category rows.

    Args:
        raw_categories: List of category dicts from the backend.
                        Each dict should have: id, name, parent_id

    Returns:
        List of root Category objects, with subcategories populated and
        every sibling list ordered by sort_order (stable for ties).
    """
    if not raw_categories:
        return []

    nodes_by_id: Dict[int, Category] = {}
    parent_ids: Dict[int, Optional[int]] = {}

    # First pass: create all nodes
    for row in raw_categories:
        node = category_from_dict({**row, "subcategories": None})
        nodes_by_id[node.id] = node
        parent_ids[node.id] = row.get("parent_id")

    # Second pass: attach children, in input order
    roots: List[Category] = []
    for node_id, node in nodes_by_id.items():
        parent_id = parent_ids[node_id]
        parent_node = nodes_by_id.get(parent_id) if parent_id else None
        if parent_node is not None and parent_node is not node:
            parent_node.subcategories.append(node)
        else:
            # Parent not found, treat as root
            roots.append(node)

    def sort_children(node: Category):
        node.subcategories.sort(key=lambda n: n.sort_order)
        for child in node.subcategories:
            sort_children(child)

    roots.sort(key=lambda n: n.sort_order)
    for root in roots:
        sort_children(root)

    return roots


def load_tree(payload: Any) -> List[Category]:
    """
    Convert a backend categories payload into a forest.

    Accepts a nested list, a flat list of rows carrying parent_id, or a
    dict wrapping either under "data" or "categories".
    """
    if isinstance(payload, dict):
        payload = payload.get("data", payload.get("categories", []))
    if not payload:
        return []

    rows = [row for row in payload if isinstance(row, dict)]
    is_flat = (
        not any(row.get("subcategories") for row in rows)
        and any(row.get("parent_id") for row in rows)
    )
    if is_flat:
        return build_category_tree(rows)
    return [category_from_dict(row) for row in rows]


def dump_tree(tree: List[Category]) -> List[Dict[str, Any]]:
    """Serialize a forest to nested dicts."""
    return [node.to_dict() for node in tree]


def copy_tree(tree: List[Category]) -> List[Category]:
    """Deep copy a forest so mutations never touch the caller's tree."""
    return copy.deepcopy(tree)
