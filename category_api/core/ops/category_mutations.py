"""
Category tree mutations.

Every tree-level operation copies the forest, edits the copy and returns it.
Validation happens before anything is returned, so a failed operation leaves
the caller's tree exactly as it was.
"""

import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

from category_api.core.category_tree import (
    ATTRIBUTE_TYPES,
    Category,
    CategoryAttribute,
    copy_tree,
)
from category_api.core.category_paths import (
    CategoryIndex,
    resolve,
    resolve_siblings,
    split_path,
)
from category_api.core.errors import (
    CategoryNotFound,
    CategoryValidationError,
    LeafConstraintViolation,
)

logger = logging.getLogger(__name__)

SORT_ORDER_STEP = 1000

# Fields a path-keyed patch may change
PATCHABLE_FIELDS = ("name", "icon", "color", "is_featured", "sort_order", "display_priority")


# ---------------------------------------------------------------------------
# Sibling list operations
# ---------------------------------------------------------------------------

def _index_of(siblings: List[Category], category_id: int) -> int:
    for index, node in enumerate(siblings):
        if node.id == category_id:
            return index
    raise CategoryNotFound(str(category_id), f"Category with ID {category_id} not found among siblings")


def move_up(siblings: List[Category], category_id: int) -> List[Category]:
    """
    Swap a category with its preceding sibling.

    Returns:
        A new list, or `siblings` itself when the category is already first.
    """
    index = _index_of(siblings, category_id)
    if index == 0:
        return siblings
    result = list(siblings)
    result[index - 1], result[index] = result[index], result[index - 1]
    return result


def move_down(siblings: List[Category], category_id: int) -> List[Category]:
    """
    Swap a category with its following sibling.

    Returns:
        A new list, or `siblings` itself when the category is already last.
    """
    index = _index_of(siblings, category_id)
    if index == len(siblings) - 1:
        return siblings
    result = list(siblings)
    result[index], result[index + 1] = result[index + 1], result[index]
    return result


def drag_move(siblings: List[Category], from_index: int, to_index: int) -> List[Category]:
    """
    Splice-move the item at `from_index` to `to_index`.

    All other items keep their relative order.

    Raises:
        CategoryValidationError: If an index is out of range.
    """
    size = len(siblings)
    if not 0 <= from_index < size or not 0 <= to_index < size:
        raise CategoryValidationError(
            f"Move from {from_index} to {to_index} is out of range for {size} categories"
        )
    result = list(siblings)
    item = result.pop(from_index)
    result.insert(to_index, item)
    return result


def assign_sort_orders(siblings: List[Category]) -> List[Tuple[Category, int]]:
    """
    Rewrite sort_order as (index + 1) * 1000 in list order.

    Mutates the given nodes (call it on a copied tree).

    Returns:
        (category, new_sort_order) for every category whose value changed
    """
    changed = []
    for index, node in enumerate(siblings):
        new_order = (index + 1) * SORT_ORDER_STEP
        if node.sort_order != new_order:
            node.sort_order = new_order
            changed.append((node, new_order))
    return changed


# ---------------------------------------------------------------------------
# Tree operations
# ---------------------------------------------------------------------------

def move_category(
    tree: List[Category],
    category_id: int,
    direction: Literal["up", "down"],
) -> List[Category]:
    """
    Move a category up or down within its real parent's subcategories.

    Returns:
        A new tree, or `tree` itself when the move is a boundary no-op.

    Raises:
        CategoryNotFound: If no category has `category_id`.
        CategoryValidationError: If direction is not "up" or "down".
    """
    if direction not in ("up", "down"):
        raise CategoryValidationError(f"Invalid move direction: {direction}")

    siblings = CategoryIndex(tree).siblings_of(category_id)
    mover = move_up if direction == "up" else move_down
    if mover(siblings, category_id) is siblings:
        logger.debug(f"Category {category_id} is already at the boundary, move {direction} ignored")
        return tree

    new_tree = copy_tree(tree)
    new_siblings = CategoryIndex(new_tree).siblings_of(category_id)
    new_siblings[:] = mover(new_siblings, category_id)
    return new_tree


def reorder_siblings(
    tree: List[Category],
    parent_path: str,
    ordered_ids: List[int],
) -> List[Category]:
    """
    Replace the order of one sibling list with `ordered_ids`.

    This is the drag-and-drop callback: it receives the fully reordered
    sibling array. Other levels are untouched.

    Raises:
        CategoryNotFound: If `parent_path` does not resolve.
        CategoryValidationError: If `ordered_ids` is not a permutation of the
                                 current sibling ids.
    """
    new_tree = copy_tree(tree)
    siblings = _children_for_update(new_tree, parent_path)

    current_ids = [node.id for node in siblings]
    if sorted(current_ids) != sorted(ordered_ids) or len(set(ordered_ids)) != len(ordered_ids):
        raise CategoryValidationError(
            f"Reorder ids {ordered_ids} are not a permutation of {current_ids}"
        )

    by_id = {node.id: node for node in siblings}
    siblings[:] = [by_id[category_id] for category_id in ordered_ids]
    return new_tree


def toggle_featured(tree: List[Category], category_id: int) -> List[Category]:
    """
    Flip is_featured on one category, looked up by id.

    Raises:
        CategoryNotFound: If no category has `category_id`.
    """
    CategoryIndex(tree).get(category_id)

    new_tree = copy_tree(tree)
    node = CategoryIndex(new_tree).get(category_id)
    node.is_featured = not node.is_featured
    return new_tree


RESERVED_NAMES = ("attributes",)


def validate_name(name: Optional[str]) -> str:
    """
    Strip and check a category name.

    "/" and ">" are path separators. "attributes" is taken by the
    attribute routes below every category path.
    """
    name = (name or "").strip()
    if not name:
        raise CategoryValidationError("Category name cannot be empty")
    if "/" in name or ">" in name:
        raise CategoryValidationError("Category name cannot contain '/' or '>'")
    if name in RESERVED_NAMES:
        raise CategoryValidationError(f"'{name}' is a reserved category name")
    return name


def _ensure_unique_name(siblings: List[Category], name: str, exclude: Optional[Category] = None):
    for node in siblings:
        if node is not exclude and node.name == name:
            raise CategoryValidationError(f"A sibling category named '{name}' already exists")


def _children_for_update(tree: List[Category], parent_path: str) -> List[Category]:
    """Mutable child list at `parent_path`; raises instead of returning [] on a miss."""
    if not split_path(parent_path):
        return tree
    return resolve(tree, parent_path).subcategories


def update_category(tree: List[Category], path: str, patch: Dict[str, Any]) -> List[Category]:
    """
    Apply a partial update (rename / re-icon / re-color / flags) to the node at `path`.

    After a rename every previously computed path below the node is stale;
    callers re-resolve from the returned tree.

    Raises:
        CategoryNotFound: If `path` does not resolve.
        CategoryValidationError: On unknown fields, an empty name or a name
                                 that clashes with a sibling.
    """
    unknown = set(patch) - set(PATCHABLE_FIELDS)
    if unknown:
        raise CategoryValidationError(f"Fields cannot be patched: {sorted(unknown)}")

    new_tree = copy_tree(tree)
    node = resolve(new_tree, path)

    if "name" in patch:
        name = validate_name(patch["name"])
        _ensure_unique_name(resolve_siblings(new_tree, path), name, exclude=node)
        node.name = name
    if "icon" in patch:
        node.icon = patch["icon"]
    if "color" in patch:
        node.color = patch["color"]
    if "is_featured" in patch:
        node.is_featured = bool(patch["is_featured"])
    if "sort_order" in patch:
        node.sort_order = int(patch["sort_order"])
    if "display_priority" in patch:
        node.display_priority = int(patch["display_priority"])

    return new_tree


def next_category_id(tree: List[Category]) -> int:
    """Provisional id for a locally created category (the backend assigns the real one)."""
    return max(CategoryIndex(tree).ids(), default=0) + 1


def add_subcategory(
    tree: List[Category],
    parent_path: str,
    name: str,
    icon: Optional[str] = None,
    color: Optional[str] = None,
    category_id: Optional[int] = None,
) -> Tuple[List[Category], Category]:
    """
    Append a new category under `parent_path` ("" adds a root category).

    Returns:
        (new_tree, created_category)

    Raises:
        CategoryNotFound: If `parent_path` does not resolve.
        CategoryValidationError: On an empty or duplicate name.
        LeafConstraintViolation: If the parent is a leaf that still has attributes.
    """
    name = validate_name(name)
    new_tree = copy_tree(tree)

    if split_path(parent_path):
        parent = resolve(new_tree, parent_path)
        if parent.is_leaf and parent.attributes:
            raise LeafConstraintViolation(
                parent_path,
                f"Category '{parent_path}' has attributes; remove them before adding subcategories",
            )
        siblings = parent.subcategories
    else:
        siblings = new_tree

    _ensure_unique_name(siblings, name)

    created = Category(
        id=category_id if category_id is not None else next_category_id(tree),
        name=name,
        icon=icon,
        color=color,
        sort_order=(len(siblings) + 1) * SORT_ORDER_STEP,
    )
    siblings.append(created)
    return new_tree, created


def delete_category(tree: List[Category], path: str) -> List[Category]:
    """
    Remove the node at `path` and its whole subtree.

    Raises:
        CategoryNotFound: If `path` does not resolve.
    """
    new_tree = copy_tree(tree)
    siblings = resolve_siblings(new_tree, path)
    name = split_path(path)[-1]
    siblings[:] = [node for node in siblings if node.name != name]
    logger.debug(f"Removed subtree at '{path}'")
    return new_tree


# ---------------------------------------------------------------------------
# Attribute operations (leaf-only)
# ---------------------------------------------------------------------------

def validate_attribute(attribute: CategoryAttribute) -> CategoryAttribute:
    """
    Check required fields and normalize options.

    Raises:
        CategoryValidationError: On empty key/label or unknown type.
    """
    key = (attribute.key or "").strip()
    label = (attribute.label or "").strip()
    if not key:
        raise CategoryValidationError("Attribute key cannot be empty")
    if not label:
        raise CategoryValidationError("Attribute label cannot be empty")
    if attribute.type not in ATTRIBUTE_TYPES:
        raise CategoryValidationError(
            f"Attribute type must be one of {', '.join(ATTRIBUTE_TYPES)}"
        )

    options = None
    if attribute.type == "array":
        options = [opt.strip() for opt in (attribute.options or []) if opt and opt.strip()]

    return CategoryAttribute(
        key=key,
        label=label,
        type=attribute.type,
        required=bool(attribute.required),
        options=options,
    )


def _leaf_for_update(tree: List[Category], path: str) -> Category:
    node = resolve(tree, path)
    if not node.is_leaf:
        raise LeafConstraintViolation(path)
    return node


def _attribute_index(node: Category, path: str, key: str) -> int:
    for index, attr in enumerate(node.attributes):
        if attr.key == key:
            return index
    raise CategoryNotFound(path, f"Attribute '{key}' not found on category '{path}'")


def add_attribute(tree: List[Category], path: str, attribute: CategoryAttribute) -> List[Category]:
    """
    Append an attribute to the leaf at `path`.

    Raises:
        CategoryNotFound: If `path` does not resolve.
        LeafConstraintViolation: If the category has subcategories.
        CategoryValidationError: On invalid input or a duplicate key.
    """
    attribute = validate_attribute(attribute)
    new_tree = copy_tree(tree)
    node = _leaf_for_update(new_tree, path)

    if any(attr.key == attribute.key for attr in node.attributes):
        raise CategoryValidationError(
            f"Attribute '{attribute.key}' already exists on category '{path}'"
        )

    node.attributes.append(attribute)
    return new_tree


def update_attribute(
    tree: List[Category],
    path: str,
    key: str,
    attribute: CategoryAttribute,
) -> List[Category]:
    """
    Replace the attribute whose key is `key` on the leaf at `path`.

    Keys are immutable: `attribute.key` must equal `key`.

    Raises:
        CategoryNotFound: If `path` or `key` does not resolve.
        LeafConstraintViolation: If the category has subcategories.
        CategoryValidationError: On invalid input or a key change.
    """
    attribute = validate_attribute(attribute)
    if attribute.key != key:
        raise CategoryValidationError(f"Attribute key cannot change ('{key}' -> '{attribute.key}')")

    new_tree = copy_tree(tree)
    node = _leaf_for_update(new_tree, path)
    index = _attribute_index(node, path, key)
    node.attributes[index] = attribute
    return new_tree


def delete_attribute(tree: List[Category], path: str, key: str) -> List[Category]:
    """
    Remove the attribute whose key is `key` from the leaf at `path`.

    Raises:
        CategoryNotFound: If `path` or `key` does not resolve.
        LeafConstraintViolation: If the category has subcategories.
    """
    new_tree = copy_tree(tree)
    node = _leaf_for_update(new_tree, path)
    _attribute_index(node, path, key)
    node.attributes = [attr for attr in node.attributes if attr.key != key]
    return new_tree

