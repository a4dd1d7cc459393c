"""
View adapters for the category tree.

Menu, grid, table and tree views are pure functions of the tree, the
navigation cursor and the edit-mode flag. They never change the tree;
user actions are routed to ViewCallbacks through dispatch_action.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from category_api.core.category_tree import Category
from category_api.core.category_paths import (
    breadcrumbs,
    child_path,
    join_path,
    resolve_children,
    search_categories,
    split_path,
)
from category_api.core.category_flatten import FlatCategory, flatten, tree_stats
from category_api.core.errors import CategoryValidationError, LeafConstraintViolation

ViewMode = Literal["menu", "grid", "table", "tree"]
VIEW_MODES = ("menu", "grid", "table", "tree")

DEFAULT_ICON = "folder"
DEFAULT_COLOR = "default"

# Actions gated on leafness
LEAF_ONLY_ACTIONS = ("edit_attributes",)
BRANCH_ONLY_ACTIONS = ("navigate", "add_subcategory")
EDIT_MODE_ACTIONS = ("move_up", "move_down", "toggle_featured")


@dataclass
class ViewCallbacks:
    """
    Hooks a view invokes for user actions.

    Path-keyed hooks take the node's path; ordering hooks take ids since
    they are issued from flattened views where paths may be stale.
    """
    on_navigate: Optional[Callable[[str], Any]] = None
    on_view: Optional[Callable[[str], Any]] = None
    on_edit: Optional[Callable[[str], Any]] = None
    on_delete: Optional[Callable[[str, str], Any]] = None
    on_add_subcategory: Optional[Callable[[str], Any]] = None
    on_edit_attributes: Optional[Callable[[str], Any]] = None
    on_move_up: Optional[Callable[[int], Any]] = None
    on_move_down: Optional[Callable[[int], Any]] = None
    on_reorder: Optional[Callable[[List[int]], Any]] = None
    on_toggle_featured: Optional[Callable[[int], Any]] = None


@dataclass
class CategoryViewItem:
    """One rendered category with the actions it offers."""
    id: int
    name: str
    path: str
    level: int
    icon: str
    color: str
    is_featured: bool
    is_leaf: bool
    subcategory_count: int
    attribute_count: int
    actions: List[str] = field(default_factory=list)
    children: List["CategoryViewItem"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "level": self.level,
            "icon": self.icon,
            "color": self.color,
            "is_featured": self.is_featured,
            "is_leaf": self.is_leaf,
            "subcategory_count": self.subcategory_count,
            "attribute_count": self.attribute_count,
            "actions": list(self.actions),
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class CategoryView:
    """Everything a renderer needs for one screen."""
    mode: str
    current_path: str
    edit_mode: bool
    items: List[CategoryViewItem]
    breadcrumbs: List[Tuple[str, str]]
    stats: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "current_path": self.current_path,
            "edit_mode": self.edit_mode,
            "items": [item.to_dict() for item in self.items],
            "breadcrumbs": [{"name": name, "path": path} for name, path in self.breadcrumbs],
            "stats": dict(self.stats),
        }


def item_actions(is_leaf: bool, edit_mode: bool, is_first: bool = False, is_last: bool = False) -> List[str]:
    """
    Actions a category offers.

    Leaves get attribute editing, branches get navigation and "add
    subcategory"; ordering and featured toggles only appear in edit mode.
    """
    actions = ["view", "edit", "delete"]
    if is_leaf:
        actions.append("edit_attributes")
    else:
        actions.extend(["navigate", "add_subcategory"])
    if edit_mode:
        if not is_first:
            actions.append("move_up")
        if not is_last:
            actions.append("move_down")
        actions.append("toggle_featured")
    return actions


def _make_item(
    node: Category,
    path: str,
    level: int,
    edit_mode: bool,
    is_first: bool,
    is_last: bool,
) -> CategoryViewItem:
    return CategoryViewItem(
        id=node.id,
        name=node.name,
        path=path,
        level=level,
        icon=node.icon or DEFAULT_ICON,
        color=node.color or DEFAULT_COLOR,
        is_featured=node.is_featured,
        is_leaf=node.is_leaf,
        subcategory_count=len(node.subcategories),
        attribute_count=len(node.attributes),
        actions=item_actions(node.is_leaf, edit_mode, is_first, is_last),
    )


def _sibling_items(
    nodes: List[Category],
    parent_path: str,
    level: int,
    edit_mode: bool,
) -> List[CategoryViewItem]:
    last = len(nodes) - 1
    return [
        _make_item(node, child_path(parent_path, node.name), level, edit_mode, i == 0, i == last)
        for i, node in enumerate(nodes)
    ]


def render_menu(nodes: List[Category], current_path: str = "", edit_mode: bool = False) -> List[CategoryViewItem]:
    """List view of the current sibling list."""
    return _sibling_items(nodes, current_path, len(split_path(current_path)), edit_mode)


def render_grid(nodes: List[Category], current_path: str = "", edit_mode: bool = False) -> List[CategoryViewItem]:
    """Card view; same items as the menu, laid out differently by the renderer."""
    return render_menu(nodes, current_path, edit_mode)


def render_table(records: List[FlatCategory], edit_mode: bool = False) -> List[CategoryViewItem]:
    """Table view over flattened records, one row per category."""
    items = []
    for i, record in enumerate(records):
        # Ordering affordances are relative to the record's real siblings
        prev_sibling = next(
            (r for r in reversed(records[:i]) if r.level <= record.level), None
        )
        next_sibling = next(
            (r for r in records[i + 1:] if r.level <= record.level), None
        )
        is_first = prev_sibling is None or prev_sibling.level < record.level
        is_last = next_sibling is None or next_sibling.level < record.level
        items.append(CategoryViewItem(
            id=record.id,
            name=record.name,
            path=record.path,
            level=record.level,
            icon=record.icon or DEFAULT_ICON,
            color=record.color or DEFAULT_COLOR,
            is_featured=record.is_featured,
            is_leaf=record.is_leaf,
            subcategory_count=len(record.subcategories),
            attribute_count=len(record.attributes),
            actions=item_actions(record.is_leaf, edit_mode, is_first, is_last),
        ))
    return items


def render_tree(nodes: List[Category], current_path: str = "", edit_mode: bool = False) -> List[CategoryViewItem]:
    """Recursive-expand view: nested items below the cursor."""
    def build(level_nodes: List[Category], parent_path: str, level: int) -> List[CategoryViewItem]:
        items = _sibling_items(level_nodes, parent_path, level, edit_mode)
        for item, node in zip(items, level_nodes):
            item.children = build(node.subcategories, item.path, level + 1)
        return items

    return build(nodes, current_path, len(split_path(current_path)))


def build_view(
    mode: str,
    tree: List[Category],
    current_path: str = "",
    edit_mode: bool = False,
    query: str = "",
) -> CategoryView:
    """
    Build the view model for one screen.

    Args:
        mode: "menu", "grid", "table" or "tree"
        tree: Whole category forest
        current_path: Navigation cursor ("" for the root level)
        edit_mode: Whether ordering/featured affordances are shown
        query: Optional name/path filter (table and menu/grid)

    Raises:
        CategoryValidationError: On an unknown mode.
    """
    if mode not in VIEW_MODES:
        raise CategoryValidationError(f"Unknown view mode '{mode}', expected one of {', '.join(VIEW_MODES)}")

    current_path = join_path(split_path(current_path))
    records = flatten(tree)

    if mode == "table":
        items = render_table(search_categories(records, query), edit_mode)
    else:
        nodes = resolve_children(tree, current_path)
        if mode == "tree":
            items = render_tree(nodes, current_path, edit_mode)
        else:
            renderer = render_menu if mode == "menu" else render_grid
            items = search_categories(renderer(nodes, current_path, edit_mode), query)

    return CategoryView(
        mode=mode,
        current_path=current_path,
        edit_mode=edit_mode,
        items=items,
        breadcrumbs=breadcrumbs(current_path),
        stats=tree_stats(tree, records).to_dict(),
    )


def dispatch_action(
    item: CategoryViewItem,
    action: str,
    callbacks: ViewCallbacks,
) -> Any:
    """
    Route a user action on `item` to its callback.

    Returns:
        Whatever the callback returns, or None when no callback is set

    Raises:
        LeafConstraintViolation: For a leaf/branch-gated action the item does not offer.
        CategoryValidationError: For any other action the item does not offer.
    """
    if action not in item.actions:
        if action in LEAF_ONLY_ACTIONS or action in BRANCH_ONLY_ACTIONS:
            raise LeafConstraintViolation(
                item.path, f"Action '{action}' is not available on category '{item.path}'"
            )
        raise CategoryValidationError(f"Action '{action}' is not available on category '{item.path}'")

    handlers = {
        "navigate": (callbacks.on_navigate, (item.path,)),
        "view": (callbacks.on_view, (item.path,)),
        "edit": (callbacks.on_edit, (item.path,)),
        "delete": (callbacks.on_delete, (item.path, item.name)),
        "add_subcategory": (callbacks.on_add_subcategory, (item.path,)),
        "edit_attributes": (callbacks.on_edit_attributes, (item.path,)),
        "move_up": (callbacks.on_move_up, (item.id,)),
        "move_down": (callbacks.on_move_down, (item.id,)),
        "toggle_featured": (callbacks.on_toggle_featured, (item.id,)),
    }
    handler, args = handlers[action]
    if handler is None:
        return None
    return handler(*args)


def dispatch_reorder(items: List[CategoryViewItem], from_index: int, to_index: int, callbacks: ViewCallbacks) -> Any:
    """Drag-drop within a sibling list: hand the reordered id list to on_reorder."""
    ids = [item.id for item in items]
    if not 0 <= from_index < len(ids) or not 0 <= to_index < len(ids):
        raise CategoryValidationError(f"Move from {from_index} to {to_index} is out of range")
    ids.insert(to_index, ids.pop(from_index))
    if callbacks.on_reorder is None:
        return None
    return callbacks.on_reorder(ids)
