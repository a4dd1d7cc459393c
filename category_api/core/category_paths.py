"""
Path resolution for the category tree.

A path is the slash-joined sequence of category names from a root to a node.
Segments are compared as-is; they are percent-encoded only when a path is
put into a backend URL. Route parameters arrive already decoded.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

from category_api.core.category_tree import Category
from category_api.core.errors import CategoryNotFound

PATH_SEPARATOR = "/"

_ARROW_SEPARATOR = re.compile(r"\s*>\s*")


def split_path(path: Optional[str]) -> List[str]:
    """
    Split a path into its name segments.

    Empty segments are dropped, so "A/", "/A" and "A" are the same path.
    """
    if not path:
        return []
    return [part for part in path.split(PATH_SEPARATOR) if part != ""]


def join_path(segments: List[str]) -> str:
    return PATH_SEPARATOR.join(segments)


def child_path(parent_path: str, name: str) -> str:
    """Path of a child named `name` under `parent_path` ("" is the root level)."""
    return f"{parent_path}{PATH_SEPARATOR}{name}" if parent_path else name


def parent_path_of(path: str) -> str:
    return join_path(split_path(path)[:-1])


def encode_path(path: str) -> str:
    """Percent-encode each segment for use in a URL, keeping "/" between them."""
    return PATH_SEPARATOR.join(quote(segment, safe="") for segment in split_path(path))


def normalize_path(path: Optional[str]) -> str:
    """
    Normalize a user or backend supplied path.

    Breadcrumb style separators ("Electronics > Phones") become "/",
    surrounding whitespace and empty segments are removed.
    """
    if not path:
        return ""
    path = _ARROW_SEPARATOR.sub(PATH_SEPARATOR, path.strip())
    return join_path(split_path(path))


def resolve(tree: List[Category], path: str) -> Category:
    """
    Resolve a path to its node by walking the tree level by level.

    Args:
        tree: Root categories
        path: Slash-joined name path

    Returns:
        The Category at `path`

    Raises:
        CategoryNotFound: If any segment is missing, a non-terminal node has
                          no subcategories, or the path is empty.
    """
    segments = split_path(path)
    if not segments:
        raise CategoryNotFound(path or "", "Empty path does not address a category")

    level = tree
    node = None
    for segment in segments:
        if node is not None and not node.subcategories:
            raise CategoryNotFound(path)
        node = next((cat for cat in level if cat.name == segment), None)
        if node is None:
            raise CategoryNotFound(path)
        level = node.subcategories

    return node


def resolve_or_none(tree: List[Category], path: str) -> Optional[Category]:
    try:
        return resolve(tree, path)
    except CategoryNotFound:
        return None


def resolve_children(tree: List[Category], path: str) -> List[Category]:
    """
    Current sibling list for a navigation cursor.

    The empty path is the virtual root and yields the root list. A path
    that does not resolve, or resolves to a leaf, yields an empty list.
    """
    if not split_path(path):
        return tree
    node = resolve_or_none(tree, path)
    if node is None:
        return []
    return node.subcategories


def resolve_siblings(tree: List[Category], path: str) -> List[Category]:
    """
    The list that actually holds the node at `path` (its parent's subcategories).

    Raises:
        CategoryNotFound: If the path does not resolve.
    """
    segments = split_path(path)
    if not segments:
        raise CategoryNotFound(path or "")
    if len(segments) == 1:
        if not any(cat.name == segments[0] for cat in tree):
            raise CategoryNotFound(path)
        return tree
    parent = resolve(tree, join_path(segments[:-1]))
    if not any(cat.name == segments[-1] for cat in parent.subcategories):
        raise CategoryNotFound(path)
    return parent.subcategories


def path_of(chain: List[Category]) -> str:
    """Join the names of a root-to-node chain built by the caller."""
    return join_path([node.name for node in chain])


def find_chain(
    tree: List[Category],
    predicate: Callable[[Category], bool],
) -> Optional[List[Category]]:
    """
    Depth-first search for the first node matching `predicate`.

    Returns:
        Root-to-node chain, or None if nothing matches.
    """
    def walk(nodes: List[Category], chain: List[Category]) -> Optional[List[Category]]:
        for node in nodes:
            current = chain + [node]
            if predicate(node):
                return current
            found = walk(node.subcategories, current)
            if found:
                return found
        return None

    return walk(tree, [])


def breadcrumbs(path: str) -> List[Tuple[str, str]]:
    """(name, path) pairs for each segment of `path`, root first."""
    segments = split_path(path)
    return [(segment, join_path(segments[:i + 1])) for i, segment in enumerate(segments)]


@dataclass
class _IndexEntry:
    node: Category
    parent_id: Optional[int]
    child_ids: List[int] = field(default_factory=list)


class CategoryIndex:
    """
    Id-keyed arena over a category tree.

    Stores a parent pointer and ordered child ids per node, so id lookups
    and path derivation are O(depth) instead of a walk from the root.
    Paths are computed on demand from the indexed tree and never cached,
    so a rename is reflected as soon as a new index is built.
    """

    def __init__(self, tree: List[Category]):
        self.tree = tree
        self.root_ids: List[int] = []
        self._entries: Dict[int, _IndexEntry] = {}

        def add(nodes: List[Category], parent_id: Optional[int]):
            for node in nodes:
                self._entries[node.id] = _IndexEntry(
                    node=node,
                    parent_id=parent_id,
                    child_ids=[child.id for child in node.subcategories],
                )
                add(node.subcategories, node.id)

        add(tree, None)
        self.root_ids = [node.id for node in tree]

    def __contains__(self, category_id: int) -> bool:
        return category_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def ids(self) -> List[int]:
        return list(self._entries)

    def _entry(self, category_id: int) -> _IndexEntry:
        entry = self._entries.get(category_id)
        if entry is None:
            raise CategoryNotFound(str(category_id), f"Category with ID {category_id} not found")
        return entry

    def get(self, category_id: int) -> Category:
        return self._entry(category_id).node

    def parent_of(self, category_id: int) -> Optional[Category]:
        parent_id = self._entry(category_id).parent_id
        return self._entries[parent_id].node if parent_id is not None else None

    def children_of(self, category_id: int) -> List[int]:
        return list(self._entry(category_id).child_ids)

    def siblings_of(self, category_id: int) -> List[Category]:
        """The real sibling list holding `category_id` (the same list object as in the tree)."""
        parent = self.parent_of(category_id)
        return parent.subcategories if parent is not None else self.tree

    def chain_of(self, category_id: int) -> List[Category]:
        chain = []
        current: Optional[int] = category_id
        while current is not None:
            entry = self._entry(current)
            chain.append(entry.node)
            current = entry.parent_id
        chain.reverse()
        return chain

    def path_of(self, category_id: int) -> str:
        return path_of(self.chain_of(category_id))

    def depth_of(self, category_id: int) -> int:
        return len(self.chain_of(category_id)) - 1


def search_categories(records: List, query: str) -> List:
    """
    Filter flattened records by name or path (case-insensitive substring).

    Args:
        records: Records with `name` and `path` attributes
        query: Search query string

    Returns:
        Filtered list in the original order; all records for an empty query
    """
    if not query or not query.strip():
        return records

    q = query.strip().lower()
    return [
        record for record in records
        if q in record.name.lower() or q in record.path.lower()
    ]
