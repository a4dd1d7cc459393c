import pytest

from category_api.core.category_flatten import flatten
from category_api.core.category_paths import (
    CategoryIndex,
    breadcrumbs,
    child_path,
    encode_path,
    find_chain,
    normalize_path,
    parent_path_of,
    path_of,
    resolve,
    resolve_children,
    resolve_or_none,
    resolve_siblings,
    search_categories,
    split_path,
)
from category_api.core.category_tree import load_tree
from category_api.core.errors import CategoryNotFound


class TestPathHelpers:
    """Tests for path splitting, joining and encoding."""

    def test_split_drops_empty_segments(self):
        """Test that leading, trailing and doubled slashes are ignored."""
        assert split_path("/Electronics//Phones/") == ["Electronics", "Phones"]
        assert split_path("") == []
        assert split_path(None) == []

    def test_split_keeps_segments_literal(self):
        """Test that segments are not percent-decoded a second time."""
        assert split_path("Sale %41/Tools") == ["Sale %41", "Tools"]

    def test_encode_path_keeps_separators(self):
        """Test that each segment is encoded but slashes between them are kept."""
        assert encode_path("Home & Garden/Power Tools") == "Home%20%26%20Garden/Power%20Tools"

    def test_normalize_arrow_separator(self):
        """Test that breadcrumb style paths normalize to slash-joined paths."""
        assert normalize_path(" Electronics > Phones ") == "Electronics/Phones"
        assert normalize_path("/Electronics/") == "Electronics"
        assert normalize_path(None) == ""

    def test_child_and_parent_path(self):
        """Test building a child path and taking it apart again."""
        assert child_path("", "Electronics") == "Electronics"
        assert child_path("Electronics", "Phones") == "Electronics/Phones"
        assert parent_path_of("Electronics/Phones") == "Electronics"
        assert parent_path_of("Electronics") == ""

    def test_breadcrumbs(self):
        """Test breadcrumb pairs for each ancestor."""
        assert breadcrumbs("Electronics/Phones") == [
            ("Electronics", "Electronics"),
            ("Phones", "Electronics/Phones"),
        ]
        assert breadcrumbs("") == []


class TestResolve:
    """Tests for resolving paths against the tree."""

    def test_resolve_scenario(self):
        """Test the A/B tree: A/B resolves, A/C is not found."""
        tree = load_tree([{"id": 1, "name": "A", "subcategories": [{"id": 2, "name": "B"}]}])

        assert resolve(tree, "A/B").id == 2
        with pytest.raises(CategoryNotFound):
            resolve(tree, "A/C")

    def test_resolve_root_and_nested(self, tree):
        """Test resolving a root and a deeply nested category."""
        assert resolve(tree, "Electronics").id == 1
        assert resolve(tree, "Electronics/Phones/Smartphones").id == 4

    def test_resolve_compares_decoded_names(self, tree):
        """Test that only the decoded form of a name resolves."""
        assert resolve(tree, "Real Estate").id == 8
        with pytest.raises(CategoryNotFound):
            resolve(tree, "Real%20Estate")

    def test_resolve_through_leaf_fails(self, tree):
        """Test that a path continuing below a leaf is not found."""
        with pytest.raises(CategoryNotFound):
            resolve(tree, "Real Estate/Apartments")

    def test_resolve_empty_path_fails(self, tree):
        """Test that the empty path does not address a category."""
        with pytest.raises(CategoryNotFound):
            resolve(tree, "")

    def test_resolve_is_case_sensitive(self, tree):
        """Test that names are compared exactly."""
        assert resolve_or_none(tree, "electronics") is None

    def test_round_trip_for_every_path(self, tree):
        """Test that every flattened path resolves back to a node with that path."""
        index = CategoryIndex(tree)
        for record in flatten(tree):
            node = resolve(tree, record.path)
            assert node.id == record.id
            assert index.path_of(node.id) == record.path


class TestResolveChildren:
    """Tests for the navigation cursor's sibling list."""

    def test_empty_path_is_root_level(self, tree):
        """Test that the empty path yields the root list itself."""
        assert resolve_children(tree, "") is tree

    def test_children_of_branch(self, tree):
        """Test the sibling list under a branch category."""
        names = [node.name for node in resolve_children(tree, "Electronics")]
        assert names == ["Phones", "Laptops"]

    def test_unknown_path_yields_empty_list(self, tree):
        """Test that a path that does not resolve yields [] instead of raising."""
        assert resolve_children(tree, "Nope/Nothing") == []

    def test_leaf_yields_empty_list(self, tree):
        """Test that a leaf has no children to show."""
        assert resolve_children(tree, "Electronics/Laptops") == []


class TestResolveSiblings:
    """Tests for the list that holds a node."""

    def test_root_siblings(self, tree):
        """Test that a root category's siblings are the root list."""
        assert resolve_siblings(tree, "Vehicles") is tree

    def test_nested_siblings(self, tree):
        """Test that a nested category's siblings are its parent's subcategories."""
        siblings = resolve_siblings(tree, "Electronics/Laptops")
        assert siblings is resolve(tree, "Electronics").subcategories

    def test_missing_node(self, tree):
        """Test that a missing node raises CategoryNotFound."""
        with pytest.raises(CategoryNotFound):
            resolve_siblings(tree, "Electronics/Tablets")


class TestCategoryIndex:
    """Tests for the id-keyed index."""

    def test_lookup_and_parent(self, tree):
        """Test id lookup and parent pointers."""
        index = CategoryIndex(tree)

        assert len(index) == 8
        assert index.get(5).name == "Feature Phones"
        assert index.parent_of(5).id == 2
        assert index.parent_of(1) is None
        assert index.root_ids == [1, 6, 8]

    def test_path_and_depth(self, tree):
        """Test that paths and depths are derived from the chain."""
        index = CategoryIndex(tree)

        assert index.path_of(4) == "Electronics/Phones/Smartphones"
        assert index.depth_of(4) == 2
        assert index.depth_of(8) == 0

    def test_siblings_are_real_lists(self, tree):
        """Test that siblings_of returns the list object held by the tree."""
        index = CategoryIndex(tree)

        assert index.siblings_of(3) is tree[0].subcategories
        assert index.siblings_of(6) is tree

    def test_children_of(self, tree):
        """Test ordered child ids."""
        assert CategoryIndex(tree).children_of(2) == [4, 5]

    def test_unknown_id(self, tree):
        """Test that an unknown id raises CategoryNotFound."""
        index = CategoryIndex(tree)
        assert 99 not in index
        with pytest.raises(CategoryNotFound):
            index.get(99)


class TestSearchAndChains:
    """Tests for search and chain helpers."""

    def test_find_chain(self, tree):
        """Test finding a root-to-node chain by predicate."""
        chain = find_chain(tree, lambda node: node.id == 7)
        assert path_of(chain) == "Vehicles/Cars"
        assert find_chain(tree, lambda node: node.id == 99) is None

    def test_search_by_name_and_path(self, tree):
        """Test case-insensitive search over names and paths."""
        records = flatten(tree)

        phones = [r.name for r in search_categories(records, "phone")]
        assert phones == ["Phones", "Smartphones", "Feature Phones"]

        under_vehicles = [r.name for r in search_categories(records, "vehicles/")]
        assert under_vehicles == ["Cars"]

    def test_empty_query_returns_everything(self, tree):
        """Test that a blank query does not filter."""
        records = flatten(tree)
        assert search_categories(records, "  ") == records
