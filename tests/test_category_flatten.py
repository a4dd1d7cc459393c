from category_api.core.category_flatten import (
    category_stats,
    count_attributes,
    count_categories,
    count_leaves,
    flatten,
    tree_stats,
)
from category_api.core.category_paths import resolve
from category_api.core.category_tree import build_category_tree, is_leaf, load_tree


def _count(nodes):
    return sum(1 + _count(node.subcategories) for node in nodes)


class TestFlatten:
    """Tests for flattening the tree."""

    def test_flatten_scenario(self):
        """Test A/B/C flattens to three records with levels 0, 1, 2."""
        tree = load_tree([{
            "id": 1, "name": "A",
            "subcategories": [{
                "id": 2, "name": "B",
                "subcategories": [{"id": 3, "name": "C"}],
            }],
        }])

        records = flatten(tree)

        assert [(r.name, r.level, r.path) for r in records] == [
            ("A", 0, "A"),
            ("B", 1, "A/B"),
            ("C", 2, "A/B/C"),
        ]

    def test_record_count_matches_node_count(self, tree):
        """Test that every node appears exactly once."""
        records = flatten(tree)

        assert len(records) == _count(tree)
        assert len({r.id for r in records}) == len(records)

    def test_root_records_are_level_zero(self, tree):
        """Test that the number of level-0 records equals the number of roots."""
        records = flatten(tree)
        assert sum(1 for r in records if r.level == 0) == len(tree)

    def test_pre_order(self, tree):
        """Test that each node is followed by its subtree before its next sibling."""
        names = [r.name for r in flatten(tree)]
        assert names == [
            "Electronics", "Phones", "Smartphones", "Feature Phones", "Laptops",
            "Vehicles", "Cars", "Real Estate",
        ]

    def test_flatten_subtree_with_parent_path(self, tree):
        """Test flattening below a cursor keeps full paths and depths."""
        phones = resolve(tree, "Electronics/Phones")

        records = flatten(phones.subcategories, "Electronics/Phones")

        assert [(r.path, r.level) for r in records] == [
            ("Electronics/Phones/Smartphones", 2),
            ("Electronics/Phones/Feature Phones", 2),
        ]

    def test_leafness_matches_subcategories(self, tree):
        """Test that a record is a leaf exactly when it has no subcategories."""
        for record in flatten(tree):
            node = resolve(tree, record.path)
            assert record.is_leaf == is_leaf(node) == (len(node.subcategories) == 0)

    def test_to_dict(self, tree):
        """Test the serialized record shape."""
        record = flatten(tree)[2].to_dict()

        assert record["path"] == "Electronics/Phones/Smartphones"
        assert record["is_leaf"] is True
        assert record["subcategory_count"] == 0
        assert [a["key"] for a in record["attributes"]] == ["brand", "storage"]


class TestStats:
    """Tests for tree and category statistics."""

    def test_counts(self, tree):
        """Test the simple counters."""
        records = flatten(tree)

        assert count_categories(records) == 8
        assert count_leaves(records) == 5
        assert count_attributes(records) == 3

    def test_tree_stats(self, tree):
        """Test whole-tree statistics."""
        stats = tree_stats(tree)

        assert stats.to_dict() == {
            "total_categories": 8,
            "root_categories": 3,
            "leaf_categories": 5,
            "total_attributes": 3,
            "featured_categories": 1,
            "max_depth": 2,
        }

    def test_empty_tree_stats(self):
        """Test statistics of an empty forest."""
        assert tree_stats([]).total_categories == 0
        assert tree_stats([]).max_depth == 0

    def test_category_stats(self, tree):
        """Test recursive counts for one category."""
        stats = category_stats(resolve(tree, "Electronics"))

        assert stats.subcategory_count == 2
        assert stats.total_subcategories == 4
        assert stats.attribute_count == 0
        assert stats.total_attributes == 3


class TestBuildFromRows:
    """Tests for building the tree from flat backend rows."""

    def test_build_from_parent_ids(self):
        """Test that rows with parent_id nest and sort by sort_order."""
        rows = [
            {"id": 1, "name": "Fashion", "parent_id": None, "sort_order": 2000},
            {"id": 2, "name": "Books", "parent_id": None, "sort_order": 1000},
            {"id": 3, "name": "Shoes", "parent_id": 1, "sort_order": 2000},
            {"id": 4, "name": "Bags", "parent_id": 1, "sort_order": 1000},
        ]

        tree = build_category_tree(rows)

        assert [node.name for node in tree] == ["Books", "Fashion"]
        assert [node.name for node in tree[1].subcategories] == ["Bags", "Shoes"]

    def test_load_tree_detects_flat_rows(self):
        """Test that load_tree builds a tree from a wrapped list of flat rows."""
        payload = {"data": [
            {"id": 1, "name": "Fashion"},
            {"id": 2, "name": "Shoes", "parent_id": 1},
        ]}

        tree = load_tree(payload)

        assert len(tree) == 1
        assert tree[0].subcategories[0].name == "Shoes"

    def test_orphan_rows_become_roots(self):
        """Test that a row whose parent is missing is treated as a root."""
        tree = build_category_tree([{"id": 5, "name": "Orphan", "parent_id": 42}])
        assert [node.name for node in tree] == ["Orphan"]

    def test_attribute_options_from_json_string(self):
        """Test that JSON-encoded options are decoded and scalar types drop options."""
        tree = load_tree([{
            "id": 1, "name": "Phones",
            "category_attributes": [
                {"key": "brand", "label": "Brand", "type": "array", "options": '["Apple", "Nokia"]'},
                {"key": "model", "label": "Model", "type": "string", "options": ["x"]},
            ],
        }])

        brand, model = tree[0].attributes
        assert brand.options == ["Apple", "Nokia"]
        assert model.options is None
