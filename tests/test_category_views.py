import pytest

from category_api.core.category_views import (
    DEFAULT_COLOR,
    DEFAULT_ICON,
    ViewCallbacks,
    build_view,
    dispatch_action,
    dispatch_reorder,
    item_actions,
)
from category_api.core.errors import CategoryValidationError, LeafConstraintViolation


def _item(view, name):
    return next(item for item in view.items if item.name == name)


class TestItemActions:
    """Tests for action gating."""

    def test_leaf_actions(self):
        """Test that leaves offer attribute editing but not navigation."""
        actions = item_actions(is_leaf=True, edit_mode=False)
        assert "edit_attributes" in actions
        assert "navigate" not in actions
        assert "add_subcategory" not in actions

    def test_branch_actions(self):
        """Test that branches offer navigation and adding children."""
        actions = item_actions(is_leaf=False, edit_mode=False)
        assert "navigate" in actions
        assert "add_subcategory" in actions
        assert "edit_attributes" not in actions

    def test_edit_mode_ordering(self):
        """Test that ordering affordances respect the list boundaries."""
        first = item_actions(is_leaf=True, edit_mode=True, is_first=True, is_last=False)
        last = item_actions(is_leaf=True, edit_mode=True, is_first=False, is_last=True)

        assert "move_up" not in first and "move_down" in first
        assert "move_down" not in last and "move_up" in last
        assert "toggle_featured" in first

    def test_no_ordering_outside_edit_mode(self):
        """Test that move/featured actions only appear in edit mode."""
        actions = item_actions(is_leaf=False, edit_mode=False, is_first=False, is_last=False)
        assert not {"move_up", "move_down", "toggle_featured"} & set(actions)


class TestBuildView:
    """Tests for the menu, grid, table and tree views."""

    def test_menu_root_level(self, tree):
        """Test the menu at the root level."""
        view = build_view("menu", tree)

        assert [i.name for i in view.items] == ["Electronics", "Vehicles", "Real Estate"]
        assert view.breadcrumbs == []
        assert view.stats["total_categories"] == 8

    def test_menu_below_cursor(self, tree):
        """Test the menu under a navigation path with breadcrumbs."""
        view = build_view("menu", tree, "Electronics/Phones")

        assert [i.path for i in view.items] == [
            "Electronics/Phones/Smartphones",
            "Electronics/Phones/Feature Phones",
        ]
        assert all(i.level == 2 for i in view.items)
        assert view.breadcrumbs[-1] == ("Phones", "Electronics/Phones")

    def test_menu_unknown_path_is_empty(self, tree):
        """Test that an unknown cursor renders an empty list."""
        assert build_view("menu", tree, "Toys").items == []

    def test_defaults_for_icon_and_color(self, tree):
        """Test that missing icon and color fall back to defaults."""
        real_estate = _item(build_view("grid", tree), "Real Estate")
        electronics = _item(build_view("grid", tree), "Electronics")

        assert (real_estate.icon, real_estate.color) == (DEFAULT_ICON, DEFAULT_COLOR)
        assert (electronics.icon, electronics.color) == ("laptop", "blue")

    def test_grid_counts(self, tree):
        """Test subcategory and attribute counts on cards."""
        view = build_view("grid", tree, "Electronics")

        phones = _item(view, "Phones")
        laptops = _item(view, "Laptops")
        assert (phones.subcategory_count, phones.is_leaf) == (2, False)
        assert (laptops.attribute_count, laptops.is_leaf) == (1, True)

    def test_table_lists_every_category(self, tree):
        """Test that the table shows all flattened records."""
        view = build_view("table", tree)

        assert len(view.items) == 8
        assert [i.level for i in view.items][:3] == [0, 1, 2]

    def test_table_ordering_uses_real_siblings(self, tree):
        """Test that move affordances in the table follow the real sibling lists."""
        view = build_view("table", tree, edit_mode=True)

        laptops = _item(view, "Laptops")
        feature_phones = _item(view, "Feature Phones")
        vehicles = _item(view, "Vehicles")

        assert "move_down" not in laptops.actions and "move_up" in laptops.actions
        assert "move_down" not in feature_phones.actions
        assert {"move_up", "move_down"} <= set(vehicles.actions)

    def test_table_search(self, tree):
        """Test filtering the table by name."""
        view = build_view("table", tree, query="cars")
        assert [i.path for i in view.items] == ["Vehicles/Cars"]

    def test_tree_view_nests_children(self, tree):
        """Test that the tree view expands all descendants."""
        view = build_view("tree", tree)

        electronics = _item(view, "Electronics")
        phones = electronics.children[0]
        assert phones.name == "Phones"
        assert [c.name for c in phones.children] == ["Smartphones", "Feature Phones"]
        assert phones.children[0].level == 2

    def test_unknown_mode(self, tree):
        """Test that an unknown mode is rejected."""
        with pytest.raises(CategoryValidationError):
            build_view("carousel", tree)

    def test_to_dict(self, tree):
        """Test the serialized view shape."""
        data = build_view("menu", tree, "Vehicles", edit_mode=True).to_dict()

        assert data["mode"] == "menu"
        assert data["breadcrumbs"] == [{"name": "Vehicles", "path": "Vehicles"}]
        assert data["items"][0]["path"] == "Vehicles/Cars"


class TestDispatch:
    """Tests for routing actions to callbacks."""

    def test_navigate_branch(self, tree):
        """Test that navigating a branch passes its path."""
        visited = []
        callbacks = ViewCallbacks(on_navigate=visited.append)

        dispatch_action(_item(build_view("menu", tree), "Electronics"), "navigate", callbacks)

        assert visited == ["Electronics"]

    def test_navigate_leaf_rejected(self, tree):
        """Test that a leaf cannot be navigated into."""
        callbacks = ViewCallbacks(on_navigate=lambda path: path)
        leaf = _item(build_view("menu", tree), "Real Estate")

        with pytest.raises(LeafConstraintViolation):
            dispatch_action(leaf, "navigate", callbacks)

    def test_edit_attributes_on_branch_rejected(self, tree):
        """Test that attribute editing is not available on a branch."""
        branch = _item(build_view("menu", tree), "Vehicles")
        with pytest.raises(LeafConstraintViolation):
            dispatch_action(branch, "edit_attributes", ViewCallbacks())

    def test_move_outside_edit_mode_rejected(self, tree):
        """Test that ordering actions need edit mode."""
        item = _item(build_view("menu", tree), "Vehicles")
        with pytest.raises(CategoryValidationError):
            dispatch_action(item, "move_up", ViewCallbacks())

    def test_ordering_callbacks_receive_ids(self, tree):
        """Test that move and featured callbacks receive the category id."""
        calls = []
        callbacks = ViewCallbacks(
            on_move_up=lambda cid: calls.append(("up", cid)),
            on_toggle_featured=lambda cid: calls.append(("featured", cid)),
        )
        item = _item(build_view("menu", tree, edit_mode=True), "Vehicles")

        dispatch_action(item, "move_up", callbacks)
        dispatch_action(item, "toggle_featured", callbacks)

        assert calls == [("up", 6), ("featured", 6)]

    def test_delete_receives_path_and_name(self, tree):
        """Test that delete passes path and name for the confirmation prompt."""
        calls = []
        callbacks = ViewCallbacks(on_delete=lambda path, name: calls.append((path, name)))
        item = _item(build_view("menu", tree, "Vehicles"), "Cars")

        dispatch_action(item, "delete", callbacks)

        assert calls == [("Vehicles/Cars", "Cars")]

    def test_missing_callback_returns_none(self, tree):
        """Test that an unset callback is ignored."""
        item = _item(build_view("menu", tree), "Electronics")
        assert dispatch_action(item, "view", ViewCallbacks()) is None

    def test_dispatch_reorder(self, tree):
        """Test that drag-drop hands the reordered id list to on_reorder."""
        orders = []
        items = build_view("menu", tree, edit_mode=True).items

        dispatch_reorder(items, 2, 0, ViewCallbacks(on_reorder=orders.append))

        assert orders == [[8, 1, 6]]

    def test_dispatch_reorder_out_of_range(self, tree):
        """Test that out-of-range drag indices are rejected."""
        items = build_view("menu", tree).items
        with pytest.raises(CategoryValidationError):
            dispatch_reorder(items, 0, 5, ViewCallbacks())
