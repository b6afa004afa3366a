"""
Tests for funcarrows.document.document module.

Tests the in-memory host: shape and binding storage, geometry queries,
markers and subscriptions.
"""

import math

import pytest

from funcarrows.core.types import ErrorMarker, Terminal
from funcarrows.document.document import Document
from funcarrows.document.host import HostError, ShapeNotFoundError
from funcarrows.document.model import ShapePatch, UIEvent
from funcarrows.geometry.primitives import Box, Vec


class TestShapes:
    """Tests for creating, updating and deleting shapes."""

    def test_create_shape(self, document):
        shape = document.create_shape("geo", x=1, y=2, props={"w": 10}, shape_id="shape:a")

        assert shape.x == 1.0
        assert isinstance(shape.x, float)
        assert document.get_shape("shape:a") is shape
        assert document.shape_count == 1

    def test_generated_ids(self, document):
        first = document.create_shape("geo")
        second = document.create_shape("geo")
        assert first.id != second.id
        assert first.id.startswith("shape:")

    def test_duplicate_id(self, document, make_box):
        make_box("shape:a")
        with pytest.raises(HostError, match="already exists"):
            make_box("shape:a")

    def test_unknown_parent(self, document):
        with pytest.raises(ShapeNotFoundError):
            document.create_shape("geo", parent_id="group:none")

    @pytest.mark.parametrize("bad", ["1", True, math.nan, math.inf, None])
    def test_invalid_coordinates(self, document, bad):
        with pytest.raises(HostError):
            document.create_shape("geo", x=bad)

    def test_update_merges_props(self, document, two_boxes):
        updated = document.update_shape(ShapePatch(id="shape:b", x=310.0, props={"val": 6}))

        assert updated.x == 310.0
        assert updated.props == {"w": 100, "h": 100, "val": 6, "label": "target"}

    def test_update_is_atomic(self, document, two_boxes):
        """Test that a rejected patch leaves the shape unchanged."""
        with pytest.raises(HostError):
            document.update_shape(ShapePatch(id="shape:b", props={"val": 0}, y="abc"))

        shape = document.get_shape("shape:b")
        assert shape.props["val"] == 5
        assert shape.y == 0.0

    def test_update_cannot_change_type(self, document, two_boxes):
        with pytest.raises(HostError, match="Cannot change type"):
            document.update_shape(ShapePatch(id="shape:a", type="text"))

    def test_update_same_type_allowed(self, document, two_boxes):
        document.update_shape(ShapePatch(id="shape:a", type="geo", props={"val": 2}))
        assert document.get_shape("shape:a").props["val"] == 2

    def test_update_unknown(self, document):
        with pytest.raises(ShapeNotFoundError):
            document.update_shape(ShapePatch(id="shape:none"))

    def test_old_snapshot_is_not_mutated(self, document, two_boxes):
        _, b = two_boxes
        document.update_shape(ShapePatch(id="shape:b", props={"val": 6}))
        assert b.props["val"] == 5

    def test_delete_cascades(self, document, make_box):
        document.create_shape("group", shape_id="group:1")
        document.create_shape("geo", parent_id="group:1", shape_id="shape:child")
        make_box("shape:b")
        document.create_connector("shape:child", "shape:b", shape_id="arrow:1")

        document.delete_shape("group:1")

        assert document.get_shape("shape:child") is None
        assert [b.to_id for b in document.get_bindings_involving_shape("arrow:1")] == ["shape:b"]
        assert document.get_shape("arrow:1") is not None

    def test_delete_unknown(self, document):
        with pytest.raises(ShapeNotFoundError):
            document.delete_shape("shape:none")


class TestBindings:
    """Tests for connectors and bindings."""

    def test_create_connector(self, document, two_boxes):
        connector = document.create_connector("shape:a", "shape:b", "{ val: 1 }", shape_id="arrow:1")

        assert connector.type == "arrow"
        assert connector.text == "{ val: 1 }"
        assert connector.props["color"] == "black"
        terminals = {b.to_id: b.terminal for b in document.get_bindings_involving_shape("arrow:1")}
        assert terminals == {"shape:a": Terminal.START, "shape:b": Terminal.END}

    def test_connector_from_unknown_shape(self, document):
        with pytest.raises(ShapeNotFoundError):
            document.create_connector("shape:none", "shape:b")

    def test_binding_requires_connector(self, document, two_boxes):
        with pytest.raises(HostError, match="not a arrow"):
            document.create_binding("shape:a", "shape:b", Terminal.START)

    def test_binding_to_unknown_shape(self, document, two_boxes):
        document.create_shape("arrow", shape_id="arrow:1")
        with pytest.raises(ShapeNotFoundError):
            document.create_binding("arrow:1", "shape:none", Terminal.END)

    def test_bindings_to_shape(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", shape_id="arrow:1")
        assert [b.from_id for b in document.get_bindings_to_shape("shape:b")] == ["arrow:1"]
        assert document.get_bindings_to_shape("shape:b", "line") == []

    def test_delete_binding(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", shape_id="arrow:1")
        binding = document.get_bindings()[0]

        document.delete_binding(binding.id)

        assert document.binding_count == 1
        with pytest.raises(HostError):
            document.delete_binding(binding.id)

    def test_custom_connector_type(self):
        document = Document(connector_type="line")
        document.create_shape("geo", shape_id="shape:a")
        document.create_shape("geo", shape_id="shape:b")
        connector = document.create_connector("shape:a", "shape:b")
        assert connector.type == "line"
        assert document.get_bindings()[0].type == "line"


class TestGeometry:
    """Tests for page-space geometry."""

    def test_bounds(self, document, two_boxes):
        assert document.get_shape_page_bounds("shape:b") == Box(300.0, 0.0, 100.0, 100.0)
        assert document.get_shape_page_bounds("shape:none") is None

    def test_rotated_bounds(self, document):
        document.create_shape("geo", rotation=math.pi / 2, props={"w": 100, "h": 50}, shape_id="shape:r")
        bounds = document.get_shape_page_bounds("shape:r")
        assert bounds.w == pytest.approx(50.0)
        assert bounds.h == pytest.approx(100.0)

    def test_parent_transform(self, document):
        document.create_shape("group", x=100, y=100, shape_id="group:1")
        document.create_shape("geo", x=10, y=0, props={"w": 5, "h": 5}, parent_id="group:1", shape_id="shape:c")
        bounds = document.get_shape_page_bounds("shape:c")
        assert (bounds.x, bounds.y) == (110.0, 100.0)

    def test_shape_at_point(self, document, two_boxes, make_box):
        assert document.get_shape_at_point(Vec(50, 50)).id == "shape:a"
        assert document.get_shape_at_point(Vec(200, 50)) is None

        make_box("shape:top", 0, 0, w=60, h=60)
        assert document.get_shape_at_point(Vec(50, 50)).id == "shape:top"
        assert document.get_shape_at_point(Vec(50, 50), lambda s: s.id != "shape:top").id == "shape:a"

    def test_zero_area_never_hit(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b")
        assert document.get_shape_at_point(Vec(0, 0)).id == "shape:a"

    def test_viewport(self, document, two_boxes):
        assert len(document.get_shapes_in_view()) == 2
        document.set_viewport(Box(0, 0, 150, 150))
        assert [s.id for s in document.get_shapes_in_view()] == ["shape:a"]
        assert document.viewport == Box(0, 0, 150, 150)

    def test_children(self, document):
        document.create_shape("group", shape_id="group:1")
        document.create_shape("geo", parent_id="group:1", shape_id="shape:1")
        document.create_shape("geo", parent_id="group:1", shape_id="shape:2")
        assert document.get_sorted_child_ids("group:1") == ["shape:1", "shape:2"]


class TestMarkers:
    """Tests for connector markers."""

    def test_marker_recolors(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", shape_id="arrow:1")

        document.set_connector_marker("arrow:1", ErrorMarker.ERROR)

        assert document.get_connector_marker("arrow:1") == ErrorMarker.ERROR
        assert document.get_shape("arrow:1").props["color"] == "orange"

    def test_unchanged_color_does_not_update(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", shape_id="arrow:1")
        changes = []
        document.on_after_change(changes.append)

        document.set_connector_marker("arrow:1", ErrorMarker.OK)

        assert changes == []

    def test_custom_colors(self):
        document = Document(ok_color="green", error_color="red")
        document.create_shape("geo", shape_id="shape:a")
        document.create_connector("shape:a", "shape:a", shape_id="arrow:1")
        document.set_connector_marker("arrow:1", ErrorMarker.ERROR)
        assert document.get_shape("arrow:1").props["color"] == "red"

    def test_unknown_connector(self, document):
        with pytest.raises(ShapeNotFoundError):
            document.set_connector_marker("arrow:none", ErrorMarker.OK)

    def test_marker_dropped_on_delete(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", shape_id="arrow:1")
        document.set_connector_marker("arrow:1", ErrorMarker.OK)
        document.delete_shape("arrow:1")
        assert document.get_connector_marker("arrow:1") is None


class TestSubscriptions:
    """Tests for notifications."""

    def test_lifecycle_notifications(self, document, two_boxes):
        created, bound, unbound, deleted = [], [], [], []
        document.on_after_create_shape(created.append)
        document.on_after_create_binding(bound.append)
        document.on_after_delete_binding(unbound.append)
        document.on_after_delete_shape(deleted.append)

        document.create_connector("shape:a", "shape:b", shape_id="arrow:1")
        document.delete_shape("arrow:1")

        assert [s.id for s in created] == ["arrow:1"]
        assert len(bound) == 2
        assert len(unbound) == 2
        assert [s.id for s in deleted] == ["arrow:1"]

    def test_unsubscribe(self, document, two_boxes):
        changes = []
        unsubscribe = document.on_after_change(changes.append)
        unsubscribe()
        unsubscribe()

        document.update_shape(ShapePatch(id="shape:a", props={"val": 2}))

        assert changes == []

    def test_failing_callback_does_not_stop_others(self, document, two_boxes):
        changes = []

        def broken(shape):
            raise RuntimeError("boom")

        document.on_after_change(broken)
        document.on_after_change(changes.append)
        document.update_shape(ShapePatch(id="shape:a", props={"val": 2}))

        assert len(changes) == 1

    def test_events_move_pointer(self, document):
        events = []
        document.on_event(events.append)

        document.click(12, 34)
        document.dispatch_event(UIEvent(type="keyboard", name="key_down"))

        assert document.current_page_point == Vec(12.0, 34.0)
        assert events[0].is_pointer_down
        assert not events[1].is_pointer_down

    def test_tick(self, document):
        frames = []
        unsubscribe = document.on_tick(lambda: frames.append(1))
        document.tick()
        unsubscribe()
        document.tick()
        assert frames == [1]
