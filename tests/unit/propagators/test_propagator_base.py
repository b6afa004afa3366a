"""
Tests for funcarrows.propagators.base module.
"""

import pytest

from funcarrows.core.types import ErrorMarker, TriggerKind
from funcarrows.document.model import ShapePatch
from funcarrows.program.errors import ProgramRuntimeError
from funcarrows.program.values import Namespace
from funcarrows.propagators.base import CascadeDepthError, PropagationGuard, build_host_view
from funcarrows.propagators.triggers import ChangePropagator


class TestPropagationGuard:
    """Tests for PropagationGuard."""

    def test_enter_and_exit(self):
        guard = PropagationGuard(max_depth=4)
        guard.enter("arrow:1")
        guard.enter("arrow:2")

        assert guard.depth == 2
        assert guard.is_running("arrow:1")

        guard.exit("arrow:2")
        guard.exit("arrow:1")
        assert guard.depth == 0
        assert not guard.is_running("arrow:1")

    def test_max_depth(self):
        guard = PropagationGuard(max_depth=2)
        guard.enter("arrow:1")
        guard.enter("arrow:2")
        with pytest.raises(CascadeDepthError):
            guard.enter("arrow:3")
        assert guard.depth == 2

    def test_exit_out_of_order(self):
        guard = PropagationGuard()
        guard.enter("arrow:1")
        guard.enter("arrow:2")
        guard.exit("arrow:1")
        assert not guard.is_running("arrow:1")
        assert guard.is_running("arrow:2")

    def test_exit_unknown_is_ignored(self):
        guard = PropagationGuard()
        guard.exit("arrow:1")
        assert guard.depth == 0


class TestBuildHostView:
    """Tests for build_host_view()."""

    def test_get_shape(self, document, two_boxes):
        view = build_host_view(document)
        assert isinstance(view, Namespace)

        record = view.get("getShape")("shape:b")
        assert record["label"] == "target"
        assert view.get("getShape")({"id": "shape:a"})["val"] == 1
        assert view.get("getShape")("shape:none") is None

    def test_bounds(self, document, two_boxes):
        view = build_host_view(document)
        bounds = view.get("getShapePageBounds")("shape:b")
        assert (bounds["x"], bounds["w"], bounds["maxX"]) == (300.0, 100.0, 400.0)

    def test_page_queries(self, document, two_boxes):
        view = build_host_view(document)
        assert [s["id"] for s in view.get("getCurrentPageShapes")()] == ["shape:a", "shape:b"]
        assert len(view.get("getShapesInView")()) == 2
        document.click(5, 6)
        assert view.get("getCurrentPagePoint")() == {"x": 5.0, "y": 6.0}

    def test_unknown_member(self, document):
        with pytest.raises(ProgramRuntimeError):
            build_host_view(document).get("deleteShape")


class TestPropagate:
    """Tests for Propagator.propagate() without an engine."""

    def test_runs_and_marks_ok(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", "{ val: from.val + 1 }", shape_id="arrow:1")
        propagator = ChangePropagator(document)

        assert propagator.kind == TriggerKind.CHANGE
        assert propagator.propagate("arrow:1")
        assert document.get_shape("shape:b").props["val"] == 2
        assert document.get_connector_marker("arrow:1") == ErrorMarker.OK

    def test_missing_connector(self, document):
        assert not ChangePropagator(document).propagate("arrow:none")

    def test_unbound_connector(self, document, two_boxes):
        document.create_shape("arrow", props={"text": "{ val: 1 }"}, shape_id="arrow:1")
        assert not ChangePropagator(document).propagate("arrow:1")
        assert document.get_connector_marker("arrow:1") is None

    def test_failure_marks_error(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", "{ val: from.nothing.x }", shape_id="arrow:1")
        propagator = ChangePropagator(document)

        assert not propagator.propagate("arrow:1")
        assert document.get_connector_marker("arrow:1") == ErrorMarker.ERROR
        assert document.get_shape("arrow:1").props["color"] == "orange"
        assert document.get_shape("shape:b").props["val"] == 5

    def test_already_running_is_skipped(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", "{ val: 9 }", shape_id="arrow:1")
        propagator = ChangePropagator(document)
        propagator.guard.enter("arrow:1")

        assert not propagator.propagate("arrow:1")
        assert document.get_shape("shape:b").props["val"] == 5
        assert document.get_connector_marker("arrow:1") is None

    def test_depth_exceeded_marks_error(self, document, two_boxes):
        document.create_connector("shape:a", "shape:b", "{ val: 9 }", shape_id="arrow:1")
        propagator = ChangePropagator(document, guard=PropagationGuard(max_depth=0))

        assert not propagator.propagate("arrow:1")
        assert document.get_connector_marker("arrow:1") == ErrorMarker.ERROR

    def test_tracking_follows_text(self, document, two_boxes):
        """Test that re-classification untracks and drops the cache entry."""
        connector = document.create_connector("shape:a", "shape:b", "{ val: 1 }", shape_id="arrow:1")
        propagator = ChangePropagator(document)

        propagator.on_connector_change(connector)
        assert propagator.listeners.is_active("arrow:1")
        assert "arrow:1" in propagator.cache

        updated = document.update_shape(ShapePatch(id="arrow:1", props={"text": "click { val: 1 }"}))
        propagator.on_connector_change(updated)
        assert not propagator.listeners.is_active("arrow:1")
        assert "arrow:1" not in propagator.cache

    def test_ignores_other_shape_types(self, document, two_boxes):
        a, _ = two_boxes
        propagator = ChangePropagator(document)
        propagator.on_connector_change(a)
        assert len(propagator.listeners) == 0
