"""
Tests for funcarrows.geometry.primitives module.
"""

import math

import numpy as np
import pytest

from funcarrows.geometry.primitives import (
    Box,
    Transform,
    Vec,
    point_in_polygon,
    polygons_intersect,
    rectangle_vertices,
)


def square(x, y, size=10.0):
    return rectangle_vertices(size, size) + np.array([x, y])


class TestBox:
    """Tests for Box."""

    def test_edges_and_center(self):
        box = Box(10, 20, 30, 40)
        assert (box.min_x, box.min_y, box.max_x, box.max_y) == (10, 20, 40, 60)
        assert box.center == Vec(25, 40)

    def test_contains(self):
        outer = Box(0, 0, 100, 100)
        assert outer.contains(Box(10, 10, 20, 20))
        assert outer.contains(outer)
        assert not outer.contains(Box(90, 90, 20, 20))

    def test_collides(self):
        box = Box(0, 0, 10, 10)
        assert box.collides(Box(5, 5, 10, 10))
        assert box.collides(Box(10, 0, 5, 5))
        assert not box.collides(Box(11, 0, 5, 5))

    def test_from_points(self):
        box = Box.from_points(np.array([[1.0, 5.0], [4.0, -1.0], [2.0, 2.0]]))
        assert box == Box(1.0, -1.0, 3.0, 6.0)
        assert Box.from_points(np.empty((0, 2))) == Box(0.0, 0.0, 0.0, 0.0)

    def test_to_record(self):
        record = Box(0, 0, 10, 20).to_record()
        assert record["maxY"] == 20
        assert record["center"] == {"x": 5, "y": 10}


class TestTransform:
    """Tests for Transform."""

    def test_translation(self):
        points = Transform.compose(5, 7, 0).apply_to_points(np.array([[1.0, 1.0]]))
        assert points.tolist() == [[6.0, 8.0]]

    def test_rotation(self):
        x, y = Transform.compose(0, 0, math.pi / 2).apply_to_points(np.array([[1.0, 0.0]]))[0]
        assert x == pytest.approx(0.0, abs=1e-9)
        assert y == pytest.approx(1.0)

    def test_composition_order(self):
        """Test that parent @ child maps child-local points to page space."""
        parent = Transform.compose(100, 0, 0)
        child = Transform.compose(10, 0, 0)
        assert (parent @ child).apply_to_points(np.array([[0.0, 0.0]])).tolist() == [[110.0, 0.0]]

    def test_empty_points(self):
        assert Transform().apply_to_points(np.empty((0, 2))).shape == (0, 2)


class TestPolygons:
    """Tests for polygon predicates."""

    def test_crossing_edges(self):
        assert polygons_intersect(square(0, 0), square(5, 5))

    def test_disjoint(self):
        assert not polygons_intersect(square(0, 0), square(50, 50))

    def test_nested_is_not_crossing(self):
        assert not polygons_intersect(square(0, 0, 100), square(10, 10))

    def test_degenerate(self):
        assert not polygons_intersect(np.array([[0.0, 0.0]]), square(0, 0))

    def test_point_in_polygon(self):
        polygon = square(0, 0)
        assert point_in_polygon(polygon, 5, 5)
        assert point_in_polygon(polygon, 0, 5)
        assert not point_in_polygon(polygon, 15, 5)

    def test_point_in_rotated_polygon(self):
        polygon = Transform.compose(0, 0, math.pi / 4).apply_to_points(rectangle_vertices(10, 10))
        assert point_in_polygon(polygon, 0, 7)
        assert not point_in_polygon(polygon, 7, 0.5)

    def test_too_few_vertices(self):
        assert not point_in_polygon(np.array([[0.0, 0.0], [1.0, 1.0]]), 0, 0)
