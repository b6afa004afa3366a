"""
Tests for funcarrows.geometry.spatial_index module.
"""

import pytest

from funcarrows.geometry.primitives import Box
from funcarrows.geometry.spatial_index import SpatialIndex


class TestSpatialIndex:
    """Tests for SpatialIndex."""

    def test_query(self):
        index = SpatialIndex(cell_size=100)
        index.insert("a", Box(0, 0, 50, 50))
        index.insert("b", Box(500, 500, 50, 50))

        assert index.ids_in_bounds(Box(25, 25, 10, 10)) == {"a"}
        assert index.ids_in_bounds(Box(0, 0, 1000, 1000)) == {"a", "b"}
        assert index.ids_in_bounds(Box(200, 200, 10, 10)) == set()

    def test_same_cell_but_no_collision(self):
        """Test that cell neighbours are filtered by exact bounds."""
        index = SpatialIndex(cell_size=1000)
        index.insert("a", Box(0, 0, 10, 10))
        assert index.ids_in_bounds(Box(500, 500, 10, 10)) == set()

    def test_spanning_cells(self):
        index = SpatialIndex(cell_size=10)
        index.insert("wide", Box(0, 0, 100, 5))
        assert index.ids_in_bounds(Box(95, 0, 1, 1)) == {"wide"}

    def test_negative_coordinates(self):
        index = SpatialIndex(cell_size=10)
        index.insert("a", Box(-25, -25, 5, 5))
        assert index.ids_in_bounds(Box(-22, -22, 1, 1)) == {"a"}

    def test_move(self):
        index = SpatialIndex(cell_size=100)
        index.insert("a", Box(0, 0, 10, 10))
        index.insert("a", Box(300, 300, 10, 10))

        assert len(index) == 1
        assert index.ids_in_bounds(Box(0, 0, 10, 10)) == set()
        assert index.get_bounds("a") == Box(300, 300, 10, 10)

    def test_remove(self):
        index = SpatialIndex()
        index.insert("a", Box(0, 0, 10, 10))
        index.remove("a")
        index.remove("unknown")
        assert "a" not in index
        assert index.ids_in_bounds(Box(0, 0, 10, 10)) == set()

    def test_clear(self):
        index = SpatialIndex()
        index.insert("a", Box(0, 0, 10, 10))
        index.clear()
        assert len(index) == 0

    def test_invalid_cell_size(self):
        with pytest.raises(ValueError):
            SpatialIndex(cell_size=0)
