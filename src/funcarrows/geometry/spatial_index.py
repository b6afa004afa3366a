"""
Spatial Index - uniform grid over shape page bounds.

Geometry queries ask for the shapes whose bounds touch a region; the index
answers from the grid cells the region covers instead of scanning every
shape on the page. Entries are updated incrementally as shapes change.
"""

import logging
import math
from typing import Dict, Iterator, List, Set, Tuple

from funcarrows.geometry.primitives import Box

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


class SpatialIndex:
    """
    Grid-bucketed index of shape bounds.

    Each shape id is stored in every cell its bounds overlap. Queries
    collect the ids of the covered cells and then filter by exact box
    collision.
    """

    def __init__(self, cell_size: float = 256.0):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self._cell_size = cell_size
        self._cells: Dict[Cell, Set[str]] = {}
        self._bounds: Dict[str, Box] = {}
        self._shape_cells: Dict[str, List[Cell]] = {}

    @property
    def cell_size(self) -> float:
        return self._cell_size

    def __len__(self) -> int:
        return len(self._bounds)

    def __contains__(self, shape_id: str) -> bool:
        return shape_id in self._bounds

    def _cells_for(self, box: Box) -> Iterator[Cell]:
        size = self._cell_size
        x0 = math.floor(box.min_x / size)
        y0 = math.floor(box.min_y / size)
        x1 = math.floor(box.max_x / size)
        y1 = math.floor(box.max_y / size)
        for cx in range(x0, x1 + 1):
            for cy in range(y0, y1 + 1):
                yield (cx, cy)

    def insert(self, shape_id: str, box: Box) -> None:
        """Insert or move a shape."""
        if shape_id in self._bounds:
            if self._bounds[shape_id] == box:
                return
            self.remove(shape_id)
        cells = list(self._cells_for(box))
        for cell in cells:
            self._cells.setdefault(cell, set()).add(shape_id)
        self._bounds[shape_id] = box
        self._shape_cells[shape_id] = cells

    def remove(self, shape_id: str) -> None:
        """Remove a shape; unknown ids are ignored."""
        self._bounds.pop(shape_id, None)
        for cell in self._shape_cells.pop(shape_id, []):
            bucket = self._cells.get(cell)
            if bucket is None:
                continue
            bucket.discard(shape_id)
            if not bucket:
                del self._cells[cell]

    def clear(self) -> None:
        self._cells.clear()
        self._bounds.clear()
        self._shape_cells.clear()

    def get_bounds(self, shape_id: str) -> "Box | None":
        return self._bounds.get(shape_id)

    def ids_in_bounds(self, box: Box) -> Set[str]:
        """Ids of shapes whose bounds overlap or touch ``box``."""
        candidates: Set[str] = set()
        for cell in self._cells_for(box):
            candidates.update(self._cells.get(cell, ()))
        return {shape_id for shape_id in candidates if self._bounds[shape_id].collides(box)}
