"""
Geometry Queries - read-only spatial predicates available to programs.

Programs reach these through the ``G`` namespace:

    G.intersects(from)          any shape overlapping the source?
    G.getIntersects(from)       the overlapping shapes
    G.contains(from)            any closed shape inside the source bounds?
    G.getContains(from)         those shapes
    G.distance(a, b)            top-left delta of a relative to b
    G.distanceCenter(a, b)      bounds-center delta of a relative to b

Every query accepts either a snapshot record (anything with an ``id``) or a
shape id.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from funcarrows.core.config import get_config
from funcarrows.document.host import Host
from funcarrows.document.model import Shape
from funcarrows.geometry.primitives import Box, polygons_intersect
from funcarrows.geometry.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)

ShapeRef = Any  # a snapshot record, a Shape or a shape id


def shape_id_of(ref: ShapeRef) -> Optional[str]:
    """Extract a shape id from a record, a Shape or an id string."""
    if ref is None:
        return None
    if isinstance(ref, str):
        return ref or None
    if isinstance(ref, Shape):
        return ref.id
    if isinstance(ref, dict):
        value = ref.get("id")
        return value if isinstance(value, str) and value else None
    raise TypeError(f"Expected a shape or shape id, got {type(ref).__name__}")


class Geo:
    """
    Spatial predicates over the host's shapes.

    Candidates come from a SpatialIndex when one is supplied (the engine
    keeps it current from change notifications); otherwise every shape on
    the page is considered.
    """

    def __init__(
        self,
        host: Host,
        spatial_index: Optional[SpatialIndex] = None,
        connector_type: Optional[str] = None,
        closed_shape_types: Optional[Iterable[str]] = None,
    ):
        config = get_config().propagation
        self._host = host
        self._index = spatial_index
        self._connector_type = connector_type or config.connector_type
        self._closed_types = set(closed_shape_types if closed_shape_types is not None else config.closed_shape_types)

    def _candidates(self, source_id: str, bounds: Box) -> List[Shape]:
        if self._index is not None:
            ids = self._index.ids_in_bounds(bounds)
            shapes = [self._host.get_shape(i) for i in ids if i != source_id]
            # Stable page order regardless of set iteration
            order = {s.id: n for n, s in enumerate(self._host.get_current_page_shapes())}
            return sorted((s for s in shapes if s is not None), key=lambda s: order.get(s.id, len(order)))
        result = []
        for shape in self._host.get_current_page_shapes():
            if shape.id == source_id:
                continue
            shape_bounds = self._host.get_shape_page_bounds(shape.id)
            if shape_bounds is not None and shape_bounds.collides(bounds):
                result.append(shape)
        return result

    def get_intersects(self, ref: ShapeRef) -> List[Shape]:
        """
        Shapes overlapping the source.

        A shape overlaps when the page-space outlines cross, or when either
        bounding box fully contains the other. Connectors are never
        candidates.
        """
        source_id = shape_id_of(ref)
        if source_id is None:
            return []
        source_polygon = self._host.get_shape_page_polygon(source_id)
        source_bounds = self._host.get_shape_page_bounds(source_id)
        if source_polygon is None or source_bounds is None:
            return []

        overlaps = []
        for shape in self._candidates(source_id, source_bounds):
            if shape.type == self._connector_type:
                continue
            polygon = self._host.get_shape_page_polygon(shape.id)
            bounds = self._host.get_shape_page_bounds(shape.id)
            if polygon is None or bounds is None:
                continue
            if (
                polygons_intersect(source_polygon, polygon)
                or source_bounds.contains(bounds)
                or bounds.contains(source_bounds)
            ):
                overlaps.append(shape)
        return overlaps

    def intersects(self, ref: ShapeRef) -> bool:
        return len(self.get_intersects(ref)) > 0

    def get_contains(self, ref: ShapeRef) -> List[Shape]:
        """Closed shapes whose bounds lie fully inside the source bounds."""
        source_id = shape_id_of(ref)
        if source_id is None:
            return []
        source_bounds = self._host.get_shape_page_bounds(source_id)
        if source_bounds is None:
            return []

        contained = []
        for shape in self._candidates(source_id, source_bounds):
            if shape.type not in self._closed_types:
                continue
            bounds = self._host.get_shape_page_bounds(shape.id)
            if bounds is not None and source_bounds.contains(bounds):
                contained.append(shape)
        return contained

    def contains(self, ref: ShapeRef) -> bool:
        return len(self.get_contains(ref)) > 0

    def distance(self, a: ShapeRef, b: ShapeRef) -> Dict[str, float]:
        """Top-left offset of ``a`` relative to ``b``; zero if either is unknown."""
        id_a, id_b = shape_id_of(a), shape_id_of(b)
        shape_a = self._host.get_shape(id_a) if id_a else None
        shape_b = self._host.get_shape(id_b) if id_b else None
        if shape_a is None or shape_b is None:
            return {"x": 0, "y": 0}
        return {"x": shape_a.x - shape_b.x, "y": shape_a.y - shape_b.y}

    def distance_center(self, a: ShapeRef, b: ShapeRef) -> Dict[str, float]:
        """Bounds-center offset of ``a`` relative to ``b``; zero if either is unknown."""
        id_a, id_b = shape_id_of(a), shape_id_of(b)
        bounds_a = self._host.get_shape_page_bounds(id_a) if id_a else None
        bounds_b = self._host.get_shape_page_bounds(id_b) if id_b else None
        if bounds_a is None or bounds_b is None:
            return {"x": 0, "y": 0}
        delta = bounds_a.center - bounds_b.center
        return {"x": delta.x, "y": delta.y}

    def as_members(self, pack: Callable[[Shape], Dict[str, Any]]) -> Dict[str, Callable[..., Any]]:
        """
        Program-facing members, with shapes converted by ``pack``.

        The engine wraps the result in a Namespace named ``G``.
        """
        return {
            "intersects": self.intersects,
            "getIntersects": lambda ref: [pack(s) for s in self.get_intersects(ref)],
            "contains": self.contains,
            "getContains": lambda ref: [pack(s) for s in self.get_contains(ref)],
            "distance": self.distance,
            "distanceCenter": self.distance_center,
        }
