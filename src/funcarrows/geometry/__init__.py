"""
funcarrows Geometry - page-space primitives, spatial index and queries.
"""

from funcarrows.geometry.primitives import Box, Transform, Vec, point_in_polygon, polygons_intersect
from funcarrows.geometry.spatial_index import SpatialIndex

__all__ = [
    "Box",
    "Transform",
    "Vec",
    "point_in_polygon",
    "polygons_intersect",
    "SpatialIndex",
]
