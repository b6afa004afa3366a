"""
Geometry primitives - boxes, vectors, transforms and polygon tests.

Page-space geometry is represented with numpy arrays of shape (n, 2).
Transforms are 3x3 homogeneous matrices. Point-in-polygon uses OpenCV's
``pointPolygonTest``.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional

import cv2
import numpy as np


class Vec(NamedTuple):
    """A 2D point or offset."""
    x: float
    y: float

    def to_record(self) -> Dict[str, float]:
        """Plain record form used by programs."""
        return {"x": self.x, "y": self.y}

    def __sub__(self, other: "Vec") -> "Vec":
        return Vec(self.x - other.x, self.y - other.y)


ZERO = Vec(0.0, 0.0)


@dataclass(frozen=True)
class Box:
    """Axis-aligned bounding box."""
    x: float
    y: float
    w: float
    h: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.w

    @property
    def max_y(self) -> float:
        return self.y + self.h

    @property
    def center(self) -> Vec:
        return Vec(self.x + self.w / 2, self.y + self.h / 2)

    def contains(self, other: "Box") -> bool:
        """Whether ``other`` lies fully inside this box (edges inclusive)."""
        return (
            self.min_x <= other.min_x
            and self.min_y <= other.min_y
            and self.max_x >= other.max_x
            and self.max_y >= other.max_y
        )

    def collides(self, other: "Box") -> bool:
        """Whether the boxes overlap or touch."""
        return not (
            other.max_x < self.min_x
            or other.min_x > self.max_x
            or other.max_y < self.min_y
            or other.min_y > self.max_y
        )

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Box":
        """Bounding box of an (n, 2) point array."""
        if len(points) == 0:
            return cls(0.0, 0.0, 0.0, 0.0)
        mins = points.min(axis=0)
        maxs = points.max(axis=0)
        return cls(float(mins[0]), float(mins[1]), float(maxs[0] - mins[0]), float(maxs[1] - mins[1]))

    def to_record(self) -> Dict[str, Any]:
        """Plain record form used by programs."""
        center = self.center
        return {
            "x": self.x,
            "y": self.y,
            "w": self.w,
            "h": self.h,
            "minX": self.min_x,
            "minY": self.min_y,
            "maxX": self.max_x,
            "maxY": self.max_y,
            "midX": center.x,
            "midY": center.y,
            "center": center.to_record(),
        }


class Transform:
    """A 2D affine transform stored as a 3x3 homogeneous matrix."""

    __slots__ = ("matrix",)

    def __init__(self, matrix: Optional[np.ndarray] = None):
        self.matrix = np.identity(3) if matrix is None else matrix

    @classmethod
    def compose(cls, x: float, y: float, rotation: float) -> "Transform":
        """Rotate about the local origin, then translate to (x, y)."""
        c = math.cos(rotation)
        s = math.sin(rotation)
        return cls(np.array([
            [c, -s, x],
            [s, c, y],
            [0.0, 0.0, 1.0],
        ]))

    def __matmul__(self, other: "Transform") -> "Transform":
        return Transform(self.matrix @ other.matrix)

    def apply_to_points(self, points: np.ndarray) -> np.ndarray:
        """Transform an (n, 2) point array."""
        points = np.asarray(points, dtype=float)
        if len(points) == 0:
            return points.reshape(0, 2)
        homogeneous = np.hstack([points, np.ones((len(points), 1))])
        return (homogeneous @ self.matrix.T)[:, :2]


def rectangle_vertices(w: float, h: float) -> np.ndarray:
    """Outline of a w x h rectangle anchored at the local origin."""
    return np.array([[0.0, 0.0], [w, 0.0], [w, h], [0.0, h]])


def _ccw(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    return (c[..., 1] - a[..., 1]) * (b[..., 0] - a[..., 0]) > (b[..., 1] - a[..., 1]) * (c[..., 0] - a[..., 0])


def polygons_intersect(a: np.ndarray, b: np.ndarray) -> bool:
    """
    Whether any edge of polygon ``a`` crosses any edge of polygon ``b``.

    Polygons are closed (n, 2) vertex arrays. Nesting without crossing
    edges is not reported; callers combine this with a containment test.
    """
    if len(a) < 2 or len(b) < 2:
        return False
    a1 = a[:, None, :]
    a2 = np.roll(a, -1, axis=0)[:, None, :]
    b1 = b[None, :, :]
    b2 = np.roll(b, -1, axis=0)[None, :, :]
    crosses = (_ccw(a1, b1, b2) != _ccw(a2, b1, b2)) & (_ccw(a1, a2, b1) != _ccw(a1, a2, b2))
    return bool(crosses.any())


def point_in_polygon(polygon: np.ndarray, x: float, y: float) -> bool:
    """Whether (x, y) is inside or on the edge of ``polygon``."""
    if len(polygon) < 3:
        return False
    contour = np.asarray(polygon, dtype=np.float32).reshape(-1, 1, 2)
    result = cv2.pointPolygonTest(contour, (float(x), float(y)), measureDist=False)
    return result >= 0
