"""
Host interface - the surface the propagation engine consumes.

The host owns shapes, bindings, geometry and persistence. The engine only
queries it, submits partial shape updates and sets connector markers, and
reacts to the host's change and input notifications.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import numpy as np

from funcarrows.core.types import ErrorMarker
from funcarrows.document.model import Binding, Shape, ShapePatch, UIEvent
from funcarrows.geometry.primitives import Box, Transform, Vec

Unsubscribe = Callable[[], None]


class HostError(Exception):
    """Base error for host operations."""


class ShapeNotFoundError(HostError):
    """Referenced shape does not exist."""


class Host(ABC):
    """Query, mutation and notification surface of the canvas document."""

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_shape(self, shape_id: str) -> Optional[Shape]:
        """Resolve a shape by id."""

    @abstractmethod
    def get_current_page_shapes(self) -> List[Shape]:
        """All shapes on the current page, bottom to top."""

    @abstractmethod
    def get_shapes_in_view(self) -> List[Shape]:
        """Shapes whose bounds touch the current viewport."""

    @abstractmethod
    def get_sorted_child_ids(self, parent_id: str) -> List[str]:
        """Ids of a group's children, bottom to top."""

    @abstractmethod
    def get_bindings_involving_shape(self, shape_id: str) -> List[Binding]:
        """Bindings whose connector or target is ``shape_id``."""

    @abstractmethod
    def get_bindings_to_shape(self, shape_id: str, binding_type: str = "arrow") -> List[Binding]:
        """Bindings that target ``shape_id``."""

    @abstractmethod
    def get_shape_page_transform(self, shape_id: str) -> Optional[Transform]:
        """Local-to-page transform of a shape."""

    @abstractmethod
    def get_shape_page_polygon(self, shape_id: str) -> Optional[np.ndarray]:
        """Outline of a shape in page space, (n, 2)."""

    @abstractmethod
    def get_shape_page_bounds(self, shape_id: str) -> Optional[Box]:
        """Axis-aligned page bounds of a shape."""

    @abstractmethod
    def get_shape_at_point(
        self,
        point: Vec,
        shape_filter: Optional[Callable[[Shape], bool]] = None,
    ) -> Optional[Shape]:
        """Topmost shape under ``point`` that passes ``shape_filter``."""

    @property
    @abstractmethod
    def current_page_point(self) -> Vec:
        """Last known pointer position in page space."""

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @abstractmethod
    def update_shape(self, patch: ShapePatch) -> Shape:
        """Apply a partial update atomically and notify listeners."""

    @abstractmethod
    def set_connector_marker(self, connector_id: str, marker: ErrorMarker) -> None:
        """Show the outcome of the connector's last execution."""

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    @abstractmethod
    def on_after_create_shape(self, callback: Callable[[Shape], None]) -> Unsubscribe:
        """Register a callback for shape creation."""

    @abstractmethod
    def on_after_change(self, callback: Callable[[Shape], None]) -> Unsubscribe:
        """Register a callback fired after any shape mutation."""

    @abstractmethod
    def on_after_delete_shape(self, callback: Callable[[Shape], None]) -> Unsubscribe:
        """Register a callback for shape deletion."""

    @abstractmethod
    def on_after_create_binding(self, callback: Callable[[Binding], None]) -> Unsubscribe:
        """Register a callback for binding creation."""

    @abstractmethod
    def on_after_delete_binding(self, callback: Callable[[Binding], None]) -> Unsubscribe:
        """Register a callback for binding deletion."""

    @abstractmethod
    def on_event(self, callback: Callable[[UIEvent], None]) -> Unsubscribe:
        """Register a callback for UI input events."""

    @abstractmethod
    def on_tick(self, callback: Callable[[], None]) -> Unsubscribe:
        """Register a callback for frame ticks."""
