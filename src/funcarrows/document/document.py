"""
Document - in-memory, single-page canvas document.

This is the reference Host used by the CLI and the tests. It owns shapes
(in z-order, bottom to top), bindings, connector markers, the viewport and
the pointer position, and notifies subscribers after every mutation.
"""

import logging
import math
import uuid
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from funcarrows.core.config import get_config
from funcarrows.core.types import ErrorMarker, Terminal
from funcarrows.document.host import Host, HostError, ShapeNotFoundError, Unsubscribe
from funcarrows.document.model import Binding, Shape, ShapePatch, UIEvent
from funcarrows.geometry.primitives import (
    ZERO,
    Box,
    Transform,
    Vec,
    point_in_polygon,
    rectangle_vertices,
)

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}:{uuid.uuid4().hex[:12]}"


def _check_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HostError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise HostError(f"{name} must be finite, got {value}")
    return float(value)


class Document(Host):
    """
    In-memory implementation of the Host interface.

    Every mutation is validated in full before anything is stored, so a
    rejected update leaves the document unchanged. Subscribers are called
    synchronously after the mutation; a failing subscriber is logged and
    does not stop the others.
    """

    def __init__(
        self,
        connector_type: Optional[str] = None,
        ok_color: Optional[str] = None,
        error_color: Optional[str] = None,
    ):
        config = get_config().propagation
        self._connector_type = connector_type or config.connector_type
        self._ok_color = ok_color or config.ok_color
        self._error_color = error_color or config.error_color

        self._shapes: Dict[str, Shape] = {}
        self._bindings: Dict[str, Binding] = {}
        self._markers: Dict[str, ErrorMarker] = {}
        self._viewport: Optional[Box] = None
        self._pointer: Vec = ZERO

        self._create_shape_callbacks: List[Callable[[Shape], None]] = []
        self._change_callbacks: List[Callable[[Shape], None]] = []
        self._delete_shape_callbacks: List[Callable[[Shape], None]] = []
        self._create_binding_callbacks: List[Callable[[Binding], None]] = []
        self._delete_binding_callbacks: List[Callable[[Binding], None]] = []
        self._event_callbacks: List[Callable[[UIEvent], None]] = []
        self._tick_callbacks: List[Callable[[], None]] = []

    @property
    def connector_type(self) -> str:
        return self._connector_type

    @property
    def shape_count(self) -> int:
        return len(self._shapes)

    @property
    def binding_count(self) -> int:
        return len(self._bindings)

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def create_shape(
        self,
        shape_type: str,
        x: float = 0.0,
        y: float = 0.0,
        rotation: float = 0.0,
        props: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
        parent_id: Optional[str] = None,
        shape_id: Optional[str] = None,
    ) -> Shape:
        """
        Create a shape on top of the current page.

        Raises:
            HostError: If the id is taken, the parent is unknown or a
                coordinate is not a finite number
        """
        shape_id = shape_id or _new_id("shape")
        if shape_id in self._shapes:
            raise HostError(f"Shape already exists: {shape_id}")
        if parent_id is not None and parent_id not in self._shapes:
            raise ShapeNotFoundError(f"Parent not found: {parent_id}")

        shape = Shape(
            id=shape_id,
            type=shape_type,
            x=_check_number("x", x),
            y=_check_number("y", y),
            rotation=_check_number("rotation", rotation),
            parent_id=parent_id,
            props=dict(props or {}),
            meta=dict(meta or {}),
        )
        self._shapes[shape_id] = shape
        logger.debug(f"Created {shape_type} shape {shape_id}")
        self._dispatch(self._create_shape_callbacks, shape, "create shape")
        return shape

    def create_connector(
        self,
        from_id: str,
        to_id: str,
        text: str = "",
        shape_id: Optional[str] = None,
    ) -> Shape:
        """Create a connector and bind its start to ``from_id`` and end to ``to_id``."""
        start = self.get_shape(from_id)
        if start is None:
            raise ShapeNotFoundError(f"Shape not found: {from_id}")
        connector = self.create_shape(
            self._connector_type,
            x=start.x,
            y=start.y,
            props={"text": text, "color": self._ok_color},
            shape_id=shape_id,
        )
        self.connect(connector.id, from_id, to_id)
        return connector

    def update_shape(self, patch: ShapePatch) -> Shape:
        """
        Apply a partial update.

        The new state is assembled and validated before it replaces the old
        one; on any error the stored shape is untouched.

        Raises:
            ShapeNotFoundError: If the shape does not exist
            HostError: If the patch changes the shape type or carries a
                non-numeric coordinate
        """
        current = self._shapes.get(patch.id)
        if current is None:
            raise ShapeNotFoundError(f"Shape not found: {patch.id}")
        if patch.type is not None and patch.type != current.type:
            raise HostError(f"Cannot change type of {patch.id} from {current.type} to {patch.type}")

        updated = current.copy()
        if patch.x is not None:
            updated.x = _check_number("x", patch.x)
        if patch.y is not None:
            updated.y = _check_number("y", patch.y)
        if patch.rotation is not None:
            updated.rotation = _check_number("rotation", patch.rotation)
        if patch.props is not None:
            if not isinstance(patch.props, dict):
                raise HostError("props must be a record")
            updated.props.update(patch.props)
        if patch.meta is not None:
            if not isinstance(patch.meta, dict):
                raise HostError("meta must be a record")
            updated.meta.update(patch.meta)

        self._shapes[patch.id] = updated
        self._dispatch(self._change_callbacks, updated, "after change")
        return updated

    def delete_shape(self, shape_id: str) -> None:
        """Delete a shape, its children and every binding that involves them."""
        shape = self._shapes.get(shape_id)
        if shape is None:
            raise ShapeNotFoundError(f"Shape not found: {shape_id}")

        for child_id in self.get_sorted_child_ids(shape_id):
            self.delete_shape(child_id)
        for binding in self.get_bindings_involving_shape(shape_id):
            self.delete_binding(binding.id)

        del self._shapes[shape_id]
        self._markers.pop(shape_id, None)
        logger.debug(f"Deleted shape {shape_id}")
        self._dispatch(self._delete_shape_callbacks, shape, "delete shape")

    # -------------------------------------------------------------------------
    # Bindings
    # -------------------------------------------------------------------------

    def create_binding(
        self,
        connector_id: str,
        shape_id: str,
        terminal: Terminal,
        binding_id: Optional[str] = None,
    ) -> Binding:
        """Bind one end of a connector to a shape."""
        connector = self._shapes.get(connector_id)
        if connector is None:
            raise ShapeNotFoundError(f"Connector not found: {connector_id}")
        if connector.type != self._connector_type:
            raise HostError(f"{connector_id} is a {connector.type}, not a {self._connector_type}")
        if shape_id not in self._shapes:
            raise ShapeNotFoundError(f"Shape not found: {shape_id}")

        binding = Binding(
            id=binding_id or _new_id("binding"),
            from_id=connector_id,
            to_id=shape_id,
            terminal=terminal,
            type=self._connector_type,
        )
        if binding.id in self._bindings:
            raise HostError(f"Binding already exists: {binding.id}")
        self._bindings[binding.id] = binding
        self._dispatch(self._create_binding_callbacks, binding, "create binding")
        return binding

    def delete_binding(self, binding_id: str) -> None:
        binding = self._bindings.pop(binding_id, None)
        if binding is None:
            raise HostError(f"Binding not found: {binding_id}")
        self._dispatch(self._delete_binding_callbacks, binding, "delete binding")

    def connect(self, connector_id: str, from_id: str, to_id: str) -> List[Binding]:
        """Bind a connector's start to ``from_id`` and its end to ``to_id``."""
        return [
            self.create_binding(connector_id, from_id, Terminal.START),
            self.create_binding(connector_id, to_id, Terminal.END),
        ]

    def get_bindings_involving_shape(self, shape_id: str) -> List[Binding]:
        return [b for b in self._bindings.values() if b.from_id == shape_id or b.to_id == shape_id]

    def get_bindings_to_shape(self, shape_id: str, binding_type: str = "arrow") -> List[Binding]:
        return [b for b in self._bindings.values() if b.to_id == shape_id and b.type == binding_type]

    def get_bindings(self) -> List[Binding]:
        return list(self._bindings.values())

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_shape(self, shape_id: str) -> Optional[Shape]:
        return self._shapes.get(shape_id)

    def get_current_page_shapes(self) -> List[Shape]:
        return list(self._shapes.values())

    def get_shapes_in_view(self) -> List[Shape]:
        if self._viewport is None:
            return self.get_current_page_shapes()
        in_view = []
        for shape in self._shapes.values():
            bounds = self.get_shape_page_bounds(shape.id)
            if bounds is not None and bounds.collides(self._viewport):
                in_view.append(shape)
        return in_view

    def get_sorted_child_ids(self, parent_id: str) -> List[str]:
        return [s.id for s in self._shapes.values() if s.parent_id == parent_id]

    def get_shape_page_transform(self, shape_id: str) -> Optional[Transform]:
        shape = self._shapes.get(shape_id)
        if shape is None:
            return None
        local = Transform.compose(shape.x, shape.y, shape.rotation)
        if shape.parent_id is None:
            return local
        parent = self.get_shape_page_transform(shape.parent_id)
        return local if parent is None else parent @ local

    def get_shape_page_polygon(self, shape_id: str) -> Optional[np.ndarray]:
        shape = self._shapes.get(shape_id)
        if shape is None:
            return None
        w = float(shape.props.get("w") or 0.0)
        h = float(shape.props.get("h") or 0.0)
        return self.get_shape_page_transform(shape_id).apply_to_points(rectangle_vertices(w, h))

    def get_shape_page_bounds(self, shape_id: str) -> Optional[Box]:
        polygon = self.get_shape_page_polygon(shape_id)
        if polygon is None:
            return None
        return Box.from_points(polygon)

    def get_shape_at_point(
        self,
        point: Vec,
        shape_filter: Optional[Callable[[Shape], bool]] = None,
    ) -> Optional[Shape]:
        for shape in reversed(list(self._shapes.values())):
            if shape_filter is not None and not shape_filter(shape):
                continue
            polygon = self.get_shape_page_polygon(shape.id)
            bounds = Box.from_points(polygon)
            # Zero-area outlines (connectors, unsized shapes) are never hit
            if bounds.w == 0 or bounds.h == 0:
                continue
            if point_in_polygon(polygon, point.x, point.y):
                return shape
        return None

    @property
    def current_page_point(self) -> Vec:
        return self._pointer

    @property
    def viewport(self) -> Optional[Box]:
        return self._viewport

    def set_viewport(self, viewport: Optional[Box]) -> None:
        """Set the visible page region; None means everything is in view."""
        self._viewport = viewport

    # -------------------------------------------------------------------------
    # Connector markers
    # -------------------------------------------------------------------------

    def get_connector_marker(self, connector_id: str) -> Optional[ErrorMarker]:
        return self._markers.get(connector_id)

    def set_connector_marker(self, connector_id: str, marker: ErrorMarker) -> None:
        """
        Record the marker and color the connector accordingly.

        The shape is only updated when its color actually changes.
        """
        shape = self._shapes.get(connector_id)
        if shape is None:
            raise ShapeNotFoundError(f"Connector not found: {connector_id}")
        self._markers[connector_id] = marker
        color = self._error_color if marker.is_error else self._ok_color
        if shape.props.get("color") != color:
            self.update_shape(ShapePatch(id=connector_id, props={"color": color}))

    # -------------------------------------------------------------------------
    # Input and frames
    # -------------------------------------------------------------------------

    def dispatch_event(self, event: UIEvent) -> None:
        """Feed a UI event; pointer events also move the tracked pointer."""
        if event.point is not None:
            self._pointer = Vec(float(event.point[0]), float(event.point[1]))
        self._dispatch(self._event_callbacks, event, "event")

    def click(self, x: float, y: float) -> None:
        """Simulate a pointer-down at page coordinates (x, y)."""
        self.dispatch_event(UIEvent(type="pointer", name="pointer_down", point=(x, y)))

    def tick(self) -> None:
        """Notify tick subscribers of a new frame."""
        for callback in list(self._tick_callbacks):
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in tick callback: {e}")

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def on_after_create_shape(self, callback: Callable[[Shape], None]) -> Unsubscribe:
        return self._subscribe(self._create_shape_callbacks, callback)

    def on_after_change(self, callback: Callable[[Shape], None]) -> Unsubscribe:
        return self._subscribe(self._change_callbacks, callback)

    def on_after_delete_shape(self, callback: Callable[[Shape], None]) -> Unsubscribe:
        return self._subscribe(self._delete_shape_callbacks, callback)

    def on_after_create_binding(self, callback: Callable[[Binding], None]) -> Unsubscribe:
        return self._subscribe(self._create_binding_callbacks, callback)

    def on_after_delete_binding(self, callback: Callable[[Binding], None]) -> Unsubscribe:
        return self._subscribe(self._delete_binding_callbacks, callback)

    def on_event(self, callback: Callable[[UIEvent], None]) -> Unsubscribe:
        return self._subscribe(self._event_callbacks, callback)

    def on_tick(self, callback: Callable[[], None]) -> Unsubscribe:
        return self._subscribe(self._tick_callbacks, callback)

    @staticmethod
    def _subscribe(callbacks: List[Callable], callback: Callable) -> Unsubscribe:
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    @staticmethod
    def _dispatch(callbacks: List[Callable], payload: Any, label: str) -> None:
        # Copy so callbacks may (un)subscribe while being notified
        for callback in list(callbacks):
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Error in {label} callback: {e}")
