"""
Document model - shapes, bindings, patches and input events.

These are the host-owned records the propagation engine reads. The engine
never mutates them directly; it submits ShapePatch objects through the host.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from funcarrows.core.types import Terminal


@dataclass
class Shape:
    """
    A node on the canvas.

    Connectors (arrows) are shapes too; their program lives in
    ``props["text"]``.
    """
    id: str
    type: str
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    parent_id: Optional[str] = None
    props: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        value = self.props.get("text")
        return "" if value is None else str(value)

    def copy(self) -> "Shape":
        """Deep copy, so handlers never observe later mutations."""
        return Shape(
            id=self.id,
            type=self.type,
            x=self.x,
            y=self.y,
            rotation=self.rotation,
            parent_id=self.parent_id,
            props=copy.deepcopy(self.props),
            meta=copy.deepcopy(self.meta),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "parent_id": self.parent_id,
            "props": copy.deepcopy(self.props),
            "meta": copy.deepcopy(self.meta),
        }


@dataclass(frozen=True)
class Binding:
    """
    Attachment of one connector end to a shape.

    ``from_id`` is the connector, ``to_id`` the shape it is bound to.
    """
    id: str
    from_id: str
    to_id: str
    terminal: Terminal
    type: str = "arrow"


@dataclass
class ShapePatch:
    """
    Partial update of a shape.

    Fields left as None are not touched. ``props`` and ``meta`` are merged
    key by key onto the existing values.
    """
    id: str
    type: Optional[str] = None
    x: Optional[float] = None
    y: Optional[float] = None
    rotation: Optional[float] = None
    props: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None

    def to_record(self) -> Dict[str, Any]:
        """Record form (``{id, type, x, y, rotation, props, meta}``)."""
        record: Dict[str, Any] = {"id": self.id}
        for key in ("type", "x", "y", "rotation", "props", "meta"):
            value = getattr(self, key)
            if value is not None:
                record[key] = value
        return record


@dataclass(frozen=True)
class UIEvent:
    """An input event from the UI layer."""
    type: str  # e.g. "pointer", "keyboard", "wheel"
    name: str  # e.g. "pointer_down", "pointer_move"
    point: Optional[Tuple[float, float]] = None

    @property
    def is_pointer_down(self) -> bool:
        return self.type == "pointer" and self.name == "pointer_down"
