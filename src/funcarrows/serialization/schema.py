"""
JSON Schema - Data structures for scene serialization.

A scene file (``.funcarrows``) holds the shapes of one page and the
bindings that attach connectors to them.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

# Current schema version
SCHEMA_VERSION = "1.0.0"


class SchemaValidationError(ValueError):
    """Scene data is malformed or fails validation."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, dict):
        raise SchemaValidationError(f"{kind} entry must be an object, got {type(data).__name__}")
    if key not in data:
        raise SchemaValidationError(f"{kind} is missing required field '{key}'")
    return data[key]


def _number(data: Dict[str, Any], key: str, kind: str) -> float:
    value = data.get(key, 0.0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaValidationError(f"{kind} field '{key}' must be a number")
    return float(value)


@dataclass
class ShapeSchema:
    """Schema for a shape on the page."""
    id: str
    type: str  # e.g. "geo", "arrow", "group"
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    parent_id: Optional[str] = None
    props: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "x": self.x,
            "y": self.y,
            "rotation": self.rotation,
            "props": self.props,
            "meta": self.meta,
        }
        if self.parent_id is not None:
            data["parent_id"] = self.parent_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShapeSchema":
        """Create from dictionary."""
        props = data.get("props", {}) if isinstance(data, dict) else None
        meta = data.get("meta", {}) if isinstance(data, dict) else None
        shape_id = _require(data, "id", "Shape")
        if not isinstance(props, dict) or not isinstance(meta, dict):
            raise SchemaValidationError(f"Shape {shape_id}: props and meta must be objects")
        return cls(
            id=str(shape_id),
            type=str(_require(data, "type", "Shape")),
            x=_number(data, "x", "Shape"),
            y=_number(data, "y", "Shape"),
            rotation=_number(data, "rotation", "Shape"),
            parent_id=data.get("parent_id"),
            props=props,
            meta=meta,
        )


@dataclass
class BindingSchema:
    """Schema for a binding of a connector end to a shape."""
    id: str
    from_id: str  # the connector
    to_id: str  # the bound shape
    terminal: str  # "start" or "end"
    type: str = "arrow"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "terminal": self.terminal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BindingSchema":
        """Create from dictionary."""
        terminal = str(_require(data, "terminal", "Binding"))
        if terminal not in ("start", "end"):
            raise SchemaValidationError(f"Binding terminal must be 'start' or 'end', got {terminal!r}")
        return cls(
            id=str(_require(data, "id", "Binding")),
            from_id=str(_require(data, "from_id", "Binding")),
            to_id=str(_require(data, "to_id", "Binding")),
            terminal=terminal,
            type=str(data.get("type", "arrow")),
        )


@dataclass
class MetadataSchema:
    """Schema for scene metadata."""
    name: str = "Untitled"
    description: str = ""
    created: str = ""
    modified: str = ""

    def __post_init__(self):
        if not self.created:
            self.created = datetime.now().isoformat()
        if not self.modified:
            self.modified = self.created

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "created": self.created,
            "modified": self.modified,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetadataSchema":
        """Create from dictionary."""
        return cls(
            name=data.get("name", "Untitled"),
            description=data.get("description", ""),
            created=data.get("created", ""),
            modified=data.get("modified", ""),
        )


@dataclass
class DocumentSchema:
    """
    Root schema for a scene file.

    Shapes are stored bottom to top; parents precede their children.
    """
    schema_version: str = SCHEMA_VERSION
    metadata: MetadataSchema = field(default_factory=MetadataSchema)
    shapes: List[ShapeSchema] = field(default_factory=list)
    bindings: List[BindingSchema] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "schema_version": self.schema_version,
            "metadata": self.metadata.to_dict(),
            "shapes": [s.to_dict() for s in self.shapes],
            "bindings": [b.to_dict() for b in self.bindings],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentSchema":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise SchemaValidationError("Scene root must be an object")
        shapes = data.get("shapes", [])
        bindings = data.get("bindings", [])
        if not isinstance(shapes, list) or not isinstance(bindings, list):
            raise SchemaValidationError("'shapes' and 'bindings' must be arrays")
        return cls(
            schema_version=str(data.get("schema_version", SCHEMA_VERSION)),
            metadata=MetadataSchema.from_dict(data.get("metadata", {})),
            shapes=[ShapeSchema.from_dict(s) for s in shapes],
            bindings=[BindingSchema.from_dict(b) for b in bindings],
        )

    @classmethod
    def from_json(cls, json_str: str) -> "DocumentSchema":
        """Create from JSON string."""
        data = json.loads(json_str)
        return cls.from_dict(data)

    def update_modified(self) -> None:
        """Update the modified timestamp."""
        self.metadata.modified = datetime.now().isoformat()
