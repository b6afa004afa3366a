"""
funcarrows Serialization - JSON scene file handling.
"""

from funcarrows.serialization.schema import (
    SCHEMA_VERSION,
    BindingSchema,
    DocumentSchema,
    SchemaValidationError,
    ShapeSchema,
)
from funcarrows.serialization.serializer import SceneSerializer, get_serializer

__all__ = [
    "SCHEMA_VERSION",
    "BindingSchema",
    "DocumentSchema",
    "SchemaValidationError",
    "ShapeSchema",
    "SceneSerializer",
    "get_serializer",
]
