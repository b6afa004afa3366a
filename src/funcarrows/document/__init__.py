"""
funcarrows Document - the host canvas the engine runs against.
"""

from funcarrows.document.document import Document
from funcarrows.document.host import Host, HostError, ShapeNotFoundError
from funcarrows.document.model import Binding, Shape, ShapePatch, UIEvent

__all__ = [
    "Document",
    "Host",
    "HostError",
    "ShapeNotFoundError",
    "Binding",
    "Shape",
    "ShapePatch",
    "UIEvent",
]
