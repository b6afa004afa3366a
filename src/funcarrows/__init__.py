"""
funcarrows - live dataflow programs drawn as arrows between canvas shapes.

Each arrow's text is a small program. Its prefix selects when it runs (on a
change of its source, a click, every frame, or any spatial change) and its
result is merged onto the shape the arrow points at.
"""

__version__ = "1.0.0"

from funcarrows.document.document import Document
from funcarrows.propagators.registry import PropagatorEngine, register_propagators

__all__ = ["Document", "PropagatorEngine", "register_propagators", "__version__"]
