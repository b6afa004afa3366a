"""
Centralized Type Definitions for funcarrows.

This module provides the enums shared by the graph, propagator and
document layers so that trigger kinds, binding terminals and marker states
are never compared as raw strings.
"""

from enum import Enum


class TriggerKind(Enum):
    """
    Trigger kinds a connector can belong to.

    The value is the textual prefix that selects the kind. The empty prefix
    is the always-on Change kind.
    """
    CHANGE = ""
    CLICK = "click"
    TICK = "tick"
    SPATIAL = "geo"

    @property
    def prefix(self) -> str:
        """Textual prefix used for classification."""
        return self.value

    @classmethod
    def from_prefix(cls, prefix: str) -> "TriggerKind":
        """
        Convert a textual prefix to a TriggerKind.

        Args:
            prefix: The prefix word (e.g., "click", "tick", "")

        Returns:
            Corresponding TriggerKind

        Raises:
            ValueError: If the prefix doesn't match any trigger kind
        """
        for member in cls:
            if member.value == prefix:
                return member

        raise ValueError(f"Unknown trigger prefix: {prefix!r}")

    @classmethod
    def from_prefix_safe(cls, prefix: str) -> "TriggerKind | None":
        """Convert a prefix to a TriggerKind, returning None if not found."""
        try:
            return cls.from_prefix(prefix)
        except ValueError:
            return None


class Terminal(Enum):
    """Which end of a connector a binding attaches."""
    START = "start"
    END = "end"


class ErrorMarker(Enum):
    """Outcome of the last execution attempt of a connector."""
    OK = "ok"
    ERROR = "error"

    @property
    def is_error(self) -> bool:
        """Whether the marker reports a failure."""
        return self == ErrorMarker.ERROR
