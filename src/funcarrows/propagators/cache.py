"""
Program Cache - compiled connector programs, one entry per connector.

Each entry remembers the text it was compiled from. A lookup for a
connector whose text has since changed recompiles instead of returning the
stale program. Texts that fail to compile are stored as COMPILE_FAILED so
repeated triggers do not retry until the text changes.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from funcarrows.core.types import TriggerKind
from funcarrows.document.host import Host
from funcarrows.graph.classifier import classify
from funcarrows.graph.edges import Edge
from funcarrows.program.compiler import CompiledProgram, compile_program
from funcarrows.program.errors import ProgramError

logger = logging.getLogger(__name__)


class _CompileFailed:
    """Marker for a text that could not be compiled."""

    def __repr__(self) -> str:
        return "COMPILE_FAILED"


COMPILE_FAILED = _CompileFailed()


@dataclass(frozen=True)
class CacheEntry:
    text: str
    program: Union[CompiledProgram, _CompileFailed]

    @property
    def failed(self) -> bool:
        return self.program is COMPILE_FAILED


class ProgramCache:
    """Per-propagator cache of compiled programs keyed by connector id."""

    def __init__(self, kind: TriggerKind, max_steps: int = 10000):
        self._kind = kind
        self._max_steps = max_steps
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, connector_id: str) -> bool:
        return connector_id in self._entries

    def entry(self, connector_id: str) -> Optional[CacheEntry]:
        return self._entries.get(connector_id)

    def is_current(self, connector_id: str, text: str) -> bool:
        """Whether an entry exists that was compiled from ``text``."""
        entry = self._entries.get(connector_id)
        return entry is not None and entry.text == text

    @staticmethod
    def _current_text(host: Host, edge: Edge) -> Optional[str]:
        shape = host.get_shape(edge.connector_id)
        return None if shape is None else shape.text

    def get(self, host: Host, edge: Edge) -> Optional[CompiledProgram]:
        """
        Compiled program for the connector's current text.

        Returns:
            The program, or None if the text does not compile (cached
            failures are returned as None without recompiling)
        """
        text = self._current_text(host, edge)
        entry = self._entries.get(edge.connector_id)
        if entry is not None and entry.text == text:
            return None if entry.failed else entry.program
        logger.debug(f"Compiling program for {edge.connector_id} ({'stale' if entry else 'missing'})")
        return self.set(host, edge)

    def set(self, host: Host, edge: Edge) -> Optional[CompiledProgram]:
        """
        Compile the connector's current text and store the result.

        Returns:
            The program, or None if compilation failed
        """
        text = self._current_text(host, edge)
        if text is None:
            logger.warning(f"Connector not found: {edge.connector_id}")
            self._entries[edge.connector_id] = CacheEntry("", COMPILE_FAILED)
            return None

        classification = classify(text)
        if classification is None or classification.kind != self._kind:
            logger.warning(f"Connector {edge.connector_id} is not a {self._kind.name} program")
            self._entries[edge.connector_id] = CacheEntry(text, COMPILE_FAILED)
            return None

        try:
            program = compile_program(classification, max_steps=self._max_steps)
        except (ProgramError, RecursionError) as e:
            logger.warning(f"Failed to compile program for {edge.connector_id}: {e}")
            self._entries[edge.connector_id] = CacheEntry(text, COMPILE_FAILED)
            return None

        self._entries[edge.connector_id] = CacheEntry(text, program)
        return program

    def ensure(self, host: Host, edge: Edge) -> None:
        """Compile only if there is no entry for the current text."""
        text = self._current_text(host, edge)
        if text is None or not self.is_current(edge.connector_id, text):
            self.set(host, edge)

    def delete(self, connector_id: str) -> None:
        self._entries.pop(connector_id, None)

    def clear(self) -> None:
        self._entries.clear()
