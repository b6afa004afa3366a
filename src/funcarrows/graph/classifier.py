"""
Connector classifier - decides which trigger kind a connector text belongs to.

Two grammars are accepted for a kind with prefix ``K``:

    K { key: expr, ... }        shorthand mapping
    K() { statements }          expanded body

The classification is a pure function of the text. It is memoized by text
so every propagator can re-run it on every notification cheaply.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache
from typing import Optional

from funcarrows.core.types import TriggerKind

# Leading prefix word, then the first significant character
_HEAD_RE = re.compile(r"^\s*([A-Za-z_]*)\s*([({])")
# A bare label starting with "(" is only a program when it opens with "()"
_EMPTY_PARAMS_RE = re.compile(r"\(\s*\)")


class Grammar(Enum):
    """Which of the two program grammars a text uses."""
    SHORTHAND = auto()
    EXPANDED = auto()


@dataclass(frozen=True)
class Classification:
    """Trigger kind and grammar of a connector text."""
    kind: TriggerKind
    grammar: Grammar
    # Program text with the prefix removed, e.g. "{ val: 1 }" or "() { ... }"
    source: str


@lru_cache(maxsize=1024)
def classify(text: Optional[str]) -> Optional[Classification]:
    """
    Classify a connector text.

    A text whose prefix word names a trigger kind and is followed by ``{``
    is shorthand; followed by ``(`` it is expanded. A malformed expanded
    text such as ``tick( {`` still classifies by its prefix, so the failure
    surfaces when the program is compiled. Without a prefix word the text
    must open with ``()``, so plain labels like ``(optional)`` stay plain.

    Args:
        text: The connector's text, may be None

    Returns:
        The classification, or None if the text is not a program
    """
    if not text:
        return None
    m = _HEAD_RE.match(text)
    if not m:
        return None
    kind = TriggerKind.from_prefix_safe(m.group(1))
    if kind is None:
        return None
    grammar = Grammar.SHORTHAND if m.group(2) == "{" else Grammar.EXPANDED
    if grammar is Grammar.EXPANDED and kind is TriggerKind.CHANGE:
        if not _EMPTY_PARAMS_RE.match(text, m.start(2)):
            return None
    return Classification(kind=kind, grammar=grammar, source=text[m.start(2):].strip())


def is_propagator_of_kind(text: Optional[str], kind: TriggerKind) -> bool:
    """Whether ``text`` classifies as ``kind``."""
    classification = classify(text)
    return classification is not None and classification.kind == kind
