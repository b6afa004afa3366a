"""
Program compiler - turns a classified connector text into a callable unit.
"""

import logging
from typing import Any

from funcarrows.graph.classifier import Classification, Grammar
from funcarrows.program.builtins import builtin_globals
from funcarrows.program.interpreter import Interpreter
from funcarrows.program.nodes import Block
from funcarrows.program.parser import parse_expanded, parse_shorthand

logger = logging.getLogger(__name__)

# Names under which the run parameters are visible to program text
PARAMETER_NAMES = ("editor", "from", "to", "G", "bounds", "dt", "_unpack")


class CompiledProgram:
    """
    A parsed connector program, ready to run.

    Calling it executes the body with the fixed parameters
    (host, from, to, geometry, bounds, dt, unpack) and returns the patch
    record the program produced, or None.
    """

    def __init__(self, body: Block, grammar: Grammar, source: str, max_steps: int = 10000):
        self.body = body
        self.grammar = grammar
        self.source = source
        self.max_steps = max_steps

    def __call__(
        self,
        host: Any,
        from_: Any,
        to: Any,
        geometry: Any,
        bounds: Any,
        dt: float,
        unpack: Any,
    ) -> Any:
        scope = builtin_globals()
        scope.update(zip(PARAMETER_NAMES, (host, from_, to, geometry, bounds, dt, unpack)))
        return Interpreter(scope, max_steps=self.max_steps).run(self.body)

    def __repr__(self) -> str:
        return f"CompiledProgram({self.grammar.name.lower()}, {self.source!r})"


def compile_program(classification: Classification, max_steps: int = 10000) -> CompiledProgram:
    """
    Compile a classified program text.

    Args:
        classification: Result of classifying the connector text
        max_steps: Interpreter step budget for each run

    Returns:
        The compiled program

    Raises:
        ProgramSyntaxError: If the text does not parse
    """
    if classification.grammar == Grammar.SHORTHAND:
        body = parse_shorthand(classification.source)
    else:
        body = parse_expanded(classification.source)
    logger.debug(f"Compiled {classification.kind.name} program: {classification.source!r}")
    return CompiledProgram(body, classification.grammar, classification.source, max_steps)
