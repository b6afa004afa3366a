"""
funcarrows Program Language - the restricted language of connector text.

Connector programs are parsed into an AST and evaluated by a tree-walking
interpreter; only allow-listed globals and host helpers are reachable.
"""

from funcarrows.program.compiler import CompiledProgram, compile_program
from funcarrows.program.errors import ProgramError, ProgramRuntimeError, ProgramSyntaxError
from funcarrows.program.values import Namespace, NativeFunction

__all__ = [
    "CompiledProgram",
    "compile_program",
    "ProgramError",
    "ProgramRuntimeError",
    "ProgramSyntaxError",
    "Namespace",
    "NativeFunction",
]
