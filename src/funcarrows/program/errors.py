"""
Program errors.

All failures of connector programs derive from ProgramError so the
propagator boundary can treat compile and runtime failures alike.
"""

from typing import Optional


class ProgramError(Exception):
    """Base error for connector programs."""


class ProgramSyntaxError(ProgramError):
    """Program text could not be tokenized or parsed."""

    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None):
        self.line = line
        self.col = col
        if line is not None:
            message = f"{message} (line {line}, column {col})"
        super().__init__(message)


class ProgramRuntimeError(ProgramError):
    """Program raised while executing."""
